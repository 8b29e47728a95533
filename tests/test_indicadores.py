from core.indicadores import calcular_indicadores, progresso_por_subpacote
from core.models import OrdemServico, Subpacote


def _ordem(progresso, status="pending", sub=None):
    return OrdemServico(pacote_id="p1", titulo="x", progresso=progresso, status=status, subpacote_id=sub)


def test_indicadores_vazios():
    assert calcular_indicadores([]) == {"total": 0, "concluidas": 0, "progresso_medio": 0}


def test_indicadores():
    ordens = [_ordem(100, "done"), _ordem(50), _ordem(0, "todo")]
    assert calcular_indicadores(ordens) == {"total": 3, "concluidas": 1, "progresso_medio": 50}


def test_progresso_por_subpacote():
    subs = [Subpacote(pacote_id="p1", nome="Mecânico", id="s1"), Subpacote(pacote_id="p1", nome="Elétrico", id="s2")]
    ordens = [_ordem(100, "done", "s1"), _ordem(40, sub="s1"), _ordem(10)]

    df = progresso_por_subpacote(ordens, subs)

    assert list(df.columns) == ["Subpacote", "O.S.", "Concluídas", "Progresso médio"]
    linhas = {r["Subpacote"]: r for r in df.to_dict("records")}
    assert list(df["Subpacote"]) == sorted(linhas)
    assert linhas["Mecânico"]["O.S."] == 2
    assert linhas["Mecânico"]["Concluídas"] == 1
    assert linhas["Mecânico"]["Progresso médio"] == 70
    assert linhas["Elétrico"]["O.S."] == 0
    assert linhas["Sem subpacote"]["Progresso médio"] == 10


def test_progresso_por_subpacote_sem_dados():
    assert progresso_por_subpacote([], []).empty
