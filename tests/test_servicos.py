import pytest

from core.errors import ErroNaoEncontrado
from core.servicos import (
    alternar_status,
    atualizar_progresso,
    listar_resumos,
    remover_pacote,
    remover_subpacote,
    resumo_por_os,
)


@pytest.fixture
def pacote_com_ordens(store, pacote_id):
    sub = store.subpacotes.criar({"pacote_id": pacote_id, "nome": "Mecânico"})
    o1 = store.ordens.criar({"pacote_id": pacote_id, "subpacote_id": sub, "titulo": "Trocar selo", "numero_os": "100"})
    o2 = store.ordens.criar({"pacote_id": pacote_id, "titulo": "Limpeza", "numero_os": "AB-7"})
    return pacote_id, sub, o1, o2


def test_remover_pacote_em_cascata(store, pacote_com_ordens):
    pacote_id, sub, o1, _ = pacote_com_ordens
    outro = store.pacotes.criar({"nome": "Outro"})
    mantida = store.ordens.criar({"pacote_id": outro, "titulo": "Fica"})
    store.logs.criar({"ordem_id": o1, "mensagem": "O.S. concluída"})

    remover_pacote(store, pacote_id)

    assert store.pacotes.obter(pacote_id) is None
    assert store.subpacotes.listar_por_pacote(pacote_id) == []
    assert store.ordens.listar_por_pacote(pacote_id) == []
    assert [o.id for o in store.ordens.listar()] == [mantida]
    assert len(store.logs.listar_por_ordem(o1)) == 1


def test_remover_pacote_inexistente(store):
    with pytest.raises(ErroNaoEncontrado):
        remover_pacote(store, "nao-existe")


def test_remover_subpacote_leva_so_as_suas_ordens(store, pacote_com_ordens):
    pacote_id, sub, o1, o2 = pacote_com_ordens

    remover_subpacote(store, sub)

    assert store.subpacotes.obter(sub) is None
    assert [o.id for o in store.ordens.listar_por_pacote(pacote_id)] == [o2]


def test_atualizar_progresso_registra_historico(store, pacote_com_ordens):
    _, _, o1, _ = pacote_com_ordens

    assert atualizar_progresso(store, o1, "42.6") == 43
    assert atualizar_progresso(store, o1, 250) == 100

    assert store.ordens.obter(o1).progresso == 100
    assert [l.mensagem for l in store.logs.listar_por_ordem(o1)] == [
        "Progresso alterado de 0% para 43%",
        "Progresso alterado de 43% para 100%",
    ]


def test_atualizar_progresso_sem_mudanca_nao_grava(store, pacote_com_ordens):
    _, _, o1, _ = pacote_com_ordens
    assert atualizar_progresso(store, o1, -3) == 0
    assert store.logs.listar_por_ordem(o1) == []


def test_atualizar_progresso_ordem_inexistente(store):
    with pytest.raises(ErroNaoEncontrado):
        atualizar_progresso(store, "nao-existe", 10)


def test_alternar_status(store, pacote_com_ordens):
    _, _, o1, _ = pacote_com_ordens

    assert alternar_status(store, o1) == "done"
    assert store.ordens.obter(o1).status == "done"
    assert alternar_status(store, o1) == "pending"
    assert [l.mensagem for l in store.logs.listar_por_ordem(o1)] == ["O.S. concluída", "O.S. reaberta"]


def test_resumo_por_os(store, pacote_com_ordens):
    resumo = resumo_por_os(store, " ab-7 ")

    assert resumo.numero_os == "AB-7"
    assert resumo.pacote == "Parada Geral 2024"
    assert resumo.subpacote is None
    assert resumo_por_os(store, "100").subpacote == "Mecânico"
    assert resumo_por_os(store, "999") is None
    assert resumo_por_os(store, "") is None


def test_listar_resumos_ignora_ordem_sem_numero(store, pacote_com_ordens):
    pacote_id = pacote_com_ordens[0]
    store.ordens.criar({"pacote_id": pacote_id, "titulo": "Sem número"})
    assert sorted(r.numero_os for r in listar_resumos(store)) == ["100", "AB-7"]
