import pytest

from core.errors import ErroBackend, ErroValidacao
from core.excel import LinhaImportada
from core.importacao import (
    MENSAGEM_SEM_LINHAS,
    ResultadoImportacao,
    importar_arquivo,
    importar_ordens,
    mensagem_resumo,
    validar_importacao,
)


def _linha(n, oficina=None, numero_os=None, tarefa=None):
    return LinhaImportada(
        titulo=tarefa or f"Linha {n}", linha=6 + n, tarefa=tarefa, oficina=oficina, numero_os=numero_os
    )


LOTE = [
    _linha(1, "MECÂNICA", "100", "Trocar selo"),
    _linha(2, "ELÉTRICA", "200", "Medir isolamento"),
    _linha(3, "MECÂNICA", "100", "Trocar selo de novo"),
]


def test_importa_e_ignora_duplicada_do_mesmo_arquivo(store, pacote_id):
    resultado = importar_ordens(store, pacote_id, LOTE)

    assert resultado.criadas == 2
    assert resultado.ignoradas == 1
    assert resultado.subpacotes_criados == ["Mecânico", "Elétrico"]
    assert resultado.nome_pacote == "Parada Geral 2024"

    subs = {s.nome: s.id for s in store.subpacotes.listar_por_pacote(pacote_id)}
    ordens = store.ordens.listar_por_pacote(pacote_id)
    assert [o.numero_os for o in ordens] == ["100", "200"]
    assert ordens[0].subpacote_id == subs["Mecânico"]
    assert ordens[1].subpacote_id == subs["Elétrico"]
    assert ordens[0].status == "pending"
    assert ordens[0].progresso == 0
    assert ordens[0].linha_origem == 7
    assert [o.ordem_importacao for o in ordens] == [1, 2]


def test_reimportar_nao_duplica(store, pacote_id):
    importar_ordens(store, pacote_id, LOTE)
    resultado = importar_ordens(store, pacote_id, LOTE)

    assert resultado.criadas == 0
    assert resultado.ignoradas == 3
    assert resultado.subpacotes_criados == []
    assert len(store.ordens.listar_por_pacote(pacote_id)) == 2
    assert mensagem_resumo(resultado).startswith("Nenhuma nova O.S. para importar em Parada Geral 2024.")


def test_duplicada_compara_numero_normalizado(store, pacote_id):
    store.ordens.criar({"pacote_id": pacote_id, "titulo": "manual", "numero_os": "ab-1"})
    resultado = importar_ordens(store, pacote_id, [_linha(1, None, "  AB-1 ", "Revisar")])
    assert resultado.criadas == 0
    assert resultado.ignoradas == 1


def test_os_sem_numero_nunca_e_duplicada(store, pacote_id):
    resultado = importar_ordens(store, pacote_id, [_linha(1, "Mecânica"), _linha(2, "Mecânica")])
    assert resultado.criadas == 2
    assert resultado.ignoradas == 0


def test_duplicidade_vale_so_no_pacote_destino(store, pacote_id):
    outro = store.pacotes.criar({"nome": "Parada 2023"})
    importar_ordens(store, outro, [_linha(1, "MECÂNICA", "100", "Antiga")])

    resultado = importar_ordens(store, pacote_id, [_linha(1, "MECÂNICA", "100", "Nova")])
    assert resultado.criadas == 1


def test_oficina_livre_cria_um_subpacote_por_chave(store, pacote_id):
    linhas = [_linha(1, "Hidráulica", "1"), _linha(2, "HIDRAULICA", "2"), _linha(3, "hidráulica ", "3")]
    resultado = importar_ordens(store, pacote_id, linhas)

    assert resultado.subpacotes_criados == ["hidraulica"]
    subs = store.subpacotes.listar_por_pacote(pacote_id)
    assert [s.nome for s in subs] == ["hidraulica"]
    assert {o.subpacote_id for o in store.ordens.listar_por_pacote(pacote_id)} == {subs[0].id}


def test_usa_subpacote_existente_que_contem_a_chave(store, pacote_id):
    sub_id = store.subpacotes.criar({"pacote_id": pacote_id, "nome": "Mecânico - Turno A"})
    resultado = importar_ordens(store, pacote_id, [_linha(1, "mec", "9", "Apertar flange")])

    assert resultado.subpacotes_criados == []
    [ordem] = store.ordens.listar_por_pacote(pacote_id)
    assert ordem.subpacote_id == sub_id


def test_linha_sem_oficina_fica_sem_subpacote(store, pacote_id):
    importar_ordens(store, pacote_id, [_linha(1, None, "5", "Limpeza")])
    [ordem] = store.ordens.listar_por_pacote(pacote_id)
    assert ordem.subpacote_id is None
    assert store.subpacotes.listar_por_pacote(pacote_id) == []


def test_falha_do_banco_interrompe_e_mantem_o_que_foi_criado(store, planilha, pacote_id):
    planilha.abas["workorders"].falhar_apos = 1

    with pytest.raises(ErroBackend):
        importar_ordens(store, pacote_id, LOTE)

    ordens = store.ordens.listar_por_pacote(pacote_id)
    assert [o.numero_os for o in ordens] == ["100"]


def test_arquivo_sem_linhas_nao_grava_nada(store, planilha, pacote_id, montar_xlsx):
    antes = {t: len(ws.rows) for t, ws in planilha.abas.items()}

    resultado, mensagem = importar_arquivo(store, pacote_id, montar_xlsx([]))

    assert resultado is None
    assert mensagem == MENSAGEM_SEM_LINHAS
    assert {t: len(ws.rows) for t, ws in planilha.abas.items()} == antes


def test_importar_arquivo_completo(store, pacote_id, montar_xlsx):
    arquivo = montar_xlsx(
        [
            ["MECÂNICA", 100, "B-01", "Bomba 1", "Trocar selo", "João"],
            ["ELÉTRICA", 200, "M-02", "Motor 2", "Medir isolamento", "Ana"],
            ["MECÂNICA", 100, "B-01", "Bomba 1", "Trocar selo", "João"],
        ]
    )
    resultado, mensagem = importar_arquivo(store, pacote_id, arquivo)

    assert resultado.criadas == 2
    assert mensagem == "Importadas 2 tarefas para Parada Geral 2024. 1 linha ignorada por O.S. duplicada."
    ordem = store.ordens.listar_por_pacote(pacote_id)[0]
    assert ordem.tag == "B-01"
    assert ordem.nome_maquina == "Bomba 1"
    assert ordem.responsavel == "João"
    assert ordem.oficina == "MECÂNICA"


def test_validacao_antes_de_ler(store, pacote_id):
    with pytest.raises(ErroValidacao, match="arquivo"):
        importar_arquivo(store, pacote_id, None)
    with pytest.raises(ErroValidacao, match="pacote"):
        validar_importacao(None, b"conteudo")


def test_mensagem_resumo():
    assert mensagem_resumo(ResultadoImportacao(criadas=3, nome_pacote="P1")) == "Importadas 3 tarefas para P1."
    assert (
        mensagem_resumo(ResultadoImportacao(criadas=1, ignoradas=2, nome_pacote="P1"))
        == "Importadas 1 tarefas para P1. 2 linhas ignoradas por O.S. duplicada."
    )
    assert mensagem_resumo(ResultadoImportacao(ignoradas=1)) == (
        "Nenhuma nova O.S. para importar em o pacote selecionado. Todas já existem."
        " 1 linha ignorada por O.S. duplicada."
    )


def test_segunda_importacao_continua_a_ordem(store, pacote_id):
    importar_ordens(store, pacote_id, [_linha(1, None, "1", "A"), _linha(2, None, "2", "B")])
    importar_ordens(store, pacote_id, [_linha(1, None, "3", "C")])

    ordens = store.ordens.listar_por_pacote(pacote_id)
    assert [o.titulo for o in ordens] == ["A", "B", "C"]
    assert [o.ordem_importacao for o in ordens] == [1, 2, 3]
