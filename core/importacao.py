"""
Importação de O.S. a partir da planilha.

Fluxo: arquivo -> ler_planilha -> importar_ordens -> mensagem_resumo.

Regras da conciliação:
- duplicada = mesmo número de O.S. normalizado (trim + minúsculas) que uma O.S.
  já existente no pacote ou já importada neste mesmo arquivo;
- O.S. sem número nunca é considerada duplicada;
- o subpacote é o primeiro cujo nome normalizado contém a chave da oficina;
  se nenhum casar, cria um (no máximo um por chave em cada importação);
- linhas processadas em ordem, uma por vez; se o banco falhar, para na hora
  e mantém o que já foi criado (sem rollback).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from core.constants import LINHA_CABECALHO, STATUS_OS_PADRAO
from core.errors import ErroBackend, ErroValidacao
from core.excel import LinhaImportada, ler_planilha
from core.models import OrdemServico, Subpacote
from core.normalize import (
    derivar_chave_oficina,
    nome_exibicao_oficina,
    normalizar_numero_os,
    normalizar_texto,
)
from core.sheets import DocumentStore

logger = logging.getLogger(__name__)

MENSAGEM_SEM_LINHAS = f"Nenhuma linha válida encontrada. Confira o cabeçalho na linha {LINHA_CABECALHO}."
NOME_PACOTE_PADRAO = "o pacote selecionado"


@dataclass
class ResultadoImportacao:
    criadas: int = 0
    ignoradas: int = 0
    subpacotes_criados: list[str] = field(default_factory=list)
    nome_pacote: str = NOME_PACOTE_PADRAO


def validar_importacao(pacote_id: Optional[str], arquivo) -> None:
    if not arquivo:
        raise ErroValidacao("Selecione um arquivo para importar.")
    if not pacote_id:
        raise ErroValidacao("Escolha o pacote que receberá os serviços importados.")


def _resolver_subpacote(
    store: DocumentStore,
    pacote_id: str,
    chave: Optional[str],
    subpacotes: list[Subpacote],
    resultado: ResultadoImportacao,
) -> Optional[str]:
    if not chave:
        return None

    for sub in subpacotes:
        nome = normalizar_texto(sub.nome)
        if nome and chave in nome:
            return sub.id

    nome = nome_exibicao_oficina(chave)
    novo = Subpacote(pacote_id=pacote_id, nome=nome)
    novo.id = store.subpacotes.criar(novo)
    subpacotes.append(novo)
    resultado.subpacotes_criados.append(nome)
    logger.info("Subpacote '%s' criado automaticamente no pacote %s", nome, pacote_id)
    return novo.id


def importar_ordens(store: DocumentStore, pacote_id: str, linhas: list[LinhaImportada]) -> ResultadoImportacao:
    pacote = store.pacotes.obter(pacote_id)
    resultado = ResultadoImportacao(nome_pacote=pacote.nome if pacote else NOME_PACOTE_PADRAO)
    if not linhas:
        return resultado

    existentes = store.ordens.listar_por_pacote(pacote_id)
    subpacotes = list(store.subpacotes.listar_por_pacote(pacote_id))
    conhecidas = {n for n in (normalizar_numero_os(o.numero_os) for o in existentes) if n}
    # continua a numeração das importações anteriores do pacote
    base = max((o.ordem_importacao or 0 for o in existentes), default=0)

    for posicao, linha in enumerate(linhas, start=1):
        numero = normalizar_numero_os(linha.numero_os)
        if numero and numero in conhecidas:
            resultado.ignoradas += 1
            continue

        try:
            sub_id = _resolver_subpacote(
                store, pacote_id, derivar_chave_oficina(linha.oficina), subpacotes, resultado
            )
            store.ordens.criar(
                OrdemServico(
                    pacote_id=pacote_id,
                    subpacote_id=sub_id,
                    titulo=linha.titulo or linha.tarefa or "Importado",
                    status=linha.status or STATUS_OS_PADRAO,
                    oficina=linha.oficina,
                    numero_os=linha.numero_os,
                    tag=linha.tag,
                    nome_maquina=linha.nome_maquina,
                    tarefa=linha.tarefa or linha.titulo,
                    responsavel=linha.responsavel,
                    linha_origem=linha.linha,
                    ordem_importacao=base + posicao,
                )
            )
        except ErroBackend:
            logger.error(
                "Importação interrompida na linha %s: %d criada(s), %d ignorada(s) até aqui",
                linha.linha, resultado.criadas, resultado.ignoradas,
            )
            raise

        if numero:
            conhecidas.add(numero)
        resultado.criadas += 1

    logger.info(
        "Importação em '%s': %d criada(s), %d ignorada(s), subpacotes novos: %s",
        resultado.nome_pacote, resultado.criadas, resultado.ignoradas, resultado.subpacotes_criados or "-",
    )
    return resultado


def _texto_ignoradas(n: int) -> str:
    if not n:
        return ""
    if n == 1:
        return " 1 linha ignorada por O.S. duplicada."
    return f" {n} linhas ignoradas por O.S. duplicada."


def mensagem_resumo(resultado: ResultadoImportacao) -> str:
    if not resultado.criadas and resultado.ignoradas:
        return (
            f"Nenhuma nova O.S. para importar em {resultado.nome_pacote}. Todas já existem."
            + _texto_ignoradas(resultado.ignoradas)
        )
    return f"Importadas {resultado.criadas} tarefas para {resultado.nome_pacote}." + _texto_ignoradas(resultado.ignoradas)


def importar_arquivo(store: DocumentStore, pacote_id: Optional[str], arquivo) -> tuple[Optional[ResultadoImportacao], str]:
    """Valida, lê e importa. Devolve (resultado ou None, mensagem para o usuário)."""
    validar_importacao(pacote_id, arquivo)
    linhas = ler_planilha(arquivo)
    if not linhas:
        return None, MENSAGEM_SEM_LINHAS
    resultado = importar_ordens(store, pacote_id, linhas)
    return resultado, mensagem_resumo(resultado)
