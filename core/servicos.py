from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.errors import ErroNaoEncontrado
from core.models import normalizar_progresso
from core.normalize import normalizar_numero_os
from core.sheets import DocumentStore

logger = logging.getLogger(__name__)


def remover_pacote(store: DocumentStore, pacote_id: str) -> None:
    """
    Exclui o pacote com tudo que está nele: O.S., depois subpacotes, depois o
    pacote. O histórico (logs) das O.S. é mantido.
    """
    if store.pacotes.obter(pacote_id) is None:
        raise ErroNaoEncontrado("Pacote não encontrado.")

    ordens = store.ordens.listar_por_pacote(pacote_id)
    for o in ordens:
        store.ordens.remover(o.id)

    subpacotes = store.subpacotes.listar_por_pacote(pacote_id)
    for s in subpacotes:
        store.subpacotes.remover(s.id)

    store.pacotes.remover(pacote_id)
    logger.info("Pacote %s excluído (%d O.S., %d subpacotes)", pacote_id, len(ordens), len(subpacotes))


def remover_subpacote(store: DocumentStore, subpacote_id: str) -> None:
    ordens = store.ordens.listar_por_subpacote(subpacote_id)
    for o in ordens:
        store.ordens.remover(o.id)
    store.subpacotes.remover(subpacote_id)
    logger.info("Subpacote %s excluído (%d O.S.)", subpacote_id, len(ordens))


def _obter_ordem(store: DocumentStore, ordem_id: str):
    ordem = store.ordens.obter(ordem_id)
    if ordem is None:
        raise ErroNaoEncontrado("O.S. não encontrada.")
    return ordem


def atualizar_progresso(store: DocumentStore, ordem_id: str, valor) -> int:
    """Grava o progresso (0..100, inteiro) e registra no histórico. Devolve o valor gravado."""
    ordem = _obter_ordem(store, ordem_id)
    novo = normalizar_progresso(valor)
    if novo == ordem.progresso:
        return novo

    store.ordens.atualizar(ordem_id, {"progresso": novo})
    store.logs.criar({"ordem_id": ordem_id, "mensagem": f"Progresso alterado de {ordem.progresso}% para {novo}%"})
    return novo


def alternar_status(store: DocumentStore, ordem_id: str) -> str:
    ordem = _obter_ordem(store, ordem_id)
    novo = "pending" if ordem.status == "done" else "done"
    store.ordens.atualizar(ordem_id, {"status": novo})
    store.logs.criar({
        "ordem_id": ordem_id,
        "mensagem": "O.S. concluída" if novo == "done" else "O.S. reaberta",
    })
    return novo


@dataclass(frozen=True)
class ResumoOS:
    numero_os: str
    titulo: str
    status: str
    progresso: int
    pacote: str
    subpacote: Optional[str]
    responsavel: Optional[str]


def listar_resumos(store: DocumentStore) -> list[ResumoOS]:
    pacotes = {p.id: p.nome for p in store.pacotes.listar()}
    subpacotes = {s.id: s.nome for s in store.subpacotes.listar()}

    resumos = []
    for o in store.ordens.listar():
        if not o.numero_os:
            continue
        resumos.append(
            ResumoOS(
                numero_os=o.numero_os,
                titulo=o.titulo,
                status=o.status,
                progresso=o.progresso,
                pacote=pacotes.get(o.pacote_id, "-"),
                subpacote=subpacotes.get(o.subpacote_id) if o.subpacote_id else None,
                responsavel=o.responsavel,
            )
        )
    return resumos


def resumo_por_os(store: DocumentStore, numero_os) -> Optional[ResumoOS]:
    alvo = normalizar_numero_os(numero_os)
    if not alvo:
        return None
    for r in listar_resumos(store):
        if normalizar_numero_os(r.numero_os) == alvo:
            return r
    return None
