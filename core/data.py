from __future__ import annotations

import pandas as pd
import streamlit as st

from core.formatters import fmt_data_br, fmt_status
from core.models import OrdemServico, Subpacote
from core.sheets import DocumentStore

PACOTES_COLS = ["id", "Pacote", "Descrição", "Status", "Criado em"]
ORDENS_COLS = ["id", "O.S.", "Título", "Subpacote", "Oficina", "TAG", "Máquina", "Responsável", "Status", "Progresso"]


def _ensure_cols(df: pd.DataFrame, cols: list[str]) -> pd.DataFrame:
    """Garante que o DataFrame tenha as colunas esperadas."""
    if df is None or df.empty:
        return pd.DataFrame(columns=cols)
    for c in cols:
        if c not in df.columns:
            df[c] = ""
    return df[cols]


@st.cache_data(ttl=10)
def carregar_pacotes(_store: DocumentStore, uid: str) -> pd.DataFrame:
    """Pacotes do usuário para as listas. `uid` entra só na chave do cache."""
    registros = [
        {
            "id": p.id,
            "Pacote": p.nome,
            "Descrição": p.descricao or "",
            "Status": fmt_status(p.status, pacote=True),
            "Criado em": fmt_data_br(p.criado_em),
        }
        for p in _store.pacotes.listar()
    ]
    return _ensure_cols(pd.DataFrame(registros), PACOTES_COLS)


def ordens_para_df(ordens: list[OrdemServico], subpacotes: list[Subpacote]) -> pd.DataFrame:
    nomes = {s.id: s.nome for s in subpacotes}
    registros = [
        {
            "id": o.id,
            "O.S.": o.numero_os or "-",
            "Título": o.titulo,
            "Subpacote": nomes.get(o.subpacote_id, "Sem subpacote"),
            "Oficina": o.oficina or "",
            "TAG": o.tag or "",
            "Máquina": o.nome_maquina or "",
            "Responsável": o.responsavel or "",
            "Status": o.status,
            "Progresso": o.progresso,
        }
        for o in ordens
    ]
    return _ensure_cols(pd.DataFrame(registros), ORDENS_COLS)


def clear_cache():
    st.cache_data.clear()
