import logging

import pandas as pd
import streamlit as st

from core.errors import ErroPainel
from core.formatters import fmt_percentual, fmt_status
from core.servicos import listar_resumos, resumo_por_os
from core.sheets import DocumentStore

logger = logging.getLogger(__name__)


def render(store: DocumentStore):
    st.markdown("### 🔎 Consulta de O.S.")

    numero = st.text_input("Número da O.S.")
    try:
        if numero.strip():
            r = resumo_por_os(store, numero)
            if r is None:
                st.warning("O.S. não encontrada.")
            else:
                c1, c2, c3 = st.columns(3)
                c1.metric("O.S.", r.numero_os)
                c2.metric("Status", fmt_status(r.status))
                c3.metric("Progresso", fmt_percentual(r.progresso))
                st.write(f"**{r.titulo}**")
                st.caption(f"Pacote: {r.pacote} | Subpacote: {r.subpacote or '-'} | Responsável: {r.responsavel or '-'}")
            return

        resumos = listar_resumos(store)
    except ErroPainel as exc:
        logger.exception("Erro ao consultar O.S.")
        st.error(str(exc))
        return

    if not resumos:
        st.info("Nenhuma O.S. com número cadastrado.")
        return

    df = pd.DataFrame(
        [
            {
                "O.S.": r.numero_os,
                "Título": r.titulo,
                "Pacote": r.pacote,
                "Subpacote": r.subpacote or "-",
                "Status": fmt_status(r.status),
                "Progresso": fmt_percentual(r.progresso),
            }
            for r in resumos
        ]
    )
    st.dataframe(df, use_container_width=True, hide_index=True)
