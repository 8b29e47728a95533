import logging

import streamlit as st

from core.constants import LINHA_CABECALHO
from core.data import clear_cache
from core.errors import ErroPainel
from core.importacao import importar_arquivo
from core.sheets import DocumentStore

logger = logging.getLogger(__name__)


def render(store: DocumentStore):
    st.markdown("### 📥 Importar Excel — Adicionar serviços via planilha")
    st.caption(
        f"A planilha deve ter o cabeçalho na linha {LINHA_CABECALHO} com as colunas: "
        "OFICINA, O.S, TAG, NOME MAQUINA, TAREFA e RESPONSÁVEL. "
        "O subpacote é detectado automaticamente pela coluna OFICINA (MECÂNICO/ELÉTRICO)."
    )

    pacotes = store.pacotes.listar()
    nomes = {p.id: p.nome for p in pacotes}
    opcoes = [""] + list(nomes)
    atual = st.session_state.get("pacote_sel")

    with st.form("f_importar"):
        pacote_id = st.selectbox(
            "Pacote",
            opcoes,
            index=opcoes.index(atual) if atual in opcoes else 0,
            format_func=lambda i: nomes.get(i, "Selecione um pacote"),
        )
        up = st.file_uploader("Arquivo (.xlsx)", type=["xlsx", "xls"])
        enviar = st.form_submit_button("IMPORTAR")

    if not enviar:
        return

    try:
        with st.spinner("Importando..."):
            resultado, mensagem = importar_arquivo(store, pacote_id or None, up)
    except ErroPainel as exc:
        logger.exception("Falha na importação para o pacote %s", pacote_id)
        st.error(str(exc))
        return

    if resultado is None:
        st.warning(mensagem)
        return

    clear_cache()
    st.session_state["pacote_sel"] = pacote_id
    if resultado.ignoradas:
        st.warning(mensagem)
    else:
        st.success(mensagem)
    if resultado.subpacotes_criados:
        st.info("Subpacotes criados: " + ", ".join(resultado.subpacotes_criados))
