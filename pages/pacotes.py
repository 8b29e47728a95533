import logging

import streamlit as st

from core.constants import STATUS_PACOTE
from core.data import carregar_pacotes, clear_cache
from core.errors import ErroPainel
from core.servicos import remover_pacote
from core.sheets import DocumentStore

logger = logging.getLogger(__name__)


def _abrir(pacote_id: str):
    st.session_state["pacote_sel"] = pacote_id
    st.session_state["ir_para"] = "Pacote"


def render(store: DocumentStore):
    st.markdown("### 📦 Pacotes")

    # -------- NOVO PACOTE --------
    with st.form("f_pacote", clear_on_submit=True):
        c1, c2 = st.columns([2, 3])
        nome = c1.text_input("Nome do pacote")
        descricao = c2.text_input("Descrição")

        if st.form_submit_button("CRIAR PACOTE"):
            if not nome.strip():
                st.error("Informe o nome do pacote.")
                st.stop()
            try:
                store.pacotes.criar({"nome": nome.strip(), "descricao": descricao.strip(), "status": "open"})
            except ErroPainel as exc:
                logger.exception("Erro ao criar pacote")
                st.error(str(exc))
                st.stop()
            clear_cache()
            st.success("Pacote criado!")
            st.rerun()

    df = carregar_pacotes(store, store.exigir_usuario().uid)
    if df.empty:
        st.info("Nenhum pacote cadastrado ainda.")
        return

    st.dataframe(df.drop(columns="id"), use_container_width=True, hide_index=True)

    # -------- ABRIR / EDITAR / EXCLUIR --------
    nomes = dict(zip(df["id"], df["Pacote"]))
    pacote_id = st.selectbox("Pacote", list(nomes), format_func=lambda i: nomes[i])

    st.button("📂 Abrir pacote", on_click=_abrir, args=(pacote_id,))

    with st.expander("🛠️ Editar / Excluir pacote", expanded=False):
        pacote = store.pacotes.obter(pacote_id)
        if pacote is None:
            st.warning("Pacote não encontrado.")
            return

        novo_nome = st.text_input("Nome", value=pacote.nome, key=f"nome_{pacote_id}")
        nova_desc = st.text_input("Descrição", value=pacote.descricao or "", key=f"desc_{pacote_id}")
        status_opcoes = list(STATUS_PACOTE)
        novo_status = st.selectbox(
            "Status",
            status_opcoes,
            index=status_opcoes.index(pacote.status),
            format_func=lambda s: STATUS_PACOTE[s],
            key=f"status_{pacote_id}",
        )

        col_a, col_b = st.columns(2)
        if col_a.button("💾 Salvar alteração"):
            try:
                store.pacotes.atualizar(
                    pacote_id, {"nome": novo_nome.strip(), "descricao": nova_desc.strip(), "status": novo_status}
                )
            except ErroPainel as exc:
                logger.exception("Erro ao editar pacote %s", pacote_id)
                st.error(str(exc))
                return
            clear_cache()
            st.success("Alterado!")
            st.rerun()

        confirmar = col_b.checkbox("Excluir também subpacotes e O.S. deste pacote", key=f"conf_{pacote_id}")
        if col_b.button("🗑️ Excluir pacote", disabled=not confirmar):
            try:
                remover_pacote(store, pacote_id)
            except ErroPainel as exc:
                logger.exception("Erro ao excluir pacote %s", pacote_id)
                st.error(str(exc))
                return
            clear_cache()
            st.success("Pacote excluído!")
            st.rerun()
