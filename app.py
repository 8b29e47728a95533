import logging

import streamlit as st
from streamlit_option_menu import option_menu

from core.auth import autenticar, sair
from core.config import carregar_configuracao
from core.errors import ErroPainel
from core.logging_config import configurar_logging
from core.sheets import DocumentStore, conectar
from pages import consulta_os, importar, pacote, pacotes
from ui_components import mostrar_erro

logger = logging.getLogger(__name__)

# ======================================================
# 1) CONFIG UI
# ======================================================
st.set_page_config("PAINEL O.S. | Paradas", layout="wide")

config = carregar_configuracao(st.secrets)
configurar_logging(config.nivel_log)

# ======================================================
# 2) AUTH
# ======================================================
usuario = autenticar(config)

# ======================================================
# 3) DB
# ======================================================
@st.cache_resource
def obter_planilha():
    return conectar(config)


try:
    store = DocumentStore(obter_planilha(), usuario)
    store.garantir_esquema()
except ErroPainel as exc:
    logger.exception("Falha ao conectar no banco")
    mostrar_erro(exc)
    st.stop()

# ======================================================
# 4) SIDEBAR
# ======================================================
MENU = ["Pacotes", "Pacote", "Importar", "Consulta O.S."]
PAGINAS = {
    "Pacotes": pacotes.render,
    "Pacote": pacote.render,
    "Importar": importar.render,
    "Consulta O.S.": consulta_os.render,
}

ir_para = st.session_state.pop("ir_para", None)

with st.sidebar:
    sel = option_menu(
        "PAINEL O.S.",
        MENU,
        icons=["box-seam", "folder2-open", "file-earmark-arrow-up", "search"],
        manual_select=MENU.index(ir_para) if ir_para in MENU else None,
        key="menu",
    )
    st.caption(usuario.email or "")
    if st.button("Sair"):
        store.fechar()
        sair()
        st.rerun()

# ======================================================
# 5) PÁGINA
# ======================================================
try:
    PAGINAS[sel](store)
except ErroPainel as exc:
    logger.exception("Erro na página %s", sel)
    mostrar_erro(exc)
except Exception:
    logger.exception("Erro inesperado na página %s", sel)
    st.error("Erro inesperado. Tente novamente; se persistir, verifique os logs.")
