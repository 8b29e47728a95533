from __future__ import annotations

import hashlib
import logging
from typing import Optional

import streamlit as st

from core.config import Configuracao
from core.models import Usuario

logger = logging.getLogger(__name__)


def hash_senha(senha: str) -> str:
    return hashlib.sha256(senha.encode()).hexdigest()


def verificar_credenciais(email: str, senha: str, usuarios: dict) -> Optional[Usuario]:
    """usuarios: e-mail (minúsculo) -> sha256 da senha."""
    email = (email or "").strip().lower()
    esperado = usuarios.get(email)
    if not email or not esperado or not senha:
        return None
    if hash_senha(senha) != esperado:
        return None
    return Usuario(uid=hashlib.sha256(email.encode()).hexdigest()[:16], email=email)


def usuario_atual() -> Optional[Usuario]:
    return st.session_state.get("usuario")


def sair():
    st.session_state["usuario"] = None


def autenticar(config: Configuracao) -> Usuario:
    """Mostra o login e interrompe a página até o usuário entrar."""
    usuario = usuario_atual()
    if usuario is not None:
        return usuario

    _, col, _ = st.columns([1, 1, 1])
    with col:
        st.markdown("<br><br><br>", unsafe_allow_html=True)
        with st.form("login"):
            st.markdown("<h2 style='text-align:center; color:#2D6A4F;'>PAINEL O.S.</h2>", unsafe_allow_html=True)
            email = st.text_input("E-mail", value=st.session_state.get("ultimo_email", ""))
            pwd = st.text_input("Senha de acesso", type="password")
            if st.form_submit_button("Entrar"):
                st.session_state["ultimo_email"] = email
                usuario = verificar_credenciais(email, pwd, config.usuarios)
                if usuario:
                    logger.info("Login de %s", usuario.email)
                    st.session_state["usuario"] = usuario
                    st.rerun()
                else:
                    logger.warning("Tentativa de login recusada para %s", email)
                    st.error("E-mail ou senha incorretos.")

    st.stop()
