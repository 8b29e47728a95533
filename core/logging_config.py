"""
Logging do painel.

Formato legível no console do Streamlit; nível vem de `log_level` nos secrets.
"""
from __future__ import annotations

import logging
import sys

FORMATO = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_configurado = False


def configurar_logging(nivel: str = "INFO") -> None:
    """Instala o handler no logger raiz uma única vez."""
    global _configurado

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(nivel).upper(), logging.INFO))

    if _configurado:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(FORMATO, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # gspread/urllib3 são verbosos em DEBUG
    for ruidoso in ("urllib3", "google.auth"):
        logging.getLogger(ruidoso).setLevel(logging.WARNING)

    _configurado = True
