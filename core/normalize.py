from __future__ import annotations

import re
import unicodedata
from typing import Optional

from core.constants import OFICINA_NOMES, OFICINA_SYNONYMS


def _texto(valor) -> str:
    if valor is None:
        return ""
    if isinstance(valor, float):
        if valor != valor:  # NaN vindo do pandas
            return ""
        if valor.is_integer():
            return str(int(valor))
    return str(valor)


def normalizar_texto(valor) -> Optional[str]:
    """Minúsculas, sem espaços nas pontas e sem acentos. None se vazio."""
    s = _texto(valor).strip().lower()
    if not s:
        return None
    s = unicodedata.normalize("NFD", s)
    s = "".join(c for c in s if not unicodedata.combining(c))
    return s or None


def normalizar_cabecalho(valor) -> Optional[str]:
    s = normalizar_texto(valor)
    if s is None:
        return None
    return re.sub(r"\s+", " ", s)


def derivar_chave_oficina(valor) -> Optional[str]:
    """
    Classifica a oficina:
    - contém "mec"   -> "mecanico"
    - contém "eletr" -> "eletrico"
    - senão devolve o próprio texto normalizado (oficina livre)
    """
    base = normalizar_texto(valor)
    if not base:
        return None

    for chave, trechos in OFICINA_SYNONYMS.items():
        for t in trechos:
            if t in base:
                return chave

    return base


def nome_exibicao_oficina(chave: Optional[str]) -> Optional[str]:
    if not chave:
        return None
    return OFICINA_NOMES.get(chave, chave)


def normalizar_numero_os(valor) -> Optional[str]:
    s = _texto(valor).strip().lower()
    return s or None
