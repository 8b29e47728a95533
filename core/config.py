from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from core.errors import ErroConfiguracao

PLANILHA_PADRAO = "OrdensServico_DB"


@dataclass(frozen=True)
class Configuracao:
    nome_planilha: str = PLANILHA_PADRAO
    credenciais: Optional[dict] = None
    usuarios: dict = field(default_factory=dict)
    nivel_log: str = "INFO"

    def exigir_credenciais(self) -> dict:
        if not self.credenciais:
            raise ErroConfiguracao(
                "Credenciais do Google ausentes: defina gcp_service_account.json_content nos secrets."
            )
        return self.credenciais


def _load_sa_info(secrets: Mapping[str, Any]) -> Optional[dict]:
    sa = secrets.get("gcp_service_account")
    if not sa:
        return None
    info = sa.get("json_content", sa) if hasattr(sa, "get") else sa
    if isinstance(info, str):
        try:
            info = json.loads(info, strict=False)
        except ValueError as exc:
            raise ErroConfiguracao("gcp_service_account.json_content não é um JSON válido.") from exc
    return dict(info)


def carregar_configuracao(secrets: Mapping[str, Any]) -> Configuracao:
    """Monta a configuração a partir do st.secrets (ou de qualquer mapping)."""
    usuarios = secrets.get("usuarios") or {}
    return Configuracao(
        nome_planilha=str(secrets.get("planilha") or PLANILHA_PADRAO),
        credenciais=_load_sa_info(secrets),
        usuarios={str(k).strip().lower(): str(v) for k, v in dict(usuarios).items()},
        nivel_log=str(secrets.get("log_level") or "INFO").upper(),
    )
