from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Optional

from core.constants import LIMITE_EXTRAS, STATUS_OS, STATUS_OS_PADRAO, STATUS_PACOTE
from core.errors import ErroValidacao


def normalizar_progresso(valor) -> int:
    """Arredonda (meio para cima) e limita a 0..100. Valor inválido vira 0."""
    try:
        v = float(valor)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(v):
        return 0
    v = math.floor(v + 0.5)
    return int(max(0, min(100, v)))


def _vazio(v) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def _opcional(v) -> Optional[str]:
    if _vazio(v):
        return None
    return str(v)


def _inteiro(v) -> Optional[int]:
    if _vazio(v):
        return None
    try:
        return int(float(v))
    except (TypeError, ValueError):
        return None


def _exigir(registro: dict, campos: tuple[str, ...], entidade: str):
    faltando = [c for c in campos if _vazio(registro.get(c))]
    if faltando:
        raise ErroValidacao(f"{entidade}: campo(s) obrigatório(s) ausente(s): {', '.join(faltando)}.")


class Modelo:
    """Conversão entre dataclass e linha de planilha (dict de strings)."""

    OBRIGATORIOS: tuple[str, ...] = ()

    @classmethod
    def campos(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def para_registro(self) -> dict[str, Any]:
        return {k: ("" if v is None else v) for k, v in asdict(self).items()}


@dataclass
class Pacote(Modelo):
    nome: str
    id: Optional[str] = None
    descricao: Optional[str] = None
    status: str = "open"
    criado_em: Optional[str] = None
    atualizado_em: Optional[str] = None
    criado_por: Optional[str] = None
    email_dono: Optional[str] = None

    OBRIGATORIOS = ("nome",)

    @classmethod
    def de_registro(cls, r: dict) -> "Pacote":
        _exigir(r, cls.OBRIGATORIOS, "Pacote")
        status = str(r.get("status") or "open")
        if status not in STATUS_PACOTE:
            raise ErroValidacao(f"Pacote: status inválido '{status}'.")
        return cls(
            id=_opcional(r.get("id")),
            nome=str(r["nome"]).strip(),
            descricao=_opcional(r.get("descricao")),
            status=status,
            criado_em=_opcional(r.get("criado_em")),
            atualizado_em=_opcional(r.get("atualizado_em")),
            criado_por=_opcional(r.get("criado_por")),
            email_dono=_opcional(r.get("email_dono")),
        )


@dataclass
class Subpacote(Modelo):
    pacote_id: str
    nome: str
    id: Optional[str] = None
    descricao: Optional[str] = None
    criado_em: Optional[str] = None
    atualizado_em: Optional[str] = None
    criado_por: Optional[str] = None

    OBRIGATORIOS = ("pacote_id", "nome")

    @classmethod
    def de_registro(cls, r: dict) -> "Subpacote":
        _exigir(r, cls.OBRIGATORIOS, "Subpacote")
        return cls(
            id=_opcional(r.get("id")),
            pacote_id=str(r["pacote_id"]),
            nome=str(r["nome"]).strip(),
            descricao=_opcional(r.get("descricao")),
            criado_em=_opcional(r.get("criado_em")),
            atualizado_em=_opcional(r.get("atualizado_em")),
            criado_por=_opcional(r.get("criado_por")),
        )


@dataclass
class OrdemServico(Modelo):
    pacote_id: str
    titulo: str
    id: Optional[str] = None
    subpacote_id: Optional[str] = None
    tarefa: Optional[str] = None
    status: str = STATUS_OS_PADRAO
    progresso: int = 0
    oficina: Optional[str] = None
    numero_os: Optional[str] = None
    tag: Optional[str] = None
    nome_maquina: Optional[str] = None
    responsavel: Optional[str] = None
    linha_origem: Optional[int] = None
    ordem_importacao: Optional[int] = None
    extras: dict = field(default_factory=dict)
    criado_em: Optional[str] = None
    atualizado_em: Optional[str] = None
    criado_por: Optional[str] = None

    OBRIGATORIOS = ("pacote_id", "titulo")

    def __post_init__(self):
        self.progresso = normalizar_progresso(self.progresso)
        if self.status not in STATUS_OS:
            raise ErroValidacao(f"O.S.: status inválido '{self.status}'.")
        validar_extras(self.extras)

    @classmethod
    def de_registro(cls, r: dict) -> "OrdemServico":
        _exigir(r, cls.OBRIGATORIOS, "O.S.")
        extras = r.get("extras") or {}
        if isinstance(extras, str):
            try:
                extras = json.loads(extras)
            except ValueError as exc:
                raise ErroValidacao("O.S.: campo 'extras' não é um JSON válido.") from exc
        return cls(
            id=_opcional(r.get("id")),
            pacote_id=str(r["pacote_id"]),
            subpacote_id=_opcional(r.get("subpacote_id")),
            titulo=str(r["titulo"]),
            tarefa=_opcional(r.get("tarefa")),
            status=str(r.get("status") or STATUS_OS_PADRAO),
            progresso=r.get("progresso") or 0,
            oficina=_opcional(r.get("oficina")),
            numero_os=_opcional(r.get("numero_os")),
            tag=_opcional(r.get("tag")),
            nome_maquina=_opcional(r.get("nome_maquina")),
            responsavel=_opcional(r.get("responsavel")),
            linha_origem=_inteiro(r.get("linha_origem")),
            ordem_importacao=_inteiro(r.get("ordem_importacao")),
            extras=extras,
            criado_em=_opcional(r.get("criado_em")),
            atualizado_em=_opcional(r.get("atualizado_em")),
            criado_por=_opcional(r.get("criado_por")),
        )

    def para_registro(self) -> dict[str, Any]:
        reg = super().para_registro()
        reg["extras"] = json.dumps(self.extras, ensure_ascii=False) if self.extras else ""
        return reg


@dataclass
class LogOrdemServico(Modelo):
    ordem_id: str
    mensagem: str
    id: Optional[str] = None
    criado_em: Optional[str] = None
    criado_por: Optional[str] = None

    OBRIGATORIOS = ("ordem_id", "mensagem")

    @classmethod
    def de_registro(cls, r: dict) -> "LogOrdemServico":
        _exigir(r, cls.OBRIGATORIOS, "Log")
        return cls(
            id=_opcional(r.get("id")),
            ordem_id=str(r["ordem_id"]),
            mensagem=str(r["mensagem"]),
            criado_em=_opcional(r.get("criado_em")),
            criado_por=_opcional(r.get("criado_por")),
        )


def validar_extras(extras) -> None:
    if not isinstance(extras, dict):
        raise ErroValidacao("O.S.: 'extras' deve ser um dicionário.")
    if len(extras) > LIMITE_EXTRAS:
        raise ErroValidacao(f"O.S.: no máximo {LIMITE_EXTRAS} campos extras.")


@dataclass(frozen=True)
class Usuario:
    uid: str
    email: Optional[str] = None
