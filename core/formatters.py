from __future__ import annotations
from datetime import datetime, date

from core.constants import STATUS_OS, STATUS_PACOTE


def fmt_percentual(valor):
    try:
        return f"{int(round(float(valor)))}%"
    except (TypeError, ValueError):
        return "0%"


def fmt_status(valor, pacote: bool = False):
    rotulos = STATUS_PACOTE if pacote else STATUS_OS
    return rotulos.get(str(valor), str(valor or "-"))


def fmt_data_br(dt):
    if dt is None or dt == "":
        return ""
    if isinstance(dt, str):
        # ISO com ou sem hora
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt
    if isinstance(dt, datetime):
        return dt.strftime("%d/%m/%Y %H:%M")
    if isinstance(dt, date):
        return dt.strftime("%d/%m/%Y")
    return str(dt)
