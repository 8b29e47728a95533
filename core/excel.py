from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from core.constants import COLUNAS_IMPORTACAO, LINHA_CABECALHO, STATUS_OS_PADRAO
from core.errors import ErroPlanilha
from core.normalize import normalizar_cabecalho

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinhaImportada:
    titulo: str
    linha: int
    tarefa: Optional[str] = None
    oficina: Optional[str] = None
    numero_os: Optional[str] = None
    tag: Optional[str] = None
    nome_maquina: Optional[str] = None
    responsavel: Optional[str] = None
    status: str = STATUS_OS_PADRAO


def _fonte(arquivo: Any):
    """Aceita caminho, bytes, BytesIO ou o UploadedFile do Streamlit."""
    if isinstance(arquivo, (str, Path)):
        return Path(arquivo)
    if isinstance(arquivo, (bytes, bytearray)):
        return BytesIO(arquivo)
    if hasattr(arquivo, "getvalue"):
        return BytesIO(arquivo.getvalue())
    if hasattr(arquivo, "read"):
        if hasattr(arquivo, "seek"):
            arquivo.seek(0)
        return BytesIO(arquivo.read())
    raise ErroPlanilha("Arquivo de planilha não reconhecido.")


def _celula(valor) -> Optional[str]:
    if valor is None:
        return None
    if isinstance(valor, float):
        if pd.isna(valor):
            return None
        if valor.is_integer():
            valor = int(valor)
    if valor is pd.NaT:
        return None
    s = str(valor).strip()
    return s or None


def _mapear_colunas(cabecalho: list) -> dict[str, list[int]]:
    """
    campo da O.S. -> posições das colunas que o alimentam.

    Quando duas colunas dão no mesmo campo (TAREFA e DESCRIÇÃO), a ordem segue
    COLUNAS_IMPORTACAO, não a posição na planilha.
    """
    prioridade = {chave: i for i, chave in enumerate(COLUNAS_IMPORTACAO)}
    achadas: dict[str, list[tuple[int, int]]] = {}
    for pos, valor in enumerate(cabecalho):
        chave = normalizar_cabecalho(_celula(valor))
        campo = COLUNAS_IMPORTACAO.get(chave) if chave else None
        if campo:
            achadas.setdefault(campo, []).append((prioridade[chave], pos))
    return {campo: [pos for _, pos in sorted(lista)] for campo, lista in achadas.items()}


def _primeiro_preenchido(celulas: list, posicoes: list[int]) -> Optional[str]:
    for pos in posicoes:
        if pos < len(celulas) and celulas[pos]:
            return celulas[pos]
    return None


def ler_planilha(arquivo) -> list[LinhaImportada]:
    """
    Lê a primeira aba com cabeçalho na linha 6.

    Colunas reconhecidas (sem diferenciar maiúsculas/acentos): OFICINA, O.S/OS,
    TAG, NOME MAQUINA, TAREFA/DESCRIÇÃO, RESPONSÁVEL. As demais são ignoradas.
    Linhas totalmente em branco são puladas; linhas sem título são descartadas.
    """
    try:
        df = pd.read_excel(_fonte(arquivo), sheet_name=0, header=None, dtype=object)
    except ErroPlanilha:
        raise
    except Exception as exc:
        logger.warning("Planilha ilegível: %s", exc)
        raise ErroPlanilha(f"Não foi possível ler a planilha: {exc}") from exc

    pos_cabecalho = LINHA_CABECALHO - 1
    if len(df) <= pos_cabecalho:
        return []

    colunas = _mapear_colunas(df.iloc[pos_cabecalho].tolist())
    dados = df.iloc[pos_cabecalho + 1:]

    linhas: list[LinhaImportada] = []
    n = 0
    for offset, valores in enumerate(dados.itertuples(index=False, name=None)):
        celulas = [_celula(v) for v in valores]
        if not any(celulas):
            continue
        n += 1

        campos = {campo: _primeiro_preenchido(celulas, posicoes) for campo, posicoes in colunas.items()}
        tarefa = campos.get("tarefa")
        titulo = tarefa if tarefa else f"Linha {n}"
        if not titulo.strip():
            continue

        linhas.append(
            LinhaImportada(
                titulo=titulo,
                linha=LINHA_CABECALHO + 1 + offset,
                tarefa=tarefa,
                oficina=campos.get("oficina"),
                numero_os=campos.get("numero_os"),
                tag=campos.get("tag"),
                nome_maquina=campos.get("nome_maquina"),
                responsavel=campos.get("responsavel"),
            )
        )

    logger.info("Planilha lida: %d linha(s) válida(s)", len(linhas))
    return linhas
