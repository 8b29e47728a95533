"""
Banco de dados do painel sobre uma planilha do Google Sheets.

Cada coleção é uma aba (linha 1 = cabeçalho) e cada documento é uma linha,
identificado pela coluna `id`. Toda leitura relê a aba, então o número da
linha é sempre o atual no momento da gravação.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional, Type, Union

import gspread
from gspread.utils import rowcol_to_a1
from google.oauth2.service_account import Credentials

from core.config import Configuracao
from core.constants import (
    COLECAO_LOGS,
    COLECAO_ORDENS,
    COLECAO_PACOTES,
    COLECAO_SUBPACOTES,
    LOGS_HEADERS,
    ORDENS_HEADERS,
    PACOTES_HEADERS,
    SUBPACOTES_HEADERS,
)
from core.errors import ErroAutenticacao, ErroBackend, ErroNaoEncontrado, ErroValidacao
from core.models import LogOrdemServico, Modelo, OrdemServico, Pacote, Subpacote, Usuario

logger = logging.getLogger(__name__)

SCOPES = [
    "https://spreadsheets.google.com/feeds",
    "https://www.googleapis.com/auth/drive",
]

# Campos gravados pelo próprio banco; não podem vir em atualizar()
CAMPOS_PROTEGIDOS = {"id", "criado_em", "atualizado_em", "criado_por"}


def conectar(config: Configuracao) -> gspread.Spreadsheet:
    info = config.exigir_credenciais()
    creds = Credentials.from_service_account_info(info, scopes=SCOPES)
    client = gspread.authorize(creds)
    with _traduzir_erros(f"abrir a planilha '{config.nome_planilha}'"):
        return client.open(config.nome_planilha)


def agora_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@contextmanager
def _traduzir_erros(acao: str):
    try:
        yield
    except gspread.exceptions.GSpreadException as exc:
        logger.error("Falha no Google Sheets ao %s: %s", acao, exc)
        raise ErroBackend(f"Erro ao {acao}: {exc}") from exc


def ensure_worksheet(db, title: str, rows=1000, cols=20):
    try:
        return db.worksheet(title)
    except gspread.exceptions.WorksheetNotFound:
        logger.info("Criando aba '%s'", title)
        return db.add_worksheet(title=title, rows=str(rows), cols=str(cols))


def ensure_headers(ws, required_headers: list[str]) -> list[str]:
    # garante que a primeira linha tenha todos os headers necessários
    row1 = ws.row_values(1)
    if not row1:
        ws.update(range_name="A1", values=[required_headers])
        return list(required_headers)

    current = list(row1)
    changed = False
    for h in required_headers:
        if h not in current:
            current.append(h)
            changed = True
    if changed:
        ws.update(range_name="A1", values=[current])
    return current


class _Aba:
    def __init__(self, ws, headers: list[str]):
        self.ws = ws
        self.headers = headers


class Colecao:
    """Leitura e criação de documentos de uma aba."""

    modelo: Type[Modelo]
    titulo: str
    headers: list[str]
    campo_pai: str

    def __init__(self, store: "DocumentStore"):
        self._store = store

    # ---------------- leitura ----------------
    def _registros(self) -> Iterator[tuple[int, dict]]:
        aba = self._store.aba(self.titulo, self.headers)
        with _traduzir_erros(f"ler '{self.titulo}'"):
            valores = aba.ws.get_all_values()
        if not valores:
            return
        cab = valores[0]
        for numero, linha in enumerate(valores[1:], start=2):
            reg = dict(zip(cab, list(linha) + [""] * (len(cab) - len(linha))))
            if reg.get("id"):
                yield numero, reg

    def _localizar(self, doc_id: str) -> tuple[Optional[int], Optional[dict]]:
        uid = self._store.exigir_usuario().uid
        for numero, reg in self._registros():
            if reg["id"] == doc_id and reg.get("criado_por") == uid:
                return numero, reg
        return None, None

    def listar(self, **filtros) -> list:
        uid = self._store.exigir_usuario().uid
        docs = []
        for _, reg in self._registros():
            if reg.get("criado_por") != uid:
                continue
            if any(str(reg.get(k, "")) != str(v) for k, v in filtros.items()):
                continue
            docs.append(self.modelo.de_registro(reg))
        return docs

    def listar_por_pai(self, pai_id: str) -> list:
        return self.listar(**{self.campo_pai: pai_id})

    def obter(self, doc_id: str):
        _, reg = self._localizar(doc_id)
        if reg is None:
            return None
        return self.modelo.de_registro(reg)

    # ---------------- escrita ----------------
    def _carimbar(self, doc, usuario: Usuario) -> None:
        agora = agora_iso()
        doc.id = uuid.uuid4().hex
        doc.criado_em = agora
        doc.criado_por = usuario.uid
        if hasattr(doc, "atualizado_em"):
            doc.atualizado_em = agora

    def criar(self, dados: Union[Modelo, dict]) -> str:
        usuario = self._store.exigir_usuario()
        if isinstance(dados, dict):
            desconhecidos = set(dados) - set(self.modelo.campos())
            if desconhecidos:
                raise ErroValidacao(f"Campo(s) desconhecido(s): {', '.join(sorted(desconhecidos))}.")
            doc = self.modelo.de_registro(dados)
        else:
            doc = dados
        self._carimbar(doc, usuario)

        aba = self._store.aba(self.titulo, self.headers)
        reg = doc.para_registro()
        with _traduzir_erros(f"criar em '{self.titulo}'"):
            aba.ws.append_row([reg.get(h, "") for h in aba.headers], value_input_option="RAW")
        logger.debug("Criado %s/%s", self.titulo, doc.id)
        return doc.id


class ColecaoEditavel(Colecao):
    def _campos_editaveis(self) -> set[str]:
        return set(self.modelo.campos()) - CAMPOS_PROTEGIDOS

    def atualizar(self, doc_id: str, parcial: dict) -> None:
        """Grava apenas os campos informados (mais `atualizado_em`)."""
        desconhecidos = set(parcial) - self._campos_editaveis()
        if desconhecidos:
            raise ErroValidacao(f"Campo(s) não editável(is): {', '.join(sorted(desconhecidos))}.")

        numero, atual = self._localizar(doc_id)
        if numero is None:
            raise ErroNaoEncontrado(f"Documento {doc_id} não encontrado em '{self.titulo}'.")

        novo = self.modelo.de_registro({**atual, **parcial}).para_registro()
        novo["atualizado_em"] = agora_iso()

        aba = self._store.aba(self.titulo, self.headers)
        celulas = [
            {"range": rowcol_to_a1(numero, aba.headers.index(campo) + 1), "values": [[novo[campo]]]}
            for campo in list(parcial) + ["atualizado_em"]
        ]
        # mesmo value_input_option de criar()
        with _traduzir_erros(f"atualizar '{self.titulo}'"):
            aba.ws.batch_update(celulas, value_input_option="RAW")

    def remover(self, doc_id: str) -> None:
        numero, _ = self._localizar(doc_id)
        if numero is None:
            raise ErroNaoEncontrado(f"Documento {doc_id} não encontrado em '{self.titulo}'.")
        aba = self._store.aba(self.titulo, self.headers)
        with _traduzir_erros(f"excluir de '{self.titulo}'"):
            aba.ws.delete_rows(numero)
        logger.debug("Removido %s/%s", self.titulo, doc_id)


class Pacotes(ColecaoEditavel):
    modelo = Pacote
    titulo = COLECAO_PACOTES
    headers = PACOTES_HEADERS
    campo_pai = "criado_por"  # pacote não tem pai; listar_por_pai(uid) == listar()

    def _carimbar(self, doc, usuario: Usuario) -> None:
        super()._carimbar(doc, usuario)
        if not doc.email_dono:
            doc.email_dono = usuario.email


class Subpacotes(ColecaoEditavel):
    modelo = Subpacote
    titulo = COLECAO_SUBPACOTES
    headers = SUBPACOTES_HEADERS
    campo_pai = "pacote_id"

    def listar_por_pacote(self, pacote_id: str) -> list[Subpacote]:
        return self.listar_por_pai(pacote_id)


class Ordens(ColecaoEditavel):
    modelo = OrdemServico
    titulo = COLECAO_ORDENS
    headers = ORDENS_HEADERS
    campo_pai = "pacote_id"

    def listar(self, **filtros) -> list[OrdemServico]:
        ordens = super().listar(**filtros)
        # importadas primeiro na ordem da planilha, depois por criação
        return sorted(ordens, key=lambda o: (o.ordem_importacao is None, o.ordem_importacao or 0, o.criado_em or ""))

    def listar_por_pacote(self, pacote_id: str) -> list[OrdemServico]:
        return self.listar_por_pai(pacote_id)

    def listar_por_subpacote(self, subpacote_id: str) -> list[OrdemServico]:
        return self.listar(subpacote_id=subpacote_id)


class Logs(Colecao):
    """Histórico das O.S.: só acrescenta, nunca altera nem apaga."""

    modelo = LogOrdemServico
    titulo = COLECAO_LOGS
    headers = LOGS_HEADERS
    campo_pai = "ordem_id"

    def listar_por_ordem(self, ordem_id: str) -> list[LogOrdemServico]:
        logs = self.listar_por_pai(ordem_id)
        return sorted(logs, key=lambda l: l.criado_em or "")

    def listar_por_ordens(self, ordem_ids) -> dict[str, list[LogOrdemServico]]:
        """Histórico de várias O.S. com uma única leitura da aba."""
        por_ordem: dict[str, list[LogOrdemServico]] = {i: [] for i in ordem_ids}
        for log in sorted(self.listar(), key=lambda l: l.criado_em or ""):
            if log.ordem_id in por_ordem:
                por_ordem[log.ordem_id].append(log)
        return por_ordem


class DocumentStore:
    """
    Contexto de acesso ao banco: planilha aberta + usuário logado.

    Criado explicitamente pelo app a cada execução e passado às páginas e à
    importação. `fechar()` descarta as abas em memória e o usuário.
    """

    def __init__(self, planilha, usuario: Optional[Usuario] = None):
        self.planilha = planilha
        self.usuario = usuario
        self._abas: dict[str, _Aba] = {}

        self.pacotes = Pacotes(self)
        self.subpacotes = Subpacotes(self)
        self.ordens = Ordens(self)
        self.logs = Logs(self)

    def exigir_usuario(self) -> Usuario:
        if self.usuario is None:
            raise ErroAutenticacao("Usuário não autenticado. Faça login para continuar.")
        return self.usuario

    def aba(self, titulo: str, headers: list[str]) -> _Aba:
        if titulo not in self._abas:
            with _traduzir_erros(f"preparar a aba '{titulo}'"):
                ws = ensure_worksheet(self.planilha, titulo, cols=max(20, len(headers)))
                atuais = ensure_headers(ws, headers)
            self._abas[titulo] = _Aba(ws, atuais)
        return self._abas[titulo]

    def garantir_esquema(self) -> None:
        for colecao in (self.pacotes, self.subpacotes, self.ordens, self.logs):
            self.aba(colecao.titulo, colecao.headers)

    def fechar(self) -> None:
        self._abas.clear()
        self.usuario = None
