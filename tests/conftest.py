from io import BytesIO

import gspread
import pytest
from gspread.utils import a1_to_rowcol
from openpyxl import Workbook

from core.models import Usuario
from core.sheets import DocumentStore

CABECALHO_PADRAO = ["OFICINA", "O.S", "TAG", "NOME MAQUINA", "TAREFA", "RESPONSÁVEL"]


class FakeWorksheet:
    """Subconjunto da API do gspread.Worksheet usado pelo DocumentStore, em memória."""

    def __init__(self, title):
        self.title = title
        self.rows = []
        self.appends = 0
        self.falhar_apos = None  # nº de append_row bem-sucedidos antes de falhar
        self.leituras = 0
        self.opcoes_valor = set()

    def row_values(self, n):
        if len(self.rows) < n:
            return []
        return [str(v) for v in self.rows[n - 1]]

    def update(self, range_name=None, values=None, **kwargs):
        assert range_name == "A1"
        if self.rows:
            self.rows[0] = list(values[0])
        else:
            self.rows.append(list(values[0]))

    def get_all_values(self):
        self.leituras += 1
        if not self.rows:
            return []
        largura = max(len(r) for r in self.rows)
        return [["" if v is None else str(v) for v in r] + [""] * (largura - len(r)) for r in self.rows]

    def append_row(self, values, value_input_option=None):
        self.opcoes_valor.add(value_input_option)
        if self.falhar_apos is not None and self.appends >= self.falhar_apos:
            raise gspread.exceptions.GSpreadException("Quota exceeded")
        self.appends += 1
        self.rows.append(list(values))

    def batch_update(self, data, value_input_option=None, **kwargs):
        self.opcoes_valor.add(value_input_option)
        for item in data:
            row, col = a1_to_rowcol(item["range"])
            linha = self.rows[row - 1]
            if len(linha) < col:
                linha.extend([""] * (col - len(linha)))
            linha[col - 1] = item["values"][0][0]

    def delete_rows(self, start_index, end_index=None):
        del self.rows[start_index - 1:(end_index or start_index)]

    def registros(self):
        """Linhas como dicts (atalho para asserts)."""
        valores = self.get_all_values()
        if not valores:
            return []
        return [dict(zip(valores[0], r)) for r in valores[1:]]


class FakePlanilha:
    def __init__(self):
        self.abas = {}

    def worksheet(self, title):
        if title not in self.abas:
            raise gspread.exceptions.WorksheetNotFound(title)
        return self.abas[title]

    def add_worksheet(self, title, rows, cols):
        self.abas[title] = FakeWorksheet(title)
        return self.abas[title]


@pytest.fixture
def planilha():
    return FakePlanilha()


@pytest.fixture
def usuario():
    return Usuario(uid="u1", email="planejamento@empresa.com")


@pytest.fixture
def store(planilha, usuario):
    s = DocumentStore(planilha, usuario)
    s.garantir_esquema()
    return s


@pytest.fixture
def pacote_id(store):
    return store.pacotes.criar({"nome": "Parada Geral 2024"})


@pytest.fixture
def montar_xlsx():
    return _montar_xlsx


def _montar_xlsx(linhas, cabecalho=None, titulo="PROGRAMAÇÃO DA PARADA"):
    """Planilha no formato da importação: título em cima, cabeçalho na linha 6."""
    wb = Workbook()
    ws = wb.active
    if titulo:
        ws.cell(row=1, column=1, value=titulo)
    for col, valor in enumerate(cabecalho or CABECALHO_PADRAO, start=1):
        ws.cell(row=6, column=col, value=valor)
    for i, linha in enumerate(linhas, start=7):
        for col, valor in enumerate(linha, start=1):
            if valor is not None:
                ws.cell(row=i, column=col, value=valor)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
