import io
import pandas as pd
from datetime import datetime

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.pdfgen import canvas
from xml.sax.saxutils import escape

from core.formatters import fmt_percentual, fmt_status


# -----------------------------
# Canvas para rodapé + "Página X de Y"
# -----------------------------
class NumberedCanvas(canvas.Canvas):
    """
    Escreve rodapé em todas as páginas:
    - Esquerda: "Painel O.S. • <Pacote>"
    - Direita: "Página X de Y"
    """

    def __init__(self, *args, footer_left: str = "Painel O.S.", **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []
        self.footer_left = footer_left

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        num_pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(num_pages)
            super().showPage()
        super().save()

    def _draw_footer(self, page_count: int):
        width, height = A4
        page_num = self.getPageNumber()

        self.setStrokeColor(colors.lightgrey)
        self.setLineWidth(0.5)
        self.line(24, 28, width - 24, 28)

        self.setFillColor(colors.grey)
        self.setFont("Helvetica", 9)
        self.drawString(24, 14, self.footer_left[:120])
        self.drawRightString(width - 24, 14, f"Página {page_num} de {page_count}")


def _df_to_table(df: pd.DataFrame, col_widths=None):
    """
    Converte DataFrame em tabela ReportLab.
    - repeatRows=1: repete cabeçalho em páginas seguintes
    - splitByRow=1: permite quebrar entre linhas em múltiplas páginas
    """
    styles = getSampleStyleSheet()

    if df is None or df.empty:
        return Paragraph("<i>Sem dados.</i>", styles["BodyText"])

    data = [list(df.columns)] + df.astype(str).values.tolist()

    t = Table(data, colWidths=col_widths, hAlign="LEFT", repeatRows=1)
    t.splitByRow = 1

    t.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2D6A4F")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 10),

                ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ("FONTSIZE", (0, 1), (-1, -1), 8),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),

                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.whitesmoke, colors.white]),

                ("LEFTPADDING", (0, 0), (-1, -1), 5),
                ("RIGHTPADDING", (0, 0), (-1, -1), 5),
                ("TOPPADDING", (0, 0), (-1, -1), 3),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ]
        )
    )
    return t


def gerar_relatorio_pacote_pdf(
    pacote: str,
    indicadores: dict,
    df_subpacotes: pd.DataFrame,
    df_ordens: pd.DataFrame,
) -> bytes:
    """
    PDF (bytes) do andamento de um pacote.
    - Resumo: total de O.S., concluídas, progresso médio
    - Progresso por subpacote
    - Lista de O.S. (sem limite de linhas, cabeçalho repetido por página)

    df_ordens: colunas O.S., Título, Subpacote, Responsável, Status, Progresso
    (o que faltar é ignorado).
    """
    buffer = io.BytesIO()

    footer_left = f"Painel O.S. • {pacote}"

    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=24,
        leftMargin=24,
        topMargin=24,
        bottomMargin=40,  # espaço pro rodapé
        title=f"Relatório - {pacote}",
    )

    styles = getSampleStyleSheet()
    story = []

    story.append(Paragraph("Relatório de Andamento do Pacote", styles["Title"]))
    story.append(Spacer(1, 8))
    story.append(Paragraph(f"<b>Pacote:</b> {escape(pacote)}", styles["BodyText"]))
    story.append(Paragraph(f"<b>Gerado em:</b> {datetime.now().strftime('%d/%m/%Y %H:%M')}", styles["BodyText"]))
    story.append(Spacer(1, 12))

    story.append(Paragraph("Resumo", styles["Heading2"]))
    resumo = pd.DataFrame(
        [
            ["O.S. no pacote", str(indicadores.get("total", 0))],
            ["Concluídas", str(indicadores.get("concluidas", 0))],
            ["Progresso médio", fmt_percentual(indicadores.get("progresso_medio", 0))],
        ],
        columns=["Indicador", "Valor"],
    )
    story.append(_df_to_table(resumo))
    story.append(Spacer(1, 14))

    story.append(Paragraph("Progresso por subpacote", styles["Heading2"]))
    df_sub = df_subpacotes.copy() if df_subpacotes is not None else pd.DataFrame()
    if not df_sub.empty and "Progresso médio" in df_sub.columns:
        df_sub["Progresso médio"] = df_sub["Progresso médio"].apply(fmt_percentual)
    story.append(_df_to_table(df_sub))
    story.append(Spacer(1, 14))

    story.append(Paragraph("Ordens de serviço", styles["Heading2"]))
    df_o = df_ordens.copy() if df_ordens is not None else pd.DataFrame()
    cols = [c for c in ["O.S.", "Título", "Subpacote", "Responsável", "Status", "Progresso"] if c in df_o.columns]
    df_o = df_o[cols].copy() if cols else df_o
    if not df_o.empty:
        if "Status" in df_o.columns:
            df_o["Status"] = df_o["Status"].apply(fmt_status)
        if "Progresso" in df_o.columns:
            df_o["Progresso"] = df_o["Progresso"].apply(fmt_percentual)
        if "Título" in df_o.columns:
            df_o["Título"] = df_o["Título"].astype(str).str.slice(0, 60)
    story.append(_df_to_table(df_o))

    doc.build(
        story,
        canvasmaker=lambda *args, **kwargs: NumberedCanvas(*args, footer_left=footer_left, **kwargs),
    )

    pdf_bytes = buffer.getvalue()
    buffer.close()
    return pdf_bytes
