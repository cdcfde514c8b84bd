"""PDF rendering of reports with reportlab"""
from functools import partial
from pathlib import Path
from xml.sax.saxutils import escape
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import (
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)
from app.reports.definitions import ReportDocument

HEADER_COLOR = colors.HexColor("#2E7D32")
ALT_ROW_COLOR = colors.HexColor("#F1F8E9")


def _draw_footer(canvas, doc, report: ReportDocument):
    width, _ = doc.pagesize
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.grey)
    canvas.drawString(doc.leftMargin, 1 * cm, report.organisation)
    canvas.drawRightString(width - doc.rightMargin, 1 * cm, f"Page {doc.page}")


def _draw_cover_frame(canvas, doc, report: ReportDocument):
    canvas.saveState()
    _draw_footer(canvas, doc, report)
    canvas.restoreState()


def _draw_page_frame(canvas, doc, report: ReportDocument):
    """Header and footer drawn on every page after the cover"""
    canvas.saveState()
    width, height = doc.pagesize
    canvas.setFont("Helvetica-Bold", 9)
    canvas.setFillColor(HEADER_COLOR)
    canvas.drawString(doc.leftMargin, height - 1.2 * cm, report.title)
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.grey)
    canvas.drawRightString(width - doc.rightMargin, height - 1.2 * cm, f"Généré le {report.generated_at}")
    canvas.setStrokeColor(HEADER_COLOR)
    canvas.setLineWidth(0.5)
    canvas.line(doc.leftMargin, height - 1.4 * cm, width - doc.rightMargin, height - 1.4 * cm)
    _draw_footer(canvas, doc, report)
    canvas.restoreState()


def _cover(report: ReportDocument, styles) -> list:
    title_style = ParagraphStyle(
        "CoverTitle",
        parent=styles["Title"],
        fontSize=24,
        textColor=HEADER_COLOR,
        spaceAfter=24,
    )
    info_style = ParagraphStyle("CoverInfo", parent=styles["Normal"], fontSize=12, alignment=1, leading=18)
    return [
        Spacer(1, 5 * cm),
        Paragraph(escape(report.organisation), info_style),
        Spacer(1, 0.5 * cm),
        Paragraph(escape(report.title), title_style),
        Paragraph(escape(report.definition.description), info_style),
        Spacer(1, 1 * cm),
        Paragraph(f"Période : {escape(report.period)}", info_style),
        Paragraph(f"Généré le : {escape(report.generated_at)}", info_style),
        Paragraph(f"Nombre d'enregistrements : {len(report.rows)}", info_style),
        PageBreak(),
    ]


def _data_table(report: ReportDocument, available_width: float, styles) -> Table:
    cell_style = ParagraphStyle("Cell", parent=styles["Normal"], fontSize=8, leading=10)
    header_style = ParagraphStyle("HeaderCell", parent=cell_style, fontName="Helvetica-Bold", textColor=colors.white)

    data = [[Paragraph(escape(h), header_style) for h in report.headings]]
    for row in report.rows:
        data.append([Paragraph(escape(value), cell_style) for value in row])

    widths = [available_width * w for w in report.definition.column_widths]
    table = Table(data, colWidths=widths, repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("TOPPADDING", (0, 0), (-1, 0), 8),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
    ]
    for index in range(2, len(data), 2):
        style.append(("BACKGROUND", (0, index), (-1, index), ALT_ROW_COLOR))
    table.setStyle(TableStyle(style))
    return table


def _summary_table(report: ReportDocument) -> Table:
    table = Table([[label, value] for label, value in report.summary], colWidths=[8 * cm, 4 * cm])
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]))
    return table


def render_pdf(report: ReportDocument, path: Path) -> None:
    """Write a cover page, the data table and a summary section to path"""
    doc = SimpleDocTemplate(
        str(path),
        pagesize=landscape(A4),
        title=report.title,
        author=report.organisation,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
        leftMargin=1.5 * cm,
        rightMargin=1.5 * cm,
    )
    styles = getSampleStyleSheet()
    elements = _cover(report, styles)

    elements.append(Paragraph(escape(report.title), styles["Heading1"]))
    elements.append(Spacer(1, 0.3 * cm))
    if report.rows:
        elements.append(_data_table(report, doc.width, styles))
    else:
        elements.append(Paragraph("Aucune donnée pour la période sélectionnée.", styles["Normal"]))

    elements.append(Spacer(1, 1 * cm))
    elements.append(Paragraph("Résumé", styles["Heading2"]))
    elements.append(_summary_table(report))

    doc.build(
        elements,
        onFirstPage=partial(_draw_cover_frame, report=report),
        onLaterPages=partial(_draw_page_frame, report=report),
    )
