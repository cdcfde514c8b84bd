"""Excel rendering of reports with openpyxl"""
from pathlib import Path
import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from app.reports.definitions import ReportDocument

HEADER_ROW = 5
MAX_COLUMN_WIDTH = 50


def render_excel(report: ReportDocument, path: Path) -> None:
    """Write title rows, a styled header, data rows and a summary block to path"""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = report.definition.type[:31]

    # Styling
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="2E7D32", end_color="2E7D32", fill_type="solid")
    center_alignment = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="D9D9D9")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    column_count = len(report.headings)
    last_column = get_column_letter(column_count)

    # Title rows
    ws.merge_cells(f"A1:{last_column}1")
    ws["A1"] = f"{report.organisation} - {report.title}"
    ws["A1"].font = Font(bold=True, size=14)
    ws["A1"].alignment = center_alignment

    ws.merge_cells(f"A2:{last_column}2")
    ws["A2"] = f"Période : {report.period}"
    ws["A2"].alignment = center_alignment

    ws.merge_cells(f"A3:{last_column}3")
    ws["A3"] = f"Généré le : {report.generated_at}"
    ws["A3"].alignment = center_alignment

    for col, heading in enumerate(report.headings, 1):
        cell = ws.cell(row=HEADER_ROW, column=col, value=heading)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = center_alignment
        cell.border = border

    for row_idx, row in enumerate(report.rows, HEADER_ROW + 1):
        for col_idx, value in enumerate(row, 1):
            ws.cell(row=row_idx, column=col_idx, value=value).border = border

    summary_row = HEADER_ROW + len(report.rows) + 2
    ws.cell(row=summary_row, column=1, value="Résumé").font = Font(bold=True, size=12)
    for offset, (label, value) in enumerate(report.summary, 1):
        ws.cell(row=summary_row + offset, column=1, value=label).font = Font(bold=True)
        ws.cell(row=summary_row + offset, column=2, value=value)

    # Auto-adjust column widths from the header and data rows
    for col in range(1, column_count + 1):
        values = [report.headings[col - 1]] + [row[col - 1] for row in report.rows]
        max_length = max(len(str(value)) for value in values)
        ws.column_dimensions[get_column_letter(col)].width = min(max_length + 2, MAX_COLUMN_WIDTH)

    ws.freeze_panes = ws.cell(row=HEADER_ROW + 1, column=1)
    wb.save(path)
