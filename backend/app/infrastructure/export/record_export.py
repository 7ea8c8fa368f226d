"""Spreadsheet (openpyxl) and PDF (reportlab) writers for file records.

Also reads import workbooks back into header-keyed row dicts.
"""

import logging
import zipfile
from collections.abc import Callable, Iterable
from datetime import date, datetime
from enum import Enum
from io import BytesIO
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.comments import Comment
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.domain.entities import FileRecord
from app.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"

HEADER_COLOR = "10B981"
ROW_ALTERNATE_COLOR = "F5F5F5"
MAX_COLUMN_WIDTH = 50
EMPTY = "-"


def _text(value: Any) -> Any:
    if value is None or value == "":
        return EMPTY
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


# Label → getter, in sheet order.
EXPORT_COLUMNS: list[tuple[str, Callable[[FileRecord], Any]]] = [
    ("NO. ITEM", lambda r: r.item_number),
    ("CÓDIGO", lambda r: _text(r.code)),
    ("NOMBRE DE LAS SERIES", lambda r: r.name),
    ("FECHA INICIAL", lambda r: _text(r.start_date)),
    ("FECHA FINAL", lambda r: _text(r.end_date)),
    ("BLOQUE", lambda r: _text(r.block)),
    ("ENTREPAÑO", lambda r: _text(r.shelf)),
    ("UNIDAD DE CONSERVACIÓN", lambda r: _text(r.storage_unit)),
    ("SOPORTE", lambda r: _text(r.support)),
    ("ESTADO", lambda r: _text(r.status)),
    ("PRESTADO A", lambda r: _text(r.borrowed_to)),
]

PDF_COLUMNS: list[tuple[str, Callable[[FileRecord], Any]]] = [
    ("No.", lambda r: r.item_number),
    ("CÓDIGO", lambda r: _text(r.code)),
    ("NOMBRE", lambda r: r.name),
    ("F. INICIAL", lambda r: _text(r.start_date)),
    ("F. FINAL", lambda r: _text(r.end_date)),
    ("UNIDAD", lambda r: _text(r.storage_unit)),
    ("FOLIOS", lambda r: f"{r.folio_start}-{r.folio_end}"),
    ("SOPORTE", lambda r: _text(r.support)),
    ("ESTADO", lambda r: _text(r.status)),
    ("PRESTADO A", lambda r: _text(r.borrowed_to)),
]

# Import header label → record field. Labels are compared upper-cased.
IMPORT_COLUMNS: dict[str, str] = {
    "NO. ITEM": "item_number",
    "CÓDIGO": "code",
    "NOMBRE DE LAS SERIES": "name",
    "FECHA INICIAL": "start_date",
    "FECHA FINAL": "end_date",
    "BLOQUE": "block",
    "ENTREPAÑO": "shelf",
    "UNIDAD DE CONSERVACIÓN": "storage_unit",
    "SOPORTE": "support",
    "FOLIO INICIAL": "folio_start",
    "FOLIO FINAL": "folio_end",
}

TEMPLATE_COLUMNS = [
    ("NO. ITEM", 10, "Número secuencial del registro"),
    ("CÓDIGO", 15, "Código único del documento"),
    ("NOMBRE DE LAS SERIES", 40, "Nombre descriptivo de la serie documental"),
    ("FECHA INICIAL", 15, "Formato: YYYY-MM-DD"),
    ("FECHA FINAL", 15, "Formato: YYYY-MM-DD"),
    ("BLOQUE", 10, "Identificador del bloque (ej: A1, B2, C3)"),
    ("ENTREPAÑO", 12, "Identificador del entrepaño (ej: E1, E2, E3)"),
    ("UNIDAD DE CONSERVACIÓN", 25, "Valores permitidos: CAJA, CARPETA, TOMO, OTRO"),
    ("SOPORTE", 15, "Valores permitidos: PAPEL, DIGITAL, CD, DVD"),
    ("FOLIO INICIAL", 14, "Primer folio de la unidad"),
    ("FOLIO FINAL", 14, "Último folio de la unidad"),
]

TEMPLATE_EXAMPLES = [
    [1, "DOC001", "Actas de Reunión", "2024-01-01", "2024-12-31", "A1", "E1", "CARPETA", "PAPEL", 1, 120],
    [2, "DOC002", "Correspondencia Interna", "2024-02-01", "2024-12-31", "B2", "E3", "TOMO", "PAPEL", 1, 250],
    [3, "DOC003", "Informes de Gestión", "2024-03-01", "2024-12-31", "C1", "E2", "CAJA", "PAPEL", 1, 80],
]

TEMPLATE_INSTRUCTIONS = [
    "INSTRUCCIONES DE USO",
    "",
    "1. No modifique los encabezados de las columnas",
    "2. Respete los formatos de fecha (YYYY-MM-DD)",
    "3. Use los valores permitidos para:",
    "   - UNIDAD DE CONSERVACIÓN: CAJA, CARPETA, TOMO, OTRO",
    "   - SOPORTE: PAPEL, DIGITAL, CD, DVD",
    "4. El NO. ITEM debe ser único y numérico",
    "5. NOMBRE DE LAS SERIES es obligatorio",
    "6. Puede agregar tantas filas como necesite",
    "7. Guarde el archivo en formato .xlsx antes de importar",
]


def filter_by_year(records: Iterable[FileRecord], year: int | None) -> list[FileRecord]:
    """Keep records whose start date falls in ``year`` (all records if None)."""
    if year is None:
        return list(records)
    return [r for r in records if r.start_date is not None and r.start_date.year == year]


def export_filename(extension: str, year: int | None = None) -> str:
    return f"archivos_{year}.{extension}" if year else f"archivos.{extension}"


# ── Excel ────────────────────────────────────────────────────────────

def _style_header_row(ws, row: int, count: int) -> None:
    border = Border(
        left=Side(style="thin"), right=Side(style="thin"),
        top=Side(style="thin"), bottom=Side(style="thin"),
    )
    for col in range(1, count + 1):
        cell = ws.cell(row=row, column=col)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill(start_color=HEADER_COLOR, end_color=HEADER_COLOR, fill_type="solid")
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = border


def _auto_adjust_columns(ws) -> None:
    for column_cells in ws.columns:
        length = max(len(str(cell.value or "")) for cell in column_cells)
        letter = get_column_letter(column_cells[0].column)
        ws.column_dimensions[letter].width = min(length + 2, MAX_COLUMN_WIDTH)


def _to_bytes(wb: Workbook) -> bytes:
    output = BytesIO()
    wb.save(output)
    return output.getvalue()


def export_excel(records: Iterable[FileRecord], year: int | None = None) -> bytes:
    """Render records to an .xlsx workbook with a single "Archivos" sheet."""
    rows = filter_by_year(records, year)
    wb = Workbook()
    ws = wb.active
    ws.title = "Archivos"

    ws.append([label for label, _ in EXPORT_COLUMNS])
    _style_header_row(ws, 1, len(EXPORT_COLUMNS))
    fill = PatternFill(start_color=ROW_ALTERNATE_COLOR, end_color=ROW_ALTERNATE_COLOR, fill_type="solid")
    for index, record in enumerate(rows):
        ws.append([getter(record) for _, getter in EXPORT_COLUMNS])
        if index % 2 == 1:
            for cell in ws[ws.max_row]:
                cell.fill = fill
    ws.freeze_panes = "A2"
    _auto_adjust_columns(ws)

    logger.info("Exported %d records to Excel (year=%s)", len(rows), year)
    return _to_bytes(wb)


def build_import_template() -> bytes:
    """Workbook with the importable columns, example rows and instructions."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Plantilla"
    ws.append([label for label, _, _ in TEMPLATE_COLUMNS])
    _style_header_row(ws, 1, len(TEMPLATE_COLUMNS))
    for col, (_, width, note) in enumerate(TEMPLATE_COLUMNS, start=1):
        ws.cell(row=1, column=col).comment = Comment(note, "Registro de Archivos")
        ws.column_dimensions[get_column_letter(col)].width = width
    for example in TEMPLATE_EXAMPLES:
        ws.append(example)

    instructions = wb.create_sheet("Instrucciones")
    for line in TEMPLATE_INSTRUCTIONS:
        instructions.append([line])
    instructions["A1"].font = Font(bold=True, size=12)
    instructions.column_dimensions["A"].width = 60
    return _to_bytes(wb)


def read_import_rows(content: bytes) -> list[dict[str, Any]]:
    """Read the first sheet of an import workbook.

    Returns one dict per non-empty row, keyed by record field name (unknown
    headers are ignored) plus ``_row`` with the 1-based sheet row number.
    """
    try:
        wb = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError) as exc:
        raise ValidationError(f"Could not read workbook: {exc}", fields=["file"]) from exc

    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        fields = [
            IMPORT_COLUMNS.get(str(label).strip().upper()) if label is not None else None
            for label in header
        ]
        if "name" not in fields:
            raise ValidationError(
                "Workbook is missing the 'NOMBRE DE LAS SERIES' column", fields=["file"]
            )

        parsed: list[dict[str, Any]] = []
        for row_number, row in enumerate(rows, start=2):
            if row is None or all(v is None or str(v).strip() == "" for v in row):
                continue
            entry: dict[str, Any] = {"_row": row_number}
            for field_name, value in zip(fields, row):
                if field_name is not None:
                    entry[field_name] = value
            parsed.append(entry)
        return parsed
    finally:
        wb.close()


# ── PDF ──────────────────────────────────────────────────────────────

def export_pdf(records: Iterable[FileRecord], year: int | None = None) -> bytes:
    """Render records to a landscape PDF table titled "Registro de Archivos"."""
    rows = filter_by_year(records, year)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        name="RegistryTitle",
        parent=styles["Heading1"],
        fontSize=16,
        spaceAfter=6,
    )
    subtitle_style = ParagraphStyle(
        name="RegistrySubtitle",
        parent=styles["Normal"],
        fontSize=12,
        textColor=colors.grey,
        spaceAfter=6,
    )
    cell_style = ParagraphStyle(name="RegistryCell", parent=styles["Normal"], fontSize=8, leading=10)

    elements: list[Any] = [Paragraph("Registro de Archivos", title_style)]
    if year:
        elements.append(Paragraph(f"Año: {year}", subtitle_style))
    elements.append(Spacer(1, 0.2 * inch))

    table_data: list[list[Any]] = [[label for label, _ in PDF_COLUMNS]]
    for record in rows:
        table_data.append([
            Paragraph(str(getter(record)), cell_style) if label == "NOMBRE" else str(getter(record))
            for label, getter in PDF_COLUMNS
        ])

    table_style = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(f"#{HEADER_COLOR}")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("TOPPADDING", (0, 0), (-1, -1), 2),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ]
    if rows:
        table_style.append(
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor(f"#{ROW_ALTERNATE_COLOR}")])
        )
    table = Table(table_data, repeatRows=1)
    table.setStyle(TableStyle(table_style))
    elements.append(table)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        rightMargin=0.5 * inch,
        leftMargin=0.5 * inch,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title="Registro de Archivos",
    )
    doc.build(elements)

    logger.info("Exported %d records to PDF (year=%s)", len(rows), year)
    return buffer.getvalue()
