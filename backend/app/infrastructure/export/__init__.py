from .record_export import (
    PDF_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    build_import_template,
    export_excel,
    export_filename,
    export_pdf,
    filter_by_year,
    read_import_rows,
)

__all__ = [
    "PDF_MEDIA_TYPE",
    "XLSX_MEDIA_TYPE",
    "build_import_template",
    "export_excel",
    "export_filename",
    "export_pdf",
    "filter_by_year",
    "read_import_rows",
]
