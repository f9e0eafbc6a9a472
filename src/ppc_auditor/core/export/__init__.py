"""Report export: pure page layout plus reportlab PDF rendering."""

from .layout import (
    CONTENT_WIDTH_MM,
    MARGIN_MM,
    NEW_PAGE_Y_MM,
    PAGE_BREAK_Y_MM,
    Page,
    PaginatedDocument,
    PlacedLine,
    ReportLayoutEngine,
    Tier,
    classify_line,
    wrap_text,
)
from .pdf_renderer import REPORT_FILE_NAME, PdfReportRenderer, export_report

__all__ = [
    "CONTENT_WIDTH_MM",
    "MARGIN_MM",
    "NEW_PAGE_Y_MM",
    "PAGE_BREAK_Y_MM",
    "Page",
    "PaginatedDocument",
    "PdfReportRenderer",
    "PlacedLine",
    "REPORT_FILE_NAME",
    "ReportLayoutEngine",
    "Tier",
    "classify_line",
    "export_report",
    "wrap_text",
]
