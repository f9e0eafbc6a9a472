"""
PDF rendering of a laid-out audit report with reportlab.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional, Union

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ..errors import ReportExportError
from .layout import DEFAULT_TITLE, PAGE_HEIGHT_MM, PaginatedDocument, ReportLayoutEngine

logger = logging.getLogger(__name__)

REPORT_FILE_NAME = "paid_search_audit_report.pdf"


class PdfReportRenderer:
    """Paints a PaginatedDocument onto A4 pages."""

    def render(self, document: PaginatedDocument, output: Union[str, Path, BinaryIO]) -> None:
        """
        Write the document as a PDF.

        Args:
            document: The laid-out report
            output: Destination file path or binary file object
        """
        target = str(output) if isinstance(output, (str, Path)) else output
        pdf = canvas.Canvas(target, pagesize=A4, invariant=1)
        pdf.setTitle(document.title)
        pdf.setAuthor("ppc-auditor")
        pdf.setCreator("ppc-auditor")

        for page in document.pages:
            for line in page.lines:
                pdf.setFont(line.font_name, line.font_size)
                pdf.setFillColorRGB(*(channel / 255 for channel in line.color))
                pdf.drawString(line.x * mm, (PAGE_HEIGHT_MM - line.y) * mm, line.text)
            pdf.showPage()
        pdf.save()


def export_report(
    text: str,
    output_path: Optional[Union[str, Path]] = None,
    output_dir: Optional[Union[str, Path]] = None,
    generated_at: Optional[datetime] = None,
    title: str = DEFAULT_TITLE,
    file_name: str = REPORT_FILE_NAME,
) -> Path:
    """
    Lay out and write the report as a PDF.

    Args:
        text: Report text in the light markup
        output_path: Full destination path; takes precedence over output_dir
        output_dir: Directory receiving ``file_name`` (current directory by default)
        generated_at: Timestamp printed under the title (now by default)
        title: Title printed on the first page
        file_name: File name used with output_dir

    Returns:
        Path of the written PDF

    Raises:
        ReportExportError: If the file cannot be written
    """
    if output_path is not None:
        destination = Path(output_path)
    else:
        destination = Path(output_dir or Path.cwd()) / file_name

    document = ReportLayoutEngine(title=title).layout(text, generated_at or datetime.now())

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        PdfReportRenderer().render(document, destination)
    except OSError as e:
        logger.error(f"Failed to write report to {destination}: {e}")
        raise ReportExportError(
            f"Could not write report to {destination}",
            context={"path": str(destination)},
            original_exception=e,
        ) from e

    logger.info(f"Exported {document.page_count}-page report to {destination}")
    return destination
