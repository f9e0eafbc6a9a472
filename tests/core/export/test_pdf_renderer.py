"""
Tests for PDF export.
"""

import io
from datetime import datetime
from unittest.mock import patch

import pytest

from ppc_auditor.core.errors import ReportExportError
from ppc_auditor.core.export import (
    REPORT_FILE_NAME,
    PdfReportRenderer,
    ReportLayoutEngine,
    export_report,
)

GENERATED_AT = datetime(2024, 3, 5, 14, 7, 9)
REPORT = "# Holistic Performance Deep Dive\n\n## Summary\nOverall Performance Score: 6/10"


class TestPdfReportRenderer:
    def test_render_to_stream_writes_pdf(self):
        document = ReportLayoutEngine().layout(REPORT, GENERATED_AT)
        buffer = io.BytesIO()

        PdfReportRenderer().render(document, buffer)

        assert buffer.getvalue().startswith(b"%PDF")

    def test_same_input_gives_identical_bytes(self):
        document = ReportLayoutEngine().layout(REPORT, GENERATED_AT)
        first, second = io.BytesIO(), io.BytesIO()

        PdfReportRenderer().render(document, first)
        PdfReportRenderer().render(document, second)

        assert first.getvalue() == second.getvalue()


class TestExportReport:
    def test_default_file_name_in_output_dir(self, tmp_path):
        path = export_report(REPORT, output_dir=tmp_path, generated_at=GENERATED_AT)

        assert path == tmp_path / REPORT_FILE_NAME
        assert path.read_bytes().startswith(b"%PDF")

    def test_output_path_takes_precedence(self, tmp_path):
        target = tmp_path / "nested" / "custom.pdf"

        path = export_report(
            REPORT, output_path=target, output_dir=tmp_path / "ignored", generated_at=GENERATED_AT
        )

        assert path == target
        assert target.exists()
        assert not (tmp_path / "ignored").exists()

    def test_defaults_to_current_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        path = export_report(REPORT, generated_at=GENERATED_AT)

        assert path.resolve() == (tmp_path / REPORT_FILE_NAME).resolve()

    def test_long_report_produces_several_pages(self, tmp_path):
        text = "\n".join(f"## Section {i}\nDetail line for section {i}" for i in range(60))

        path = export_report(text, output_dir=tmp_path, generated_at=GENERATED_AT)

        document = ReportLayoutEngine().layout(text, GENERATED_AT)
        assert document.page_count > 1
        assert path.stat().st_size > 0

    def test_write_failure_raises_export_error(self, tmp_path):
        with patch.object(PdfReportRenderer, "render", side_effect=PermissionError("denied")):
            with pytest.raises(ReportExportError) as excinfo:
                export_report(REPORT, output_dir=tmp_path)

        assert excinfo.value.error_code == "EXPORT_001"
        assert isinstance(excinfo.value.original_exception, PermissionError)
