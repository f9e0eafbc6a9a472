"""
Tests for the ppc-audit command-line interface.
"""

from unittest.mock import patch

import pytest

from ppc_auditor.cli import audit_cli
from ppc_auditor.cli.audit_cli import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_USAGE,
    main,
    setup_parser,
)
from ppc_auditor.core.errors import ReportExportError


@pytest.fixture(autouse=True)
def _logging(restore_root_logger):
    yield


@pytest.fixture
def input_files(tmp_path, sample_inputs):
    keywords = tmp_path / "keywords.csv"
    keywords.write_text(sample_inputs["keywords"], encoding="utf-8")
    ad_copy = tmp_path / "ad.txt"
    ad_copy.write_text(sample_inputs["ad_copy"], encoding="utf-8")
    landing = tmp_path / "landing.txt"
    landing.write_text(sample_inputs["landing_page"], encoding="utf-8")
    return [
        "--keywords", str(keywords),
        "--ad-copy", str(ad_copy),
        "--landing-page", str(landing),
    ]


class TestParser:
    def test_run_arguments(self):
        args = setup_parser().parse_args(
            ["--debug", "run", "--keywords", "k.csv", "--ad-copy", "a.txt",
             "--landing-page", "l.txt", "--provider", "mock", "-y"]
        )

        assert args.debug is True
        assert args.command == "run"
        assert args.provider == "mock"
        assert args.yes is True
        assert args.func is audit_cli.cmd_run

    def test_run_requires_all_inputs(self):
        with pytest.raises(SystemExit):
            setup_parser().parse_args(["run", "--keywords", "k.csv"])

    def test_unknown_provider_rejected(self):
        with pytest.raises(SystemExit):
            setup_parser().parse_args(
                ["run", "--keywords", "k", "--ad-copy", "a", "--landing-page", "l",
                 "--provider", "gemini"]
            )


class TestRunCommand:
    def test_full_audit_writes_pdf(self, tmp_path, input_files, capsys):
        out_dir = tmp_path / "reports"

        exit_code = main(["run", *input_files, "--provider", "mock", "--yes",
                          "--output-dir", str(out_dir)])

        assert exit_code == EXIT_OK
        report = out_dir / "paid_search_audit_report.pdf"
        assert report.read_bytes().startswith(b"%PDF")
        output = capsys.readouterr().out
        assert "Sanitized Keyword Data" in output
        assert "Audit Summary Score" in output
        assert "Report saved to" in output

    def test_confirmation_prompt(self, tmp_path, input_files):
        with patch.object(audit_cli.Confirm, "ask", return_value=True) as ask:
            exit_code = main(["run", *input_files, "--provider", "mock"])

        assert exit_code == EXIT_OK
        ask.assert_called_once()
        assert (tmp_path / "paid_search_audit_report.pdf").exists()

    def test_rejection_stops_before_analysis(self, tmp_path, input_files, capsys):
        with patch.object(audit_cli.Confirm, "ask", return_value=False):
            exit_code = main(["run", *input_files, "--provider", "mock"])

        assert exit_code == EXIT_FAILURE
        assert "Sanitized data rejected" in capsys.readouterr().out
        assert not (tmp_path / "paid_search_audit_report.pdf").exists()

    def test_missing_input_file(self, tmp_path, input_files, capsys):
        input_files[1] = str(tmp_path / "missing.csv")

        exit_code = main(["run", *input_files, "--provider", "mock", "-y"])

        assert exit_code == EXIT_USAGE
        assert "Cannot read" in capsys.readouterr().out

    def test_no_api_key_is_a_configuration_error(self, input_files, capsys):
        exit_code = main(["run", *input_files, "--provider", "anthropic", "-y"])

        assert exit_code == EXIT_USAGE
        assert "Configuration error" in capsys.readouterr().out

    def test_service_failure_is_reported(self, input_files, capsys, monkeypatch):
        from ppc_auditor.core.llm import MockAnalysisService

        monkeypatch.setattr(
            audit_cli,
            "create_analysis_service",
            lambda settings: MockAnalysisService(fail_on=["analyze"]),
        )

        exit_code = main(["run", *input_files, "-y"])

        assert exit_code == EXIT_FAILURE
        assert "Keyword analysis failed" in capsys.readouterr().out

    def test_export_failure(self, input_files, monkeypatch):
        def fail(*args, **kwargs):
            raise ReportExportError("disk full")

        monkeypatch.setattr(audit_cli, "export_report", fail)

        assert main(["run", *input_files, "--provider", "mock", "-y"]) == EXIT_FAILURE


class TestExportCommand:
    def test_export_to_explicit_path(self, tmp_path):
        report = tmp_path / "report.md"
        report.write_text("# Deep Dive\nOverall Performance Score: 6/10\n", encoding="utf-8")
        target = tmp_path / "out" / "audit.pdf"

        exit_code = main(["export", str(report), "-o", str(target)])

        assert exit_code == EXIT_OK
        assert target.read_bytes().startswith(b"%PDF")

    def test_export_uses_configured_directory(self, tmp_path):
        report = tmp_path / "report.md"
        report.write_text("Body", encoding="utf-8")
        config = tmp_path / "ppc-audit.yaml"
        config.write_text(
            f"export_dir: {tmp_path / 'exports'}\nreport_file_name: q3.pdf\n", encoding="utf-8"
        )

        exit_code = main(["--config-file", str(config), "export", str(report)])

        assert exit_code == EXIT_OK
        assert (tmp_path / "exports" / "q3.pdf").exists()


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == EXIT_USAGE
        assert "usage: ppc-audit" in capsys.readouterr().out

    def test_invalid_configuration(self, tmp_path, capsys):
        config = tmp_path / "bad.yaml"
        config.write_text("llm_timeout: -1\n", encoding="utf-8")
        report = tmp_path / "report.md"
        report.write_text("Body", encoding="utf-8")

        exit_code = main(["--config-file", str(config), "export", str(report)])

        assert exit_code == EXIT_USAGE
        assert "Configuration error" in capsys.readouterr().out
