#!/usr/bin/env python3

"""
Command-line interface for the paid search auditor.

``ppc-audit run`` drives the same step-by-step workflow as the desktop app
from input files; ``ppc-audit export`` turns an existing report into a PDF.
"""

import argparse
import csv
import io
import logging
import os
import sys
from typing import List, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from ..core.errors import ConfigurationError, PpcAuditError, ReportExportError
from ..core.export import export_report
from ..core.formatting import find_score_line
from ..core.llm import create_analysis_service
from ..core.state_machine import TransitionOutcome
from ..core.workflow import AuditWorkflowController
from ..utils.input_files import read_text_input
from ..utils.logging_config import configure_logging, set_correlation_id
from ..utils.settings import Settings, load_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

PROVIDERS = ["auto", "anthropic", "openai", "mock"]

console = Console(
    force_terminal=True if os.environ.get("FORCE_COLOR", "0") == "1" else None
)


def setup_parser() -> argparse.ArgumentParser:
    """Set up the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="ppc-audit",
        description="Guided paid search audit: sanitize keywords, analyze, deep dive, export",
    )
    parser.add_argument("--config-file", type=str, help="Path to a ppc-audit.yaml file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress messages")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")
    parser.add_argument(
        "--structured-logs", action="store_true", help="Emit logs as JSON lines"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    run_parser = subparsers.add_parser(
        "run",
        help="Run the full audit from input files",
        description="Sanitize, analyze and deep-dive keyword data, then export the report",
    )
    run_parser.add_argument(
        "--keywords", required=True, help="Keyword data file (.csv or .txt)"
    )
    run_parser.add_argument("--ad-copy", required=True, help="Ad copy text file")
    run_parser.add_argument(
        "--landing-page", required=True, help="Landing page content text file"
    )
    run_parser.add_argument(
        "--output-dir", type=str, help="Directory for the PDF report (default: settings.export_dir)"
    )
    run_parser.add_argument(
        "--provider", choices=PROVIDERS, help="Analysis provider (overrides configuration)"
    )
    run_parser.add_argument(
        "-y", "--yes", action="store_true", help="Approve the sanitized data without asking"
    )
    run_parser.set_defaults(func=cmd_run)

    export_parser = subparsers.add_parser(
        "export",
        help="Export an existing report text file as PDF",
        description="Lay out a markdown-style report and write it as a paginated PDF",
    )
    export_parser.add_argument("report", help="Report text file")
    export_parser.add_argument("-o", "--output", type=str, help="Destination PDF path")
    export_parser.set_defaults(func=cmd_export)

    return parser


def configure_settings(args: argparse.Namespace) -> Settings:
    """Load settings and apply command-line overrides."""
    overrides = {}
    if getattr(args, "provider", None):
        overrides["llm_provider"] = args.provider
    return load_settings(
        args.config_file, force_reload=True, debug=args.debug, overrides=overrides
    )


def _configure_logging(args: argparse.Namespace, settings: Settings) -> None:
    if args.debug:
        level = "DEBUG"
    elif args.verbose:
        level = "INFO"
    else:
        level = "WARNING"
    configure_logging(
        settings,
        log_file=args.log_file,
        structured=args.structured_logs,
        log_level_override=level,
    )


def _read_inputs(paths: List[str]) -> Optional[List[str]]:
    contents = []
    for path in paths:
        try:
            contents.append(read_text_input(path))
        except OSError as e:
            console.print(f"[bold red]Cannot read {path}: {e}[/bold red]")
            return None
    return contents


def display_table(csv_text: str) -> None:
    """Show the sanitized CSV as a table for review."""
    rows = list(csv.reader(io.StringIO(csv_text)))
    if not rows:
        console.print("[yellow]The sanitized table is empty.[/yellow]")
        return
    table = Table(title="Sanitized Keyword Data", header_style="bold cyan")
    for column in rows[0]:
        table.add_column(column)
    for row in rows[1:]:
        table.add_row(*row[: len(rows[0])])
    console.print(table)


def display_markdown(title: str, text: str) -> None:
    console.rule(f"[bold purple]{title}[/bold purple]")
    console.print(Markdown(text))


def _report_failure(step: str, outcome: TransitionOutcome) -> int:
    console.print(f"[bold red]{step} failed:[/bold red] {outcome.error}")
    return EXIT_FAILURE


def cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    """Command handler for the run command."""
    inputs = _read_inputs([args.keywords, args.ad_copy, args.landing_page])
    if inputs is None:
        return EXIT_USAGE
    keywords, ad_copy, landing_page = inputs

    service = create_analysis_service(settings)
    controller = AuditWorkflowController(service)

    with console.status("Sanitizing keyword data..."):
        outcome = controller.submit_keywords(keywords)
    if not outcome.succeeded:
        return _report_failure("Sanitizing", outcome)

    display_table(controller.state.sanitized_table or "")
    approved = args.yes or Confirm.ask(
        "Approve the sanitized data and start the analysis?", default=True, console=console
    )
    if not approved:
        controller.reject()
        console.print("[yellow]Sanitized data rejected. Fix the input file and run again.[/yellow]")
        return EXIT_FAILURE

    with console.status("Analyzing keyword performance..."):
        outcome = controller.approve()
    if not outcome.succeeded:
        return _report_failure("Keyword analysis", outcome)
    display_markdown("Keyword Performance Analysis", controller.state.keyword_analysis_report)

    controller.continue_()
    outcome = controller.submit_ad_copy(ad_copy)
    if not outcome.succeeded:
        return _report_failure("Ad copy", outcome)

    with console.status("Running the full-funnel deep dive..."):
        outcome = controller.submit_landing_page(landing_page)
    if not outcome.succeeded:
        return _report_failure("Deep dive", outcome)

    report = controller.state.final_report
    display_markdown("Optimization Report", report)
    score_line = find_score_line(report)
    if score_line:
        console.print(Panel(score_line, title="Audit Summary Score", border_style="magenta"))

    path = export_report(
        report,
        output_dir=args.output_dir or settings.export_dir,
        title=settings.report_title,
        file_name=settings.report_file_name,
    )
    console.print(f"[bold green]Report saved to {path}[/bold green]")
    return EXIT_OK


def cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    """Command handler for the export command."""
    inputs = _read_inputs([args.report])
    if inputs is None:
        return EXIT_USAGE

    path = export_report(
        inputs[0],
        output_path=args.output,
        output_dir=settings.export_dir,
        title=settings.report_title,
        file_name=settings.report_file_name,
    )
    console.print(f"[bold green]Report saved to {path}[/bold green]")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI application."""
    parser = setup_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_USAGE

    try:
        settings = configure_settings(args)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        return EXIT_USAGE

    _configure_logging(args, settings)
    set_correlation_id()

    try:
        return args.func(args, settings)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        return EXIT_USAGE
    except ReportExportError as e:
        console.print(f"[bold red]Export failed:[/bold red] {e}")
        return EXIT_FAILURE
    except PpcAuditError as e:
        logger.error(f"An error occurred: {e}")
        if args.debug:
            logger.exception("Detailed error information:")
        console.print(f"[bold red]Error:[/bold red] {e}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
