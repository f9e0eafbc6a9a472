"""
Launch the audit wizard: ``python -m ppc_auditor.gui`` or ``ppc-audit-gui``.

Settings are resolved before Qt starts, so a broken ppc-audit.yaml is
reported on the terminal instead of as a half-built window.
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console

from ppc_auditor.core.errors import ConfigurationError
from ppc_auditor.gui.app import create_app
from ppc_auditor.gui.main_window import MainWindow
from ppc_auditor.utils.logging_config import configure_logging, set_correlation_id
from ppc_auditor.utils.settings import load_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ppc-audit-gui", description="Paid search audit wizard")
    parser.add_argument("--config-file", help="Path to a ppc-audit.yaml file")
    parser.add_argument(
        "--provider", choices=["auto", "anthropic", "openai", "mock"], help="Language model provider"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the GUI until the window closes; returns the Qt exit code, or 2 on bad settings."""
    # Qt consumes its own flags (-platform, -style); ours are parsed leniently
    args, qt_args = build_parser().parse_known_args(sys.argv[1:] if argv is None else argv)
    overrides = {"llm_provider": args.provider} if args.provider else None
    try:
        settings = load_settings(
            args.config_file, force_reload=True, debug=args.debug, overrides=overrides
        )
    except ConfigurationError as e:
        Console(stderr=True).print(f"[bold red]Configuration error:[/bold red] {e}")
        return 2

    configure_logging(settings, log_file=args.log_file)
    set_correlation_id()

    app = create_app(["ppc-audit-gui", *qt_args], settings)
    window = MainWindow(app)
    window.show()

    logger.info(f"Starting PPC Audit Analyst GUI (provider: {settings.llm_provider})")
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
