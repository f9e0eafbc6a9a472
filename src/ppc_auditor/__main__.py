#!/usr/bin/env python3

"""
Main entry point for the ppc_auditor package.

This module allows the package to be executed directly with:
python -m ppc_auditor            (command line)
python -m ppc_auditor --gui      (desktop app)
"""

import sys


def main() -> int:
    if "--gui" in sys.argv[1:]:
        from ppc_auditor.gui.__main__ import main as gui_main

        sys.argv.remove("--gui")
        return gui_main()

    from ppc_auditor.cli.audit_cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
