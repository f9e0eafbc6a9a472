"""Command-line interface for ppc-auditor."""
