"""
Audit GUI package.

A PyQt6 desktop front end that walks the analyst through the audit steps
one page at a time.
"""

__all__ = ["app", "main_window"]
