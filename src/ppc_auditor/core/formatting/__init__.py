"""Presentation helpers for step outputs."""

from .analysis_formatter import AnalysisFormatter, find_score_line, is_score_line

__all__ = ["AnalysisFormatter", "find_score_line", "is_score_line"]
