"""Widgets for the audit GUI."""

from .analysis_display_view import AnalysisDisplayView
from .step_indicator_view import StepIndicatorView
from .text_input_view import TextInputView

__all__ = ["AnalysisDisplayView", "StepIndicatorView", "TextInputView"]
