"""
Protocol definition for the external analysis service.

The audit workflow only ever needs three operations from the language
model, so the boundary is kept to exactly those.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class AnalysisServiceProtocol(Protocol):
    """
    Protocol for a synchronous service that performs the audit analyses.
    """

    def sanitize(self, raw_text: str) -> str:
        """
        Convert raw keyword data into a structured CSV table.

        Args:
            raw_text: Keyword data as pasted or uploaded by the user

        Returns:
            The structured table as CSV text

        Raises:
            AnalysisServiceError: If there's an error communicating with the model
        """
        ...

    def analyze(self, structured_text: str) -> str:
        """
        Analyze keyword performance from a structured table.

        Args:
            structured_text: The approved sanitized table

        Returns:
            Keyword performance analysis as light markdown

        Raises:
            AnalysisServiceError: If there's an error communicating with the model
        """
        ...

    def deep_dive(
        self, keywords_text: str, ad_copy_text: str, landing_page_text: str
    ) -> str:
        """
        Run the full-funnel analysis across keywords, ad copy and landing page.

        Args:
            keywords_text: Keyword data (structured or raw)
            ad_copy_text: Current ad copy
            landing_page_text: Landing page content

        Returns:
            The consolidated optimization report as light markdown

        Raises:
            AnalysisServiceError: If there's an error communicating with the model
        """
        ...
