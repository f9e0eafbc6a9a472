"""
Deterministic analysis service for tests, demos and offline use.

The responses are derived from the input with simple arithmetic so that the
whole workflow can be exercised without a language model.
"""

import csv
import io
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import AnalysisServiceError
from .analysis_service_protocol import AnalysisServiceProtocol

logger = logging.getLogger(__name__)

CORE_COLUMNS = ["Keyword", "Impressions", "Clicks", "CTR", "Conversions", "CVR", "CPC", "Cost"]

CTR_BENCHMARK = 4.0
CVR_BENCHMARK = 5.0

_ALIASES = {
    "keyword": "Keyword",
    "keywords": "Keyword",
    "kw": "Keyword",
    "search term": "Keyword",
    "impressions": "Impressions",
    "impr": "Impressions",
    "impr.": "Impressions",
    "clicks": "Clicks",
    "ctr": "CTR",
    "conversions": "Conversions",
    "conv": "Conversions",
    "conv.": "Conversions",
    "cvr": "CVR",
    "conv. rate": "CVR",
    "cpc": "CPC",
    "avg. cpc": "CPC",
    "cost": "Cost",
    "spend": "Cost",
}


def _number(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    cleaned = value.strip().replace(",", "").replace("%", "").replace("$", "")
    try:
        return float(cleaned)
    except ValueError:
        return None


def _format(value: Optional[float], suffix: str = "") -> str:
    if value is None:
        return "N/A"
    if float(value).is_integer() and not suffix:
        return str(int(value))
    return f"{value:.2f}{suffix}"


def _sniff_rows(text: str) -> List[List[str]]:
    lines = [line for line in text.replace("\r\n", "\n").split("\n") if line.strip()]
    if not lines:
        return []
    sample = lines[0]
    delimiter = "\t" if "\t" in sample else ";" if sample.count(";") > sample.count(",") else ","
    return [
        [cell.strip() for cell in row]
        for row in csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter)
    ]


def parse_keyword_rows(text: str) -> Tuple[List[str], List[Dict[str, str]]]:
    """
    Parse delimited keyword data with a header row.

    Returns:
        The column names (core names where recognized) and one dict per row
    """
    rows = _sniff_rows(text)
    if not rows:
        return [], []
    header = [_ALIASES.get(name.lower(), name) for name in rows[0]]
    records = [dict(zip(header, row)) for row in rows[1:] if any(row)]
    return header, records


class MockAnalysisService(AnalysisServiceProtocol):
    """Returns deterministic responses computed from the input."""

    def __init__(
        self,
        responses: Optional[Dict[str, str]] = None,
        fail_on: Iterable[str] = (),
    ):
        """
        Args:
            responses: Fixed responses per operation name, used verbatim
            fail_on: Operation names that raise AnalysisServiceError
        """
        self.responses = dict(responses or {})
        self.fail_on = set(fail_on)
        self.calls: List[Tuple[str, Tuple[str, ...]]] = []

    def _record(self, operation: str, *arguments: str) -> Optional[str]:
        self.calls.append((operation, arguments))
        logger.debug(f"Mock analysis service called: {operation}")
        if operation in self.fail_on:
            raise AnalysisServiceError(f"Mock failure for '{operation}'")
        return self.responses.get(operation)

    def sanitize(self, raw_text: str) -> str:
        fixed = self._record("sanitize", raw_text)
        if fixed is not None:
            return fixed

        header, records = parse_keyword_rows(raw_text)
        extended = [name for name in header if name not in CORE_COLUMNS]
        out = io.StringIO()
        writer = csv.writer(out, lineterminator="\n")
        writer.writerow(CORE_COLUMNS + extended)

        for record in records:
            impressions = _number(record.get("Impressions"))
            clicks = _number(record.get("Clicks"))
            conversions = _number(record.get("Conversions"))
            cpc = _number(record.get("CPC"))
            cost = _number(record.get("Cost"))

            ctr = _number(record.get("CTR"))
            if ctr is None and impressions and clicks is not None:
                ctr = clicks / impressions * 100
            cvr = _number(record.get("CVR"))
            if cvr is None and clicks and conversions is not None:
                cvr = conversions / clicks * 100
            if cost is None and clicks is not None and cpc is not None:
                cost = clicks * cpc
            if cpc is None and clicks and cost is not None:
                cpc = cost / clicks

            writer.writerow(
                [
                    record.get("Keyword") or "N/A",
                    _format(impressions if impressions is not None else 0),
                    _format(clicks if clicks is not None else 0),
                    _format(ctr, "%"),
                    _format(conversions if conversions is not None else 0),
                    _format(cvr, "%"),
                    _format(cpc),
                    _format(cost),
                ]
                + [record.get(name) or "N/A" for name in extended]
            )
        return out.getvalue().strip()

    def analyze(self, structured_text: str) -> str:
        fixed = self._record("analyze", structured_text)
        if fixed is not None:
            return fixed

        groups = self._categorize(structured_text)
        lines = [
            "# Keyword Performance Analysis",
            "",
            f"Benchmarks: CTR {CTR_BENCHMARK:.0f}%, CVR {CVR_BENCHMARK:.0f}%.",
            "All keywords are Exact Match; budget is controlled at the campaign level.",
            "",
        ]
        for title, keywords in groups.items():
            lines.append(f"## {title} Keywords")
            if keywords:
                lines.extend(f"- {keyword}: {reason}" for keyword, reason in keywords)
            else:
                lines.append("- None")
            lines.append("")
        total = sum(len(keywords) for keywords in groups.values())
        lines.append(f"Summary: {total} keyword(s) reviewed.")
        return "\n".join(lines)

    def deep_dive(
        self, keywords_text: str, ad_copy_text: str, landing_page_text: str
    ) -> str:
        fixed = self._record("deep_dive", keywords_text, ad_copy_text, landing_page_text)
        if fixed is not None:
            return fixed

        groups = self._categorize(keywords_text)
        score = self._score(groups)
        top = [keyword for keyword, _ in groups["High-performing"] + groups["Average-performing"]]
        focus = ", ".join(top[:3]) or "your strongest terms"
        weak = [keyword for keyword, _ in groups["Underperforming"]]

        lines = [
            "# Holistic Performance Deep Dive",
            "",
            "## Full-Funnel Alignment",
            f"Ad Copy: {ad_copy_text.strip() or 'Not provided'}",
            f"Landing Page: {landing_page_text.strip() or 'Not provided'}",
            "",
            "## Gaps",
            "- Check that the headline repeats the exact keyword the user searched for.",
            "- Make the landing page offer visible above the fold.",
            "",
            "# Optimization Recommendations",
            "",
            "## Keyword Actions",
        ]
        if weak:
            lines.extend(f"- Lower bids or pause: {keyword}" for keyword in weak)
        else:
            lines.append("- No keyword needs to be paused.")
        lines.append(f"- Prioritize budget for: {focus}")
        lines.extend(
            [
                "",
                "## Ad Copy",
                "### Revised Ad",
                f"{focus.title()} | Official Store | Free Shipping Today",
                "",
                "## Landing Page",
                "### Revised Product Description",
                f"Find {focus} built for everyday comfort. Order today and get free delivery.",
                "",
                "## Strategic Context",
                "All keywords are Exact Match, so performance depends on the intent of those exact terms.",
                "Budget is set at the campaign level and shared across ad groups.",
                "",
                "## Summary",
                f"Overall Performance Score: {score}/10",
            ]
        )
        return "\n".join(lines)

    def _categorize(self, table_text: str) -> Dict[str, List[Tuple[str, str]]]:
        groups: Dict[str, List[Tuple[str, str]]] = {
            "High-performing": [],
            "Average-performing": [],
            "Underperforming": [],
        }
        _, records = parse_keyword_rows(table_text)
        for record in records:
            impressions = _number(record.get("Impressions"))
            clicks = _number(record.get("Clicks"))
            conversions = _number(record.get("Conversions"))
            ctr = _number(record.get("CTR"))
            if ctr is None and impressions and clicks is not None:
                ctr = clicks / impressions * 100
            cvr = _number(record.get("CVR"))
            if cvr is None and clicks and conversions is not None:
                cvr = conversions / clicks * 100

            met = int((ctr or 0) >= CTR_BENCHMARK) + int((cvr or 0) >= CVR_BENCHMARK)
            title = ["Underperforming", "Average-performing", "High-performing"][met]
            reason = f"CTR {_format(ctr, '%')}, CVR {_format(cvr, '%')}"
            groups[title].append((record.get("Keyword") or "N/A", reason))
        return groups

    @staticmethod
    def _score(groups: Dict[str, List[Tuple[str, str]]]) -> int:
        total = sum(len(keywords) for keywords in groups.values())
        if not total:
            return 5
        met = 2 * len(groups["High-performing"]) + len(groups["Average-performing"])
        return max(1, min(10, round(1 + 9 * met / (2 * total))))
