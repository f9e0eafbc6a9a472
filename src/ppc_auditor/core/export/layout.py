"""
Page layout for the exported audit report.

The layout engine turns report text in a light markup (``# ``, ``## `` and
``### `` headings, blank-line paragraph breaks, plain body lines) into a
sequence of pages holding positioned lines. It draws nothing; the result is a
plain value that the PDF renderer paints and that tests can compare.

Coordinates are millimetres on an A4 portrait page, measured from the top
edge: ``y`` grows downwards and is the text baseline.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterator, List, Tuple

from reportlab.pdfbase.pdfmetrics import stringWidth

logger = logging.getLogger(__name__)

PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
MARGIN_MM = 20.0
CONTENT_WIDTH_MM = PAGE_WIDTH_MM - 2 * MARGIN_MM

TITLE_Y_MM = 30.0
TITLE_GAP_MM = 10.0
TIMESTAMP_GAP_MM = 15.0
BLANK_LINE_MM = 5.0

PAGE_BREAK_Y_MM = 275.0
NEW_PAGE_Y_MM = 20.0

DEFAULT_TITLE = "Paid Search Audit Report"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_POINTS_PER_MM = 72.0 / 25.4

BLACK = (0, 0, 0)
GREY = (100, 100, 100)


class Tier(Enum):
    """Visual tier of a report line."""

    TITLE = "title"
    TIMESTAMP = "timestamp"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    BODY = "body"
    BLANK = "blank"


@dataclass(frozen=True)
class TierStyle:
    font_name: str
    font_size: float
    lead_mm: float = 0.0
    trail_mm: float = 0.0
    color: Tuple[int, int, int] = BLACK

    @property
    def advance_mm(self) -> float:
        """Vertical step after each emitted line."""
        return self.font_size * 0.5 + 2


STYLES = {
    Tier.TITLE: TierStyle("Helvetica-Bold", 18),
    Tier.TIMESTAMP: TierStyle("Helvetica", 8, color=GREY),
    Tier.H1: TierStyle("Helvetica-Bold", 16, lead_mm=5, trail_mm=2),
    Tier.H2: TierStyle("Helvetica-Bold", 14, lead_mm=4, trail_mm=2),
    Tier.H3: TierStyle("Helvetica-Bold", 12, lead_mm=3, trail_mm=1),
    Tier.BODY: TierStyle("Helvetica", 10),
}

# Longest marker first so "### " is never read as "# "
_HEADING_MARKERS = (("### ", Tier.H3), ("## ", Tier.H2), ("# ", Tier.H1))


@dataclass(frozen=True)
class PlacedLine:
    """A single physical line of text at its final position."""

    text: str
    x: float
    y: float
    font_name: str
    font_size: float
    tier: Tier
    color: Tuple[int, int, int] = BLACK


@dataclass(frozen=True)
class Page:
    number: int
    lines: Tuple[PlacedLine, ...]


@dataclass(frozen=True)
class PaginatedDocument:
    """The laid-out report: a title, a timestamp and one or more pages."""

    title: str
    generated_at: datetime
    pages: Tuple[Page, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def iter_lines(self) -> Iterator[PlacedLine]:
        for page in self.pages:
            yield from page.lines

    def lines_of(self, tier: Tier) -> List[PlacedLine]:
        return [line for line in self.iter_lines() if line.tier is tier]


def classify_line(line: str) -> Tuple[Tier, str]:
    """
    Determine the tier of a report line by its prefix.

    Returns:
        The tier and the text to print (heading markers removed)
    """
    for marker, tier in _HEADING_MARKERS:
        if line.startswith(marker):
            return tier, line[len(marker) :]
    if not line.strip():
        return Tier.BLANK, ""
    return Tier.BODY, line


def text_width_mm(text: str, font_name: str, font_size: float) -> float:
    return stringWidth(text, font_name, font_size) / _POINTS_PER_MM


def wrap_text(text: str, font_name: str, font_size: float, max_width_mm: float) -> List[str]:
    """
    Greedy word wrap at the given font metrics.

    Words wider than the line are broken at character level.
    """
    text = text.replace("\t", "    ").rstrip()
    if not text:
        return [""]

    def fits(candidate: str) -> bool:
        return text_width_mm(candidate, font_name, font_size) <= max_width_mm

    lines: List[str] = []
    current = ""
    for word in text.split(" "):
        candidate = f"{current} {word}" if current else word
        if fits(candidate):
            current = candidate
            continue
        if current:
            lines.append(current)
            current = ""
        while word and not fits(word):
            cut = len(word) - 1
            while cut > 1 and not fits(word[:cut]):
                cut -= 1
            lines.append(word[:cut])
            word = word[cut:]
        current = word
    if current or not lines:
        lines.append(current)
    return lines


class ReportLayoutEngine:
    """
    Lays report text out on A4 pages.

    Layout is pure: the same text and timestamp always give an equal
    PaginatedDocument.
    """

    def __init__(self, title: str = DEFAULT_TITLE):
        self.title = title

    def layout(self, text: str, generated_at: datetime) -> PaginatedDocument:
        """
        Lay out the report.

        Args:
            text: Report text in the light markup
            generated_at: Timestamp printed under the title

        Returns:
            The paginated document
        """
        pages: List[Tuple[PlacedLine, ...]] = []
        current: List[PlacedLine] = []
        y = TITLE_Y_MM

        def place(line_text: str, tier: Tier, at_y: float) -> None:
            style = STYLES[tier]
            current.append(
                PlacedLine(
                    text=line_text,
                    x=MARGIN_MM,
                    y=round(at_y, 4),
                    font_name=style.font_name,
                    font_size=style.font_size,
                    tier=tier,
                    color=style.color,
                )
            )

        place(self.title, Tier.TITLE, y)
        y += TITLE_GAP_MM
        place(f"Generated on: {generated_at.strftime(TIMESTAMP_FORMAT)}", Tier.TIMESTAMP, y)
        y += TIMESTAMP_GAP_MM

        for raw_line in (text or "").replace("\r\n", "\n").split("\n"):
            tier, content = classify_line(raw_line)
            if tier is Tier.BLANK:
                y += BLANK_LINE_MM
                continue

            style = STYLES[tier]
            y += style.lead_mm
            for physical in wrap_text(content, style.font_name, style.font_size, CONTENT_WIDTH_MM):
                if y > PAGE_BREAK_Y_MM:
                    pages.append(tuple(current))
                    current = []
                    y = NEW_PAGE_Y_MM
                place(physical, tier, y)
                y += style.advance_mm
            y += style.trail_mm

        pages.append(tuple(current))
        document = PaginatedDocument(
            title=self.title,
            generated_at=generated_at,
            pages=tuple(Page(number=index + 1, lines=lines) for index, lines in enumerate(pages)),
        )
        logger.debug(f"Laid out report on {document.page_count} page(s)")
        return document
