"""
HTML rendering of analysis text for live display.

Step outputs use a light markup; this module turns it into simple HTML that
Qt rich-text widgets can show. The score callout is a presentation hint
only: nothing downstream depends on whether a score line was found.
"""

import html
from typing import List, Optional

SCORE_MARKERS = ("overall performance score", "score:")
SCORE_CAPTION = "Audit Summary Score"

_STYLES = {
    "h1": "font-size:22pt; font-weight:900; color:#0f172a; margin-top:18px; margin-bottom:10px;",
    "h2": "font-size:17pt; font-weight:700; color:#0f172a; margin-top:14px; margin-bottom:8px;",
    "h3": "font-size:14pt; font-weight:700; color:#1e293b; margin-top:10px; margin-bottom:6px;",
    "p": "color:#334155; margin-top:4px; margin-bottom:4px;",
    "label": "font-weight:700; color:#0f172a;",
    "li": "color:#334155;",
    "score": (
        "background-color:#eef2ff; border:2px solid #e0e7ff; color:#312e81;"
        " padding:12px; margin-top:14px; margin-bottom:14px;"
    ),
    "score_caption": "font-size:8pt; font-weight:700; color:#6366f1; text-transform:uppercase;",
    "table": "font-family:monospace; color:#0f172a; white-space:pre;",
}


def is_score_line(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in SCORE_MARKERS)


def find_score_line(text: Optional[str]) -> Optional[str]:
    """
    Return the first line that looks like a performance score, if any.

    Args:
        text: Analysis or report text

    Returns:
        The stripped score line, or None when the text has no score line
    """
    for line in (text or "").splitlines():
        if line.strip() and is_score_line(line):
            return line.strip()
    return None


class AnalysisFormatter:
    """Converts light-markup analysis text into styled HTML."""

    def to_html(self, text: Optional[str]) -> str:
        """
        Render analysis text as HTML.

        Headings, bullet items, the score callout, ``Label: value`` lines and
        blank-line spacers are recognised in that order of precedence. All
        text is HTML-escaped.
        """
        parts: List[str] = []
        in_list = False

        for line in (text or "").replace("\r\n", "\n").split("\n"):
            stripped = line.strip()
            is_item = stripped.startswith("- ") or stripped.startswith("* ")

            if in_list and not is_item:
                parts.append("</ul>")
                in_list = False

            if line.startswith("### "):
                parts.append(self._block("h3", line[4:]))
            elif line.startswith("## "):
                parts.append(self._block("h2", line[3:]))
            elif line.startswith("# "):
                parts.append(self._block("h1", line[2:]))
            elif is_item:
                if not in_list:
                    parts.append("<ul>")
                    in_list = True
                parts.append(f'<li style="{_STYLES["li"]}">{html.escape(stripped[2:])}</li>')
            elif is_score_line(line):
                parts.append(
                    f'<div style="{_STYLES["score"]}">'
                    f'<div style="{_STYLES["score_caption"]}">{SCORE_CAPTION}</div>'
                    f"<p>{html.escape(line)}</p></div>"
                )
            elif ": " in line:
                label, rest = line.split(": ", 1)
                parts.append(
                    f'<p style="{_STYLES["p"]}"><span style="{_STYLES["label"]}">'
                    f"{html.escape(label)}:</span> {html.escape(rest)}</p>"
                )
            elif not stripped:
                parts.append("<p>&nbsp;</p>")
            else:
                parts.append(self._block("p", line))

        if in_list:
            parts.append("</ul>")
        return "\n".join(parts)

    def table_to_html(self, table_text: Optional[str]) -> str:
        """Show a sanitized table verbatim in a monospace block."""
        return f'<pre style="{_STYLES["table"]}">{html.escape(table_text or "")}</pre>'

    @staticmethod
    def _block(tag: str, content: str) -> str:
        return f'<{tag} style="{_STYLES[tag]}">{html.escape(content)}</{tag}>'
