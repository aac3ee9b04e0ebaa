from __future__ import annotations

"""pipeline.report.model

Report value type and the shared cell formatters.

Every renderer formats numbers through the helpers below, so ``N/A``, the
two-decimal precision and integer rendering cannot drift between the CSV
tables and the markdown narrative.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from archbench.domain import NA

NA_TEXT = "N/A"
MARKDOWN_FILENAME = "report.md"


@dataclass(frozen=True)
class Report:
    """A rendering of one run: CSV tables and extra documents keyed by filename, plus the narrative."""

    run_id: str
    tables: Dict[str, str] = field(default_factory=dict)
    markdown: str = ""
    documents: Dict[str, str] = field(default_factory=dict)

    def files(self) -> Dict[str, str]:
        out = dict(self.tables)
        out.update(self.documents)
        out[MARKDOWN_FILENAME] = self.markdown
        return out


def fmt_num(value: Any) -> str:
    """Two-decimal rendering of a ratio; ``NA``/``None`` render as ``N/A``."""
    if value is NA or value is None:
        return NA_TEXT
    v = float(value)
    if v == 0:
        # avoid "-0.00"
        v = 0.0
    return f"{v:.2f}"


def fmt_pct(value: Any) -> str:
    text = fmt_num(value)
    return text if text == NA_TEXT else f"{text}%"


def fmt_int(value: Any) -> str:
    if value is NA or value is None:
        return NA_TEXT
    return str(int(value))


def fmt_signed_int(value: Any) -> str:
    if value is NA or value is None:
        return NA_TEXT
    n = int(value)
    return f"+{n}" if n > 0 else str(n)


def fmt_rate(found: int, total: int) -> str:
    """One-decimal success rate, as in the build success analysis."""
    if total <= 0:
        return NA_TEXT
    return f"{found * 100 / total:.1f}%"


def fmt_text(value: Optional[str]) -> str:
    return value if value else "-"
