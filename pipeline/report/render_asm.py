from __future__ import annotations

"""pipeline.report.render_asm

Side-by-side assembly excerpts for every test case (``assembly_comparison.md``).

For each case the baseline and candidate listings are cut at the configured
symbol (``main`` by default) and at most ``max_lines`` lines are shown, followed
by the key instruction counts of both sides. When the symbol is not found the
excerpt starts at the top of the listing.

Unlike the other renderers this one reads the listings recorded in the run, so
its output depends on those files as well. A listing that is missing or no
longer readable renders as ``N/A``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional

from archbench.domain import AnalysisRun, BuildArtifact, InstructionCategory, MetricSet

from .model import NA_TEXT, fmt_int

logger = logging.getLogger(__name__)

ASSEMBLY_FILENAME = "assembly_comparison.md"


@dataclass(frozen=True)
class AssemblyExcerptOptions:
    enabled: bool = True
    symbol: str = "main"
    max_lines: int = 50

    @classmethod
    def from_dict(cls, raw: Any) -> "AssemblyExcerptOptions":
        """Parse the ``assembly_excerpt`` config key (a mapping or a bool)."""
        if raw is None:
            return cls()
        if isinstance(raw, bool):
            return cls(enabled=raw)
        if not isinstance(raw, Mapping):
            raise ValueError("assembly_excerpt must be a mapping or a boolean")

        enabled = raw.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError("assembly_excerpt.enabled must be a boolean")
        symbol = str(raw.get("symbol") or "main").strip()
        max_lines = raw.get("max_lines", 50)
        if isinstance(max_lines, bool) or not isinstance(max_lines, int) or max_lines < 1:
            raise ValueError(f"assembly_excerpt.max_lines must be an integer >= 1 (got {max_lines!r})")
        return cls(enabled=enabled, symbol=symbol, max_lines=max_lines)


def _is_symbol_line(line: str, symbol: str) -> bool:
    text = line.strip()
    # "-S" label ("main:") or objdump function header ("0000000000010074 <main>:")
    return text.startswith(f"{symbol}:") or text.endswith(f"<{symbol}>:")


def listing_excerpt(path: Optional[Path], *, symbol: str, max_lines: int) -> Optional[List[str]]:
    """Lines of *path* from the *symbol* label on, or ``None`` when unreadable."""
    if path is None:
        return None
    try:
        lines = Path(path).read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as e:
        logger.warning("cannot read %s for assembly excerpt: %s", path, e)
        return None

    start = next((i for i, line in enumerate(lines) if _is_symbol_line(line, symbol)), 0)
    return [line.rstrip() for line in lines[start : start + max_lines]]


def _side(lines: List[str], artifact: BuildArtifact, options: AssemblyExcerptOptions) -> None:
    label = artifact.architecture
    lines.append(f"### {label.name} (`{label.toolchain}`)")
    lines.append("")
    excerpt = listing_excerpt(artifact.assembly_path, symbol=options.symbol, max_lines=options.max_lines)
    if excerpt is None:
        lines.append(NA_TEXT)
    else:
        lines.append("```asm")
        lines.extend(excerpt)
        lines.append("```")
    lines.append("")


def _key_differences(lines: List[str], m: MetricSet) -> None:
    b, c = m.baseline.architecture, m.candidate.architecture
    lines.append("### Key differences")
    lines.append("")
    lines.append(f"- {b.name} loads: **{fmt_int(m.category_count(b, InstructionCategory.LOAD))}**")
    lines.append(f"- {b.name} stores: **{fmt_int(m.category_count(b, InstructionCategory.STORE))}**")
    lines.append(f"- {c.name} loads: **{fmt_int(m.category_count(c, InstructionCategory.LOAD))}**")
    lines.append(f"- {c.name} stores: **{fmt_int(m.category_count(c, InstructionCategory.STORE))}**")
    lines.append(f"- {c.name} bounds operations: **{fmt_int(m.category_count(c, InstructionCategory.BOUNDS_OP))}**")
    lines.append("")


def render_assembly_comparison(run: AnalysisRun, options: Optional[AssemblyExcerptOptions] = None) -> str:
    opts = options or AssemblyExcerptOptions()

    lines: List[str] = []
    lines.append(f"# Assembly comparison: `{run.run_id}`")
    lines.append("")
    lines.append(f"Excerpts start at `{opts.symbol}` and show at most {opts.max_lines} lines per listing.")
    lines.append("")

    for m in run.metric_sets:
        lines.append(f"## {m.test_case_name}")
        lines.append("")
        _side(lines, m.baseline, opts)
        _side(lines, m.candidate, opts)
        _key_differences(lines, m)

    return "\n".join(lines)
