"""pipeline.compare

Compare two stored runs case by case.

Why this exists
---------------
A single run answers "what does the candidate cost today?". Tracking runs over
time only pays off if you can also ask "what changed since last time?" without
diffing two markdown files by eye. Test cases are matched by name; a case
present on one side only is reported as added or removed.

Changes are in percentage points (``current - previous``), rounded to two
decimals, and ``NA`` whenever either side is ``NA``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from archbench.domain import NA, AnalysisRun, MetricSet, MetricStatus, Overhead
from archbench.io.fs import csv_text

from pipeline.metrics import DECIMALS
from pipeline.report.model import fmt_num, fmt_pct

COMPARISON_CSV = "comparison.csv"
COMPARISON_MD = "comparison.md"

COMPARISON_FIELDS = [
    "test_case",
    "change",
    "previous_status",
    "current_status",
    "previous_size_overhead_pct",
    "current_size_overhead_pct",
    "size_overhead_change",
    "previous_instruction_overhead_pct",
    "current_instruction_overhead_pct",
    "instruction_overhead_change",
]


def overhead_change(previous: Overhead, current: Overhead) -> Overhead:
    if previous is NA or current is NA:
        return NA
    return round(float(current) - float(previous), DECIMALS)


@dataclass(frozen=True)
class CaseChange:
    test_case_name: str
    previous: Optional[MetricSet]
    current: Optional[MetricSet]

    @property
    def change(self) -> str:
        if self.previous is None:
            return "added"
        if self.current is None:
            return "removed"
        if self.previous.status != self.current.status:
            return "status_changed"
        return "matched"

    @property
    def previous_status(self) -> Optional[MetricStatus]:
        return self.previous.status if self.previous else None

    @property
    def current_status(self) -> Optional[MetricStatus]:
        return self.current.status if self.current else None

    def overheads(self, attr: str) -> Tuple[Overhead, Overhead]:
        prev = getattr(self.previous, attr) if self.previous else NA
        cur = getattr(self.current, attr) if self.current else NA
        return prev, cur

    @property
    def size_overhead_change(self) -> Overhead:
        return overhead_change(*self.overheads("size_overhead_pct"))

    @property
    def instruction_overhead_change(self) -> Overhead:
        return overhead_change(*self.overheads("instruction_overhead_pct"))


@dataclass(frozen=True)
class RunComparison:
    previous_run_id: str
    current_run_id: str
    cases: Tuple[CaseChange, ...]
    aggregate_size_change: Overhead
    aggregate_instruction_change: Overhead

    @property
    def added(self) -> List[str]:
        return [c.test_case_name for c in self.cases if c.change == "added"]

    @property
    def removed(self) -> List[str]:
        return [c.test_case_name for c in self.cases if c.change == "removed"]

    @property
    def status_changes(self) -> List[CaseChange]:
        return [c for c in self.cases if c.change == "status_changed"]


def compare_runs(previous: AnalysisRun, current: AnalysisRun) -> RunComparison:
    """Current run's case order first, then cases only the previous run had."""
    prev_by_name: Dict[str, MetricSet] = {m.test_case_name: m for m in previous.metric_sets}
    cur_names = set()

    cases: List[CaseChange] = []
    for m in current.metric_sets:
        cur_names.add(m.test_case_name)
        cases.append(CaseChange(m.test_case_name, prev_by_name.get(m.test_case_name), m))
    for m in previous.metric_sets:
        if m.test_case_name not in cur_names:
            cases.append(CaseChange(m.test_case_name, m, None))

    return RunComparison(
        previous_run_id=previous.run_id,
        current_run_id=current.run_id,
        cases=tuple(cases),
        aggregate_size_change=overhead_change(
            previous.aggregate_size_overhead_pct, current.aggregate_size_overhead_pct
        ),
        aggregate_instruction_change=overhead_change(
            previous.aggregate_instruction_overhead_pct, current.aggregate_instruction_overhead_pct
        ),
    )


def _status_text(s: Optional[MetricStatus]) -> str:
    return s.value if s is not None else "-"


def render_comparison_csv(cmp: RunComparison) -> str:
    rows = []
    for c in cmp.cases:
        prev_size, cur_size = c.overheads("size_overhead_pct")
        prev_instr, cur_instr = c.overheads("instruction_overhead_pct")
        rows.append(
            {
                "test_case": c.test_case_name,
                "change": c.change,
                "previous_status": _status_text(c.previous_status),
                "current_status": _status_text(c.current_status),
                "previous_size_overhead_pct": fmt_num(prev_size),
                "current_size_overhead_pct": fmt_num(cur_size),
                "size_overhead_change": fmt_num(c.size_overhead_change),
                "previous_instruction_overhead_pct": fmt_num(prev_instr),
                "current_instruction_overhead_pct": fmt_num(cur_instr),
                "instruction_overhead_change": fmt_num(c.instruction_overhead_change),
            }
        )
    return csv_text(rows, fieldnames=COMPARISON_FIELDS)


def _pp(value: Overhead) -> str:
    text = fmt_num(value)
    if value is NA:
        return text
    return f"+{text} pp" if float(value) > 0 else f"{text} pp"


def render_comparison_markdown(cmp: RunComparison) -> str:
    lines: List[str] = []
    lines.append(f"# Run comparison: `{cmp.previous_run_id}` -> `{cmp.current_run_id}`")
    lines.append("")
    lines.append(f"- mean size overhead change: **{_pp(cmp.aggregate_size_change)}**")
    lines.append(f"- mean instruction overhead change: **{_pp(cmp.aggregate_instruction_change)}**")
    lines.append(f"- added: {', '.join(f'`{n}`' for n in cmp.added) or '-'}")
    lines.append(f"- removed: {', '.join(f'`{n}`' for n in cmp.removed) or '-'}")
    lines.append("")

    lines.append("## Per test case")
    lines.append("")
    lines.append("| Test case | Status | Size overhead | Change | Instruction overhead | Change |")
    lines.append("|---|---|---|---|---|---|")
    for c in cmp.cases:
        prev_size, cur_size = c.overheads("size_overhead_pct")
        prev_instr, cur_instr = c.overheads("instruction_overhead_pct")
        status = f"{_status_text(c.previous_status)} -> {_status_text(c.current_status)}"
        lines.append(
            f"| `{c.test_case_name}` | {status} "
            f"| {fmt_pct(prev_size)} -> {fmt_pct(cur_size)} | {_pp(c.size_overhead_change)} "
            f"| {fmt_pct(prev_instr)} -> {fmt_pct(cur_instr)} | {_pp(c.instruction_overhead_change)} |"
        )
    lines.append("")

    if cmp.status_changes:
        lines.append("## Status changes")
        lines.append("")
        for c in cmp.status_changes:
            lines.append(f"- `{c.test_case_name}`: {_status_text(c.previous_status)} -> {_status_text(c.current_status)}")
        lines.append("")

    return "\n".join(lines)
