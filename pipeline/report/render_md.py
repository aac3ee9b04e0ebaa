from __future__ import annotations

"""pipeline.report.render_md

Markdown narrative for an :class:`AnalysisRun`.

This module contains formatting logic only (no file I/O).
"""

from typing import List, Optional, Tuple

from archbench.domain import AnalysisRun, ArchitectureLabel, InstructionCategory, MetricStatus

from .model import fmt_int, fmt_pct, fmt_rate, fmt_signed_int, fmt_text


def _labels(run: AnalysisRun) -> Tuple[Optional[ArchitectureLabel], Optional[ArchitectureLabel]]:
    baseline, candidate = run.baseline, run.candidate
    if (baseline is None or candidate is None) and run.metric_sets:
        first = run.metric_sets[0]
        baseline = baseline or first.baseline.architecture
        candidate = candidate or first.candidate.architecture
    return baseline, candidate


def _arch_text(label: Optional[ArchitectureLabel]) -> str:
    if label is None:
        return "-"
    return f"**{label.name}** (`{label.toolchain}`)"


def _table(header: List[str], rows: List[List[str]]) -> List[str]:
    lines = ["| " + " | ".join(header) + " |", "|" + "|".join(["---"] * len(header)) + "|"]
    for r in rows:
        lines.append("| " + " | ".join(r) + " |")
    return lines


def render_report_markdown(run: AnalysisRun) -> str:
    """Render the narrative report for *run*."""

    baseline, candidate = _labels(run)
    b_name = baseline.name if baseline else "baseline"
    c_name = candidate.name if candidate else "candidate"
    counts = run.status_counts()
    total = len(run.metric_sets)

    lines: List[str] = []
    lines.append(f"# Architecture comparison: `{run.run_id}`")
    lines.append("")
    lines.append(f"- baseline: {_arch_text(baseline)}")
    lines.append(f"- candidate: {_arch_text(candidate)}")
    if run.created_at:
        lines.append(f"- created_at: `{run.created_at}`")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.extend(
        _table(
            [
                "Test case",
                "Kind",
                f"{b_name} size (bytes)",
                f"{c_name} size (bytes)",
                "Size delta (bytes)",
                "Size overhead",
                f"{b_name} instructions",
                f"{c_name} instructions",
                "Instruction overhead",
                "Status",
            ],
            [
                [
                    f"`{m.test_case_name}`",
                    fmt_text(m.kind),
                    fmt_int(m.baseline.size_bytes),
                    fmt_int(m.candidate.size_bytes),
                    fmt_signed_int(m.size_delta_bytes),
                    fmt_pct(m.size_overhead_pct),
                    fmt_int(m.instruction_total(m.baseline.architecture)),
                    fmt_int(m.instruction_total(m.candidate.architecture)),
                    fmt_pct(m.instruction_overhead_pct),
                    m.status.value,
                ]
                for m in run.metric_sets
            ],
        )
    )
    lines.append("")

    lines.append("## Aggregate")
    lines.append("")
    lines.append(f"- mean size overhead: **{fmt_pct(run.aggregate_size_overhead_pct)}**")
    lines.append(f"- mean instruction overhead: **{fmt_pct(run.aggregate_instruction_overhead_pct)}**")
    lines.append(f"- test cases: **{total}**")
    for status in MetricStatus:
        lines.append(f"- {status.value}: **{counts[status]}**")
    lines.append("")

    lines.append("## Build success")
    lines.append("")
    found_b = sum(1 for m in run.metric_sets if m.baseline.size_bytes is not None)
    found_c = sum(1 for m in run.metric_sets if m.candidate.size_bytes is not None)
    lines.extend(
        _table(
            ["Architecture", "Binaries found", "Success rate"],
            [
                [b_name, f"{found_b}/{total}", fmt_rate(found_b, total)],
                [c_name, f"{found_c}/{total}", fmt_rate(found_c, total)],
            ],
        )
    )
    lines.append("")

    lines.append("## Protection comparison")
    lines.append("")
    lines.extend(
        _table(
            ["Test case", f"{b_name} memory ops", f"{c_name} memory ops", f"{c_name} bounds ops"],
            [
                [
                    f"`{m.test_case_name}`",
                    fmt_int(m.memory_ops(m.baseline.architecture)),
                    fmt_int(m.memory_ops(m.candidate.architecture)),
                    fmt_int(m.category_count(m.candidate.architecture, InstructionCategory.BOUNDS_OP)),
                ]
                for m in run.metric_sets
            ],
        )
    )
    lines.append("")

    lines.append("## Issues")
    lines.append("")
    issues = [m for m in run.metric_sets if m.status is not MetricStatus.OK or m.notes]
    if not issues:
        lines.append("- none")
    for m in issues:
        detail = "; ".join(m.notes) if m.notes else "no details recorded"
        lines.append(f"- `{m.test_case_name}` ({m.status.value}): {detail}")
    lines.append("")

    return "\n".join(lines)
