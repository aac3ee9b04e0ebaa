from __future__ import annotations

"""pipeline.report.render_csv

Tabular renderings of an :class:`AnalysisRun` (formatting only, no file I/O).

Both tables are blank-free: unknown values are ``N/A`` and rows follow the
run's declared test-case order.
"""

from typing import Dict, List

from archbench.domain import AnalysisRun, InstructionCategory
from archbench.io.fs import csv_text

from .model import fmt_int, fmt_num, fmt_signed_int, fmt_text

SUMMARY_FILENAME = "summary.csv"
CATEGORIES_FILENAME = "instruction_categories.csv"

SUMMARY_FIELDS = [
    "test_case",
    "kind",
    "baseline_size_bytes",
    "candidate_size_bytes",
    "size_delta_bytes",
    "size_overhead_pct",
    "baseline_instructions",
    "candidate_instructions",
    "instruction_delta",
    "instruction_overhead_pct",
    "status",
]

CATEGORY_FIELDS = ["test_case", "architecture"] + [c.value for c in InstructionCategory] + ["total"]


def summary_rows(run: AnalysisRun) -> List[Dict[str, str]]:
    rows: List[Dict[str, str]] = []
    for m in run.metric_sets:
        rows.append(
            {
                "test_case": m.test_case_name,
                "kind": fmt_text(m.kind),
                "baseline_size_bytes": fmt_int(m.baseline.size_bytes),
                "candidate_size_bytes": fmt_int(m.candidate.size_bytes),
                "size_delta_bytes": fmt_signed_int(m.size_delta_bytes),
                "size_overhead_pct": fmt_num(m.size_overhead_pct),
                "baseline_instructions": fmt_int(m.instruction_total(m.baseline.architecture)),
                "candidate_instructions": fmt_int(m.instruction_total(m.candidate.architecture)),
                "instruction_delta": fmt_signed_int(m.instruction_delta),
                "instruction_overhead_pct": fmt_num(m.instruction_overhead_pct),
                "status": m.status.value,
            }
        )
    return rows


def category_rows(run: AnalysisRun) -> List[Dict[str, str]]:
    rows: List[Dict[str, str]] = []
    for m in run.metric_sets:
        for arch in (m.baseline.architecture, m.candidate.architecture):
            row = {"test_case": m.test_case_name, "architecture": arch.name}
            for c in InstructionCategory:
                row[c.value] = fmt_int(m.category_count(arch, c))
            row["total"] = fmt_int(m.instruction_total(arch))
            rows.append(row)
    return rows


def render_summary_csv(run: AnalysisRun) -> str:
    return csv_text(summary_rows(run), fieldnames=SUMMARY_FIELDS)


def render_categories_csv(run: AnalysisRun) -> str:
    return csv_text(category_rows(run), fieldnames=CATEGORY_FIELDS)
