from __future__ import annotations

"""cli.common

Small shared helpers for CLI command modules.

The CLI is split by mode (run/list/report/compare). The helpers below keep the
printed status lines consistent across modes.
"""

from typing import Dict, Mapping, Optional

from archbench.domain import AnalysisRun, MetricStatus


def parse_csv(raw: Optional[str]) -> list[str]:
    """Parse a comma-separated list value into a list of non-empty strings."""
    if not raw:
        return []
    return [x.strip() for x in raw.split(",") if x.strip()]


def status_line(run: AnalysisRun) -> str:
    counts: Dict[MetricStatus, int] = run.status_counts()
    return ", ".join(f"{s.value}={counts[s]}" for s in MetricStatus)


def print_paths(paths: Mapping[str, str]) -> None:
    for name in sorted(paths):
        print(f"  {name:<28}: {paths[name]}")
