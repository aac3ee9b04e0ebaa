"""pipeline.aggregate

Fold ordered :class:`MetricSet` values into one :class:`AnalysisRun`.

Pure: no IO, no reordering. The caller's sequence order *is* the report order.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from archbench.domain import NA, AnalysisRun, ArchitectureLabel, MetricSet, Overhead

from pipeline.metrics import DECIMALS


def mean_overhead(values: Iterable[Overhead]) -> Overhead:
    """Arithmetic mean of the non-``NA`` values; ``NA`` when there are none."""
    known = [float(v) for v in values if v is not NA]
    if not known:
        return NA
    return round(sum(known) / len(known), DECIMALS)


def aggregate(
    run_id: str,
    metric_sets: Sequence[MetricSet],
    *,
    baseline: Optional[ArchitectureLabel] = None,
    candidate: Optional[ArchitectureLabel] = None,
    created_at: Optional[str] = None,
) -> AnalysisRun:
    ordered = tuple(metric_sets)
    return AnalysisRun(
        run_id=run_id,
        metric_sets=ordered,
        aggregate_size_overhead_pct=mean_overhead(m.size_overhead_pct for m in ordered),
        aggregate_instruction_overhead_pct=mean_overhead(m.instruction_overhead_pct for m in ordered),
        baseline=baseline,
        candidate=candidate,
        created_at=created_at,
    )
