"""pipeline.metrics

Turn a located baseline/candidate pair into a :class:`MetricSet`.

Why this exists
---------------
The shell reports this replaces computed ``(cheri - riscv) * 100 / riscv``
inline with ``bc`` and printed the result in the same pass. Here the numbers
are computed once, as values, and the report layer only formats them.

Rules
-----
* overhead = ``round((C - B) * 100 / B, 2)``; ``NA`` when ``B`` is unknown or
  zero, or when ``C`` is unknown. Never raises.
* instruction overhead uses the same formula over category totals.
* status: ``FAILED`` when either binary is missing; otherwise ``PARTIAL`` when
  either side's instruction counts are unknown; otherwise ``OK``.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Tuple

from archbench.domain import (
    NA,
    ArchitectureLabel,
    ArtifactMissingError,
    BuildArtifact,
    CategoryCounts,
    MetricSet,
    MetricStatus,
    Overhead,
    ParseError,
    counts_total,
)

from pipeline.classifier import InstructionClassifier, count_categories

logger = logging.getLogger(__name__)

DECIMALS = 2


def overhead_pct(baseline: Optional[float], candidate: Optional[float]) -> Overhead:
    """Percentage change of *candidate* relative to *baseline*."""
    if baseline is None or candidate is None or baseline == 0:
        return NA
    return round((candidate - baseline) * 100 / baseline, DECIMALS)


def derive_status(
    baseline: BuildArtifact,
    candidate: BuildArtifact,
    counts: Mapping[ArchitectureLabel, Optional[CategoryCounts]],
) -> MetricStatus:
    if baseline.size_bytes is None or candidate.size_bytes is None:
        return MetricStatus.FAILED
    if counts.get(baseline.architecture) is None or counts.get(candidate.architecture) is None:
        return MetricStatus.PARTIAL
    return MetricStatus.OK


class MetricsComputer:
    """Classify both listings of a pair and compute the comparison.

    ``classifiers`` is keyed by architecture name. Classification failures
    (missing or unreadable listings) are recorded as notes and ``None``
    counts; nothing raised here escapes :meth:`compute`.
    """

    def __init__(self, classifiers: Mapping[str, InstructionClassifier]) -> None:
        self._classifiers = dict(classifiers)

    def count(self, artifact: BuildArtifact) -> Tuple[Optional[CategoryCounts], Optional[str]]:
        """Return ``(counts, note)`` for one side; ``counts`` is ``None`` when unknown."""
        arch = artifact.architecture
        if artifact.assembly_path is None:
            err = ArtifactMissingError(artifact.test_case_name, arch.name, "assembly listing")
            return None, str(err)

        classifier = self._classifiers.get(arch.name)
        if classifier is None:
            return None, f"{arch.name}: no rule table configured"

        try:
            counts = count_categories(classifier.classify(artifact.assembly_path))
        except ParseError as e:
            logger.warning("%s/%s: %s", artifact.test_case_name, arch.name, e)
            return None, f"{arch.name}: {e}"
        return counts, None

    def compute(
        self,
        test_case_name: str,
        baseline: BuildArtifact,
        candidate: BuildArtifact,
        *,
        kind: Optional[str] = None,
    ) -> MetricSet:
        notes: List[str] = []
        for side in (baseline, candidate):
            if side.size_bytes is None:
                notes.append(str(ArtifactMissingError(test_case_name, side.architecture.name, "binary", side.binary_path)))

        counts: Dict[ArchitectureLabel, Optional[CategoryCounts]] = {}
        for side in (baseline, candidate):
            side_counts, note = self.count(side)
            counts[side.architecture] = side_counts
            if note:
                notes.append(note)

        status = derive_status(baseline, candidate, counts)
        return MetricSet(
            test_case_name=test_case_name,
            baseline=baseline,
            candidate=candidate,
            size_overhead_pct=overhead_pct(baseline.size_bytes, candidate.size_bytes),
            instruction_counts=counts,
            instruction_overhead_pct=overhead_pct(
                counts_total(counts[baseline.architecture]),
                counts_total(counts[candidate.architecture]),
            ),
            status=status,
            kind=kind,
            notes=tuple(notes),
        )
