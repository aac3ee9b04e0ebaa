"""archbench.domain.metrics

Persisted value types: :class:`MetricSet` (one per test case) and
:class:`AnalysisRun` (one per pipeline invocation).

Both are frozen dataclasses. Every stage returns a new value instead of
mutating an accumulator, and a stored run is never edited in place.

The ``NA`` sentinel
-------------------
Overhead ratios are undefined when the baseline is zero or unknown. That state
is represented by the :data:`NA` singleton rather than ``None`` (which is
reserved for "unknown count") or ``0.0`` (which is a real measurement). ``NA``
is falsy, prints as ``N/A`` and is stored as JSON ``null``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .artifacts import ArchitectureLabel, BuildArtifact, InstructionCategory


class _NotApplicable:
    _instance: Optional["_NotApplicable"] = None

    def __new__(cls) -> "_NotApplicable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NA"

    def __str__(self) -> str:
        return "N/A"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_NotApplicable, ())

    def __copy__(self) -> "_NotApplicable":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_NotApplicable":
        return self


NA = _NotApplicable()

Overhead = Union[float, _NotApplicable]
CategoryCounts = Dict[InstructionCategory, int]


def is_na(value: Any) -> bool:
    return value is NA


def overhead_to_json(value: Overhead) -> Optional[float]:
    return None if value is NA else float(value)


def overhead_from_json(value: Any) -> Overhead:
    return NA if value is None else float(value)


def empty_counts() -> CategoryCounts:
    """All categories present with a zero count, in enum order."""
    return {c: 0 for c in InstructionCategory}


def counts_total(counts: Optional[Mapping[InstructionCategory, int]]) -> Optional[int]:
    if counts is None:
        return None
    return sum(counts.values())


class MetricStatus(str, Enum):
    OK = "OK"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


def _counts_to_json(counts: Optional[Mapping[InstructionCategory, int]]) -> Optional[Dict[str, int]]:
    if counts is None:
        return None
    return {c.value: int(counts.get(c, 0)) for c in InstructionCategory}


def _counts_from_json(raw: Any) -> Optional[CategoryCounts]:
    if raw is None:
        return None
    out = empty_counts()
    for k, v in dict(raw).items():
        out[InstructionCategory.parse(k)] = int(v)
    return out


@dataclass(frozen=True)
class MetricSet:
    """Comparison of one test case across the baseline and candidate builds.

    ``instruction_counts`` maps each architecture to its per-category counts,
    or to ``None`` when the listing was missing or unreadable (unknown, which
    is not the same thing as zero). Both levels are read-only views, taken
    from copies of the mappings passed in.
    """

    test_case_name: str
    baseline: BuildArtifact
    candidate: BuildArtifact
    size_overhead_pct: Overhead
    instruction_counts: Mapping[ArchitectureLabel, Optional[Mapping[InstructionCategory, int]]] = field(hash=False)
    instruction_overhead_pct: Overhead
    status: MetricStatus
    kind: Optional[str] = None
    notes: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        frozen = {
            arch: None if counts is None else MappingProxyType(dict(counts))
            for arch, counts in self.instruction_counts.items()
        }
        object.__setattr__(self, "instruction_counts", MappingProxyType(frozen))

    def __reduce__(self):
        # mappingproxy cannot be pickled; go through the stored form
        return (MetricSet.from_dict, (self.to_dict(),))

    def counts_for(self, arch: ArchitectureLabel) -> Optional[Mapping[InstructionCategory, int]]:
        return self.instruction_counts.get(arch)

    def instruction_total(self, arch: ArchitectureLabel) -> Optional[int]:
        return counts_total(self.counts_for(arch))

    def category_count(self, arch: ArchitectureLabel, category: InstructionCategory) -> Optional[int]:
        counts = self.counts_for(arch)
        if counts is None:
            return None
        return int(counts.get(category, 0))

    def memory_ops(self, arch: ArchitectureLabel) -> Optional[int]:
        """Loads plus stores for one side (``None`` when unknown)."""
        counts = self.counts_for(arch)
        if counts is None:
            return None
        return int(counts.get(InstructionCategory.LOAD, 0)) + int(counts.get(InstructionCategory.STORE, 0))

    @property
    def size_delta_bytes(self) -> Union[int, _NotApplicable]:
        b, c = self.baseline.size_bytes, self.candidate.size_bytes
        if b is None or c is None:
            return NA
        return c - b

    @property
    def instruction_delta(self) -> Union[int, _NotApplicable]:
        b = self.instruction_total(self.baseline.architecture)
        c = self.instruction_total(self.candidate.architecture)
        if b is None or c is None:
            return NA
        return c - b

    def to_dict(self) -> Dict[str, Any]:
        counts: List[Dict[str, Any]] = []
        for arch in (self.baseline.architecture, self.candidate.architecture):
            counts.append(
                {
                    "architecture": arch.name,
                    "counts": _counts_to_json(self.instruction_counts.get(arch)),
                }
            )
        return {
            "test_case_name": self.test_case_name,
            "kind": self.kind,
            "status": self.status.value,
            "baseline": self.baseline.to_dict(),
            "candidate": self.candidate.to_dict(),
            "size_overhead_pct": overhead_to_json(self.size_overhead_pct),
            "instruction_overhead_pct": overhead_to_json(self.instruction_overhead_pct),
            "instruction_counts": counts,
            "notes": list(self.notes),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "MetricSet":
        baseline = BuildArtifact.from_dict(d.get("baseline") or {})
        candidate = BuildArtifact.from_dict(d.get("candidate") or {})
        by_name = {
            baseline.architecture.name: baseline.architecture,
            candidate.architecture.name: candidate.architecture,
        }

        counts: Dict[ArchitectureLabel, Optional[CategoryCounts]] = {}
        for entry in d.get("instruction_counts") or []:
            arch = by_name.get(str(entry.get("architecture")))
            if arch is None:
                continue
            counts[arch] = _counts_from_json(entry.get("counts"))

        return cls(
            test_case_name=str(d.get("test_case_name") or ""),
            baseline=baseline,
            candidate=candidate,
            size_overhead_pct=overhead_from_json(d.get("size_overhead_pct")),
            instruction_counts=counts,
            instruction_overhead_pct=overhead_from_json(d.get("instruction_overhead_pct")),
            status=MetricStatus(str(d.get("status"))),
            kind=d.get("kind") or None,
            notes=tuple(str(n) for n in (d.get("notes") or [])),
        )


@dataclass(frozen=True)
class AnalysisRun:
    """All metric sets of one invocation, in declared test-case order.

    ``created_at`` is wall-clock metadata; nothing else in the run depends on
    the clock.
    """

    SCHEMA_VERSION = 1

    run_id: str
    metric_sets: Tuple[MetricSet, ...]
    aggregate_size_overhead_pct: Overhead
    aggregate_instruction_overhead_pct: Overhead
    baseline: Optional[ArchitectureLabel] = None
    candidate: Optional[ArchitectureLabel] = None
    created_at: Optional[str] = None

    @property
    def test_case_names(self) -> List[str]:
        return [m.test_case_name for m in self.metric_sets]

    def status_counts(self) -> Dict[MetricStatus, int]:
        out = {s: 0 for s in MetricStatus}
        for m in self.metric_sets:
            out[m.status] += 1
        return out

    def with_run_id(self, run_id: str) -> "AnalysisRun":
        return replace(self, run_id=run_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.SCHEMA_VERSION,
            "run_id": self.run_id,
            "created_at": self.created_at,
            "baseline": self.baseline.to_dict() if self.baseline else None,
            "candidate": self.candidate.to_dict() if self.candidate else None,
            "aggregate_size_overhead_pct": overhead_to_json(self.aggregate_size_overhead_pct),
            "aggregate_instruction_overhead_pct": overhead_to_json(self.aggregate_instruction_overhead_pct),
            "metric_sets": [m.to_dict() for m in self.metric_sets],
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AnalysisRun":
        if not isinstance(d, Mapping):
            raise TypeError(f"AnalysisRun.from_dict expected mapping, got {type(d)!r}")
        baseline = d.get("baseline")
        candidate = d.get("candidate")
        return cls(
            run_id=str(d.get("run_id") or ""),
            metric_sets=tuple(MetricSet.from_dict(m) for m in (d.get("metric_sets") or [])),
            aggregate_size_overhead_pct=overhead_from_json(d.get("aggregate_size_overhead_pct")),
            aggregate_instruction_overhead_pct=overhead_from_json(d.get("aggregate_instruction_overhead_pct")),
            baseline=ArchitectureLabel.from_dict(baseline) if baseline else None,
            candidate=ArchitectureLabel.from_dict(candidate) if candidate else None,
            created_at=d.get("created_at") or None,
        )
