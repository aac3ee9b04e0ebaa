"""archbench.domain

Domain objects that form the *contract* between pipeline stages.

Key idea
--------
Each toolchain produces artifacts in its own directory with its own naming
quirks. The locator resolves those into :class:`BuildArtifact` values, and from
there on every stage works with the tool-agnostic types below.
"""

from __future__ import annotations

from .artifacts import (
    ArchitectureLabel,
    ArtifactStatus,
    BuildArtifact,
    InstructionCategory,
    InstructionRecord,
)
from .errors import (
    ArchbenchError,
    ArtifactMissingError,
    FatalConfigurationError,
    ParseError,
    RunNotFoundError,
    StorageCollisionError,
)
from .metrics import (
    NA,
    AnalysisRun,
    CategoryCounts,
    MetricSet,
    MetricStatus,
    Overhead,
    counts_total,
    empty_counts,
    is_na,
)

__all__ = [
    "NA",
    "AnalysisRun",
    "ArchbenchError",
    "ArchitectureLabel",
    "ArtifactMissingError",
    "ArtifactStatus",
    "BuildArtifact",
    "CategoryCounts",
    "FatalConfigurationError",
    "InstructionCategory",
    "InstructionRecord",
    "MetricSet",
    "MetricStatus",
    "Overhead",
    "ParseError",
    "RunNotFoundError",
    "StorageCollisionError",
    "counts_total",
    "empty_counts",
    "is_na",
]
