"""archbench.io

Filesystem contracts and IO helpers.

Design principle
----------------
Both the artifact layout (what the toolchains produce) and the run store
layout (what the pipeline writes) are public contracts. This package keeps
those rules in one place so they can evolve together.
"""

from __future__ import annotations

from .layout import (
    DEFAULT_FILENAMES,
    LATEST_POINTER,
    RUN_ID_RE,
    ArtifactPaths,
    RunPaths,
    expected_artifact_paths,
    list_run_ids,
    read_latest_pointer,
    run_paths,
)
from .run_dir import new_run_id, reserve_run_dir

__all__ = [
    "DEFAULT_FILENAMES",
    "LATEST_POINTER",
    "RUN_ID_RE",
    "ArtifactPaths",
    "RunPaths",
    "expected_artifact_paths",
    "list_run_ids",
    "new_run_id",
    "read_latest_pointer",
    "reserve_run_dir",
    "run_paths",
]
