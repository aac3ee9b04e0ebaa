"""archbench.io.layout

Canonical filesystem layout utilities.

This module centralizes:

* the artifact naming convention consumed from the toolchains
  (``<artifact_root>/<arch>/<test_case><suffix>[.s|_build.log]``)
* the run store layout (``<runs_dir>/<run_id>/run.json`` plus reports)
* run discovery helpers (newest-first listing, ``LATEST`` pointer)

The goal is to ensure that the locator, the store and the CLI do **not**
re-implement their own layout heuristics.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

# YYYYMMDDHHMMSS with an optional -NN collision suffix
RUN_ID_RE = re.compile(r"^\d{14}(-\d{2})?$")

RUN_FILENAME = "run.json"
REPORT_DIRNAME = "report"
LATEST_POINTER = "LATEST"

ARTIFACT_KINDS = ("binary", "assembly", "log")

DEFAULT_FILENAMES: Dict[str, str] = {
    "binary": "{test_case}{suffix}",
    "assembly": "{test_case}{suffix}.s",
    "log": "{test_case}{suffix}_build.log",
}


def format_artifact_name(template: str, *, test_case: str, suffix: str = "") -> str:
    """Expand a filename template.

    Templates may use ``{test_case}`` and ``{suffix}``. A template without
    placeholders is taken literally (useful for per-case overrides).
    """
    try:
        return template.format(test_case=test_case, suffix=suffix)
    except (AttributeError, KeyError, IndexError, ValueError) as e:
        raise ValueError(f"invalid artifact filename template {template!r}: {e}") from e


@dataclass(frozen=True)
class ArtifactPaths:
    """Expected (not necessarily existing) artifact paths for one case/arch."""

    binary: Path
    assembly: Path
    log: Path


def expected_artifact_paths(
    artifact_root: Union[str, Path],
    *,
    arch_name: str,
    test_case: str,
    suffix: str = "",
    templates: Optional[Mapping[str, str]] = None,
) -> ArtifactPaths:
    names = dict(DEFAULT_FILENAMES)
    names.update({k: v for k, v in (templates or {}).items() if v})
    arch_dir = Path(artifact_root) / arch_name
    return ArtifactPaths(
        binary=arch_dir / format_artifact_name(names["binary"], test_case=test_case, suffix=suffix),
        assembly=arch_dir / format_artifact_name(names["assembly"], test_case=test_case, suffix=suffix),
        log=arch_dir / format_artifact_name(names["log"], test_case=test_case, suffix=suffix),
    )


@dataclass(frozen=True)
class RunPaths:
    """Canonical paths for one stored run."""

    run_dir: Path
    run_json: Path
    report_dir: Path


def run_paths(runs_dir: Union[str, Path], run_id: str) -> RunPaths:
    run_dir = Path(runs_dir) / run_id
    return RunPaths(
        run_dir=run_dir,
        run_json=run_dir / RUN_FILENAME,
        report_dir=run_dir / REPORT_DIRNAME,
    )


def list_run_ids(runs_dir: Union[str, Path]) -> List[str]:
    """Return completed run ids under *runs_dir*, newest first.

    A run directory only counts once its ``run.json`` exists; a directory that
    was reserved but not yet written is invisible to readers.
    """
    root = Path(runs_dir)
    if not root.exists() or not root.is_dir():
        return []
    ids = [
        d.name
        for d in root.iterdir()
        if d.is_dir() and RUN_ID_RE.match(d.name) and (d / RUN_FILENAME).is_file()
    ]
    return sorted(ids, reverse=True)


def read_latest_pointer(runs_dir: Union[str, Path]) -> Optional[str]:
    p = Path(runs_dir) / LATEST_POINTER
    if not p.is_file():
        return None
    value = p.read_text(encoding="utf-8").strip()
    return value or None
