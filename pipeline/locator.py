"""pipeline.locator

Resolve one test case's build artifacts for one architecture.

The naming rules live in :mod:`archbench.io.layout`; this module only probes
the filesystem. A missing or empty binary, a missing listing or a missing log
is an expected state (the toolchain's build failed) and is encoded in the
returned :class:`~archbench.domain.BuildArtifact`, never raised.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Union

from archbench.domain import ArchitectureLabel, BuildArtifact
from archbench.io.layout import expected_artifact_paths

logger = logging.getLogger(__name__)


def _binary_size(path: Path) -> Optional[int]:
    try:
        if not path.is_file():
            return None
        size = path.stat().st_size
    except OSError:
        return None
    if size <= 0:
        return None
    # Readability is part of "present": an unreadable binary is a failed build
    # as far as comparison goes.
    try:
        with path.open("rb"):
            pass
    except OSError:
        return None
    return size


def _existing(path: Path) -> Optional[Path]:
    return path if path.is_file() else None


class ArtifactLocator:
    def __init__(self, artifact_root: Union[str, Path]) -> None:
        self.artifact_root = Path(artifact_root)

    def arch_dir(self, arch: ArchitectureLabel) -> Path:
        return self.artifact_root / arch.name

    def locate(
        self,
        test_case_name: str,
        arch: ArchitectureLabel,
        *,
        templates: Optional[Mapping[str, str]] = None,
    ) -> BuildArtifact:
        paths = expected_artifact_paths(
            self.artifact_root,
            arch_name=arch.name,
            test_case=test_case_name,
            suffix=arch.suffix,
            templates=templates,
        )
        artifact = BuildArtifact(
            test_case_name=test_case_name,
            architecture=arch,
            binary_path=paths.binary,
            assembly_path=_existing(paths.assembly),
            log_path=_existing(paths.log),
            size_bytes=_binary_size(paths.binary),
        )
        if artifact.size_bytes is None:
            logger.warning("%s/%s: binary missing or empty at %s", test_case_name, arch.name, paths.binary)
        if artifact.assembly_path is None:
            logger.warning("%s/%s: assembly listing missing at %s", test_case_name, arch.name, paths.assembly)
        return artifact
