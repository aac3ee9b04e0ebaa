"""archbench.domain.artifacts

Inputs to metric computation: architecture labels, located build artifacts
and classified instructions.

These objects are ephemeral: they live for one pipeline execution. Only the
metric types in :mod:`archbench.domain.metrics` are persisted (and they embed
:class:`BuildArtifact` values, hence the ``to_dict``/``from_dict`` pair here).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


def _opt_path(v: Any) -> Optional[Path]:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return Path(v)


def _opt_str(p: Optional[Path]) -> Optional[str]:
    return str(p) if p is not None else None


class InstructionCategory(str, Enum):
    LOAD = "load"
    STORE = "store"
    BOUNDS_OP = "bounds_op"
    ARITHMETIC = "arithmetic"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str) -> "InstructionCategory":
        """Parse a category name as written in configuration (case-insensitive)."""
        key = str(raw or "").strip().lower()
        for c in cls:
            if c.value == key:
                return c
        raise ValueError(f"unknown instruction category: {raw!r}")


class ArtifactStatus(str, Enum):
    FOUND = "found"
    MISSING = "missing"


@dataclass(frozen=True)
class ArchitectureLabel:
    """One compilation target.

    ``name`` doubles as the artifact sub-directory name; ``suffix`` is appended
    to the test-case name in artifact filenames (e.g. ``_cheri``).
    """

    name: str
    toolchain: str
    suffix: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "toolchain": self.toolchain, "suffix": self.suffix}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ArchitectureLabel":
        return cls(
            name=str(d.get("name") or ""),
            toolchain=str(d.get("toolchain") or ""),
            suffix=str(d.get("suffix") or ""),
        )


@dataclass(frozen=True)
class BuildArtifact:
    """The artifacts one toolchain produced for one test case.

    ``binary_path`` is always the *expected* location. ``assembly_path`` and
    ``log_path`` are ``None`` when the file does not exist. ``size_bytes`` is set
    only when the binary exists, is readable and non-empty.
    """

    test_case_name: str
    architecture: ArchitectureLabel
    binary_path: Path
    assembly_path: Optional[Path] = None
    log_path: Optional[Path] = None
    size_bytes: Optional[int] = None

    @property
    def status(self) -> ArtifactStatus:
        return ArtifactStatus.FOUND if self.size_bytes is not None else ArtifactStatus.MISSING

    @property
    def has_assembly(self) -> bool:
        return self.assembly_path is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "test_case_name": self.test_case_name,
            "architecture": self.architecture.to_dict(),
            "binary_path": str(self.binary_path),
            "assembly_path": _opt_str(self.assembly_path),
            "log_path": _opt_str(self.log_path),
            "size_bytes": self.size_bytes,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "BuildArtifact":
        size = d.get("size_bytes")
        return cls(
            test_case_name=str(d.get("test_case_name") or ""),
            architecture=ArchitectureLabel.from_dict(d.get("architecture") or {}),
            binary_path=Path(str(d.get("binary_path") or "")),
            assembly_path=_opt_path(d.get("assembly_path")),
            log_path=_opt_path(d.get("log_path")),
            size_bytes=int(size) if size is not None else None,
        )


@dataclass(frozen=True)
class InstructionRecord:
    mnemonic: str
    category: InstructionCategory
