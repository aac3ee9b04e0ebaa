from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

from pipeline.config import PipelineConfig

RISCV_RULES: Dict[str, Any] = {
    "default": "other",
    "rules": [
        {"category": "load", "regex": r"^(c\.)?f?l[bhwd]u?(sp)?$"},
        {"category": "store", "regex": r"^(c\.)?f?s[bhwd](sp)?$"},
        {"category": "arithmetic", "exact": ["add", "addi", "sub", "mul", "mv", "li"]},
    ],
}

CHERI_RULES: Dict[str, Any] = {
    "default": "other",
    "rules": [
        {"category": "load", "regex": r"^cl[bhwdc]u?$"},
        {"category": "store", "regex": r"^cs[bhwdc]$"},
        {"category": "load", "regex": r"^(c\.)?f?l[bhwd]u?(sp)?$"},
        {"category": "store", "regex": r"^(c\.)?f?s[bhwd](sp)?$"},
        {"category": "arithmetic", "exact": ["add", "addi", "sub", "mul", "mv", "li"]},
        {"category": "other", "regex": r"^(call|csr|cj|cret)"},
        {"category": "bounds_op", "prefix": "c"},
    ],
}

# 3 instructions on the baseline: load, store, arithmetic
RISCV_ASM = """\
\t.text
\t.globl\tmain
main:                                   # @main
\taddi\tsp, sp, -16
\tsd\tra, 8(sp)
\tld\tra, 8(sp)
"""

# 5 instructions on the candidate: cap load, cap store, arithmetic, 2 bounds ops
CHERI_ASM = """\
\t.text
main:
\tcincoffset\tcsp, csp, -32
\tcsc\tcra, 16(csp)
\tcsetbounds\tca0, ca0, 4
\taddi\ta0, zero, 1
\tclc\tcra, 16(csp)
"""


def base_config_dict(
    artifact_root: Path,
    runs_dir: Path,
    test_cases: Sequence[Any],
    **extra: Any,
) -> Dict[str, Any]:
    raw: Dict[str, Any] = {
        "artifact_root": str(artifact_root),
        "runs_dir": str(runs_dir),
        "workers": 4,
        "baseline": "riscv",
        "candidate": "cheri",
        "architectures": [
            {"name": "riscv", "toolchain": "riscv64-elf-gcc", "rules": "riscv"},
            {"name": "cheri", "toolchain": "cheri-clang", "suffix": "_cheri", "rules": "cheri"},
        ],
        "test_cases": list(test_cases),
        "rule_tables": {"riscv": RISCV_RULES, "cheri": CHERI_RULES},
    }
    raw.update(extra)
    return raw


def write_case(
    artifact_root: Path,
    arch: str,
    name: str,
    *,
    suffix: str = "",
    size: Optional[int] = 100,
    asm: Optional[str] = None,
    log: Optional[str] = None,
) -> None:
    """Create ``<root>/<arch>/<name><suffix>[.s|_build.log]`` like a toolchain would."""
    arch_dir = artifact_root / arch
    arch_dir.mkdir(parents=True, exist_ok=True)
    if size is not None:
        (arch_dir / f"{name}{suffix}").write_bytes(b"\0" * size)
    if asm is not None:
        (arch_dir / f"{name}{suffix}.s").write_text(asm, encoding="utf-8")
    if log is not None:
        (arch_dir / f"{name}{suffix}_build.log").write_text(log, encoding="utf-8")


@pytest.fixture
def artifact_root(tmp_path: Path) -> Path:
    root = tmp_path / "artifacts"
    (root / "riscv").mkdir(parents=True)
    (root / "cheri").mkdir(parents=True)
    return root


@pytest.fixture
def make_config(tmp_path: Path, artifact_root: Path) -> Callable[..., PipelineConfig]:
    def _make(test_cases: List[Any], **extra: Any) -> PipelineConfig:
        # extra keys (artifact_root included) replace the defaults
        raw = base_config_dict(artifact_root, tmp_path / "runs", test_cases)
        raw.update(extra)
        return PipelineConfig.from_dict(raw)

    return _make
