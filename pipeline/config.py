"""pipeline.config

YAML configuration for a comparison run.

Why this exists
---------------
The pipeline must never hard-code which architectures it compares, which test
cases exist, what their artifacts are called, or how instructions are
classified. All of that is declared in one YAML file (see
``configs/cheri_vs_riscv.yaml``) and parsed here into frozen dataclasses.

Validation is strict: anything that would prevent a consistent starting state
raises :class:`~archbench.domain.FatalConfigurationError` before any per-case
work is dispatched.

Environment overrides (``ARCHBENCH_*``) are applied on top, and CLI flags on
top of those.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from archbench.domain import ArchitectureLabel, FatalConfigurationError
from archbench.io.layout import ARTIFACT_KINDS, DEFAULT_FILENAMES, format_artifact_name

from pipeline.classifier import RuleTable
from pipeline.report.render_asm import AssemblyExcerptOptions
from pipeline.core import (
    DEFAULT_RUNS_DIR,
    DEFAULT_WORKERS,
    ENV_ARTIFACT_ROOT,
    ENV_RUNS_DIR,
    ENV_WORKERS,
)


# ----------------------------
# Model
# ----------------------------


@dataclass(frozen=True)
class ArchitectureConfig:
    label: ArchitectureLabel
    rules: str


@dataclass(frozen=True)
class TestCaseSpec:
    """One declared comparison unit.

    ``artifacts`` maps an architecture name to filename overrides
    (``binary``/``assembly``/``log``) for this case only.
    """

    __test__ = False  # not a pytest test class

    name: str
    kind: Optional[str] = None
    artifacts: Dict[str, Dict[str, str]] = field(default_factory=dict)


@dataclass(frozen=True)
class PipelineConfig:
    artifact_root: Path
    runs_dir: Path
    baseline: str
    candidate: str
    architectures: Tuple[ArchitectureConfig, ...]
    test_cases: Tuple[TestCaseSpec, ...]
    rule_tables: Dict[str, RuleTable]
    filenames: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FILENAMES))
    workers: int = DEFAULT_WORKERS
    assembly_excerpt: AssemblyExcerptOptions = field(default_factory=AssemblyExcerptOptions)
    source: Optional[Path] = None

    def architecture(self, name: str) -> ArchitectureConfig:
        for a in self.architectures:
            if a.label.name == name:
                return a
        raise KeyError(name)

    @property
    def baseline_label(self) -> ArchitectureLabel:
        return self.architecture(self.baseline).label

    @property
    def candidate_label(self) -> ArchitectureLabel:
        return self.architecture(self.candidate).label

    def rule_table_for(self, arch_name: str) -> RuleTable:
        return self.rule_tables[self.architecture(arch_name).rules]

    def filename_templates(self, test_case: TestCaseSpec, arch_name: str) -> Dict[str, str]:
        """Global templates with the case's per-architecture overrides applied."""
        out = dict(self.filenames)
        out.update(test_case.artifacts.get(arch_name) or {})
        return out

    @staticmethod
    def from_dict(raw: Mapping[str, Any], *, base_dir: Optional[Path] = None) -> "PipelineConfig":
        try:
            return _parse_config(raw, base_dir=base_dir)
        except (KeyError, TypeError, ValueError) as e:
            raise FatalConfigurationError(f"invalid configuration: {e}") from e


# ----------------------------
# Parsing
# ----------------------------


def _anchor(value: Union[str, Path], base_dir: Optional[Path]) -> Path:
    p = Path(value).expanduser()
    if p.is_absolute() or base_dir is None:
        return p
    return base_dir / p


def _parse_filenames(raw: Any, where: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"{where} must be a mapping of {'/'.join(ARTIFACT_KINDS)} -> filename")
    out: Dict[str, str] = {}
    for k, v in raw.items():
        if k not in ARTIFACT_KINDS:
            raise ValueError(f"{where}: unknown artifact kind {k!r}")
        if v:
            # fail at load time rather than inside every worker
            format_artifact_name(str(v), test_case="x", suffix="")
            out[str(k)] = str(v)
    return out


def _list_of(raw: Mapping[str, Any], key: str) -> List[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list (got {type(value).__name__})")
    return value


def _parse_workers(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("workers must be an integer")
    n = int(value)
    if n < 1:
        raise ValueError(f"workers must be >= 1 (got {n})")
    return n


def _parse_config(raw: Mapping[str, Any], *, base_dir: Optional[Path]) -> PipelineConfig:
    if not isinstance(raw, Mapping):
        raise ValueError("top level must be a mapping")

    tables_raw = raw.get("rule_tables") or {}
    if not isinstance(tables_raw, Mapping) or not tables_raw:
        raise ValueError("rule_tables must be a non-empty mapping")
    rule_tables = {str(name): RuleTable.from_dict(str(name), t) for name, t in tables_raw.items()}

    architectures: List[ArchitectureConfig] = []
    seen_arch: set[str] = set()
    for a_raw in _list_of(raw, "architectures"):
        if not isinstance(a_raw, Mapping):
            raise ValueError("each architecture must be a mapping")
        name = str(a_raw.get("name") or "").strip()
        if not name:
            raise ValueError("architecture without a name")
        if name in seen_arch:
            raise ValueError(f"duplicate architecture {name!r}")
        seen_arch.add(name)
        rules = str(a_raw.get("rules") or "").strip()
        if rules not in rule_tables:
            raise ValueError(f"architecture {name!r} references undefined rule table {rules!r}")
        label = ArchitectureLabel(
            name=name,
            toolchain=str(a_raw.get("toolchain") or name),
            suffix=str(a_raw.get("suffix") or ""),
        )
        architectures.append(ArchitectureConfig(label=label, rules=rules))

    baseline = str(raw.get("baseline") or "").strip()
    candidate = str(raw.get("candidate") or "").strip()
    for role, name in (("baseline", baseline), ("candidate", candidate)):
        if name not in seen_arch:
            raise ValueError(f"{role} {name!r} is not a declared architecture")
    if baseline == candidate:
        raise ValueError("baseline and candidate must be different architectures")

    test_cases: List[TestCaseSpec] = []
    seen_cases: set[str] = set()
    for c_raw in _list_of(raw, "test_cases"):
        # Allow bare names as shorthand.
        if isinstance(c_raw, str):
            c_raw = {"name": c_raw}
        if not isinstance(c_raw, Mapping):
            raise ValueError("each test case must be a name or a mapping")
        name = str(c_raw.get("name") or "").strip()
        if not name:
            raise ValueError("test case without a name")
        if name in seen_cases:
            raise ValueError(f"duplicate test case {name!r}")
        seen_cases.add(name)

        artifacts_raw = c_raw.get("artifacts") or {}
        if not isinstance(artifacts_raw, Mapping):
            raise ValueError(f"test case {name!r}: artifacts must be a mapping of architecture -> filenames")

        overrides: Dict[str, Dict[str, str]] = {}
        for arch_name, names in artifacts_raw.items():
            if arch_name not in seen_arch:
                raise ValueError(f"test case {name!r} overrides artifacts for unknown architecture {arch_name!r}")
            overrides[str(arch_name)] = _parse_filenames(names, f"test case {name!r} artifacts.{arch_name}")

        kind = c_raw.get("kind")
        test_cases.append(TestCaseSpec(name=name, kind=str(kind) if kind else None, artifacts=overrides))

    filenames = dict(DEFAULT_FILENAMES)
    filenames.update(_parse_filenames(raw.get("filenames"), "filenames"))

    artifact_root = raw.get("artifact_root")
    if not artifact_root:
        raise ValueError("artifact_root is required")

    return PipelineConfig(
        artifact_root=_anchor(str(artifact_root), base_dir),
        runs_dir=_anchor(str(raw.get("runs_dir") or DEFAULT_RUNS_DIR), base_dir),
        baseline=baseline,
        candidate=candidate,
        architectures=tuple(architectures),
        test_cases=tuple(test_cases),
        rule_tables=rule_tables,
        filenames=filenames,
        workers=_parse_workers(raw.get("workers", DEFAULT_WORKERS)),
        assembly_excerpt=AssemblyExcerptOptions.from_dict(raw.get("assembly_excerpt")),
    )


# ----------------------------
# YAML IO
# ----------------------------


def load_config(path: Union[str, Path]) -> PipelineConfig:
    """Load and validate a configuration file.

    Relative paths inside the file are anchored at the file's directory.
    """
    p = Path(path).expanduser().resolve()
    if not p.is_file():
        raise FatalConfigurationError(f"configuration not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise FatalConfigurationError(f"cannot parse {p}: {e}") from e
    if not isinstance(raw, dict):
        raise FatalConfigurationError(f"configuration must be a mapping/object at top level: {p}")
    cfg = PipelineConfig.from_dict(raw, base_dir=p.parent)
    return replace(cfg, source=p)


def apply_overrides(
    cfg: PipelineConfig,
    *,
    artifact_root: Optional[Union[str, Path]] = None,
    runs_dir: Optional[Union[str, Path]] = None,
    workers: Optional[Any] = None,
) -> PipelineConfig:
    """Return *cfg* with any non-``None`` override applied."""
    changes: Dict[str, Any] = {}
    if artifact_root:
        changes["artifact_root"] = Path(artifact_root).expanduser().resolve()
    if runs_dir:
        changes["runs_dir"] = Path(runs_dir).expanduser().resolve()
    if workers is not None:
        try:
            changes["workers"] = _parse_workers(workers)
        except (TypeError, ValueError) as e:
            raise FatalConfigurationError(f"invalid workers value {workers!r}: {e}") from e
    return replace(cfg, **changes) if changes else cfg


def apply_env_overrides(cfg: PipelineConfig, environ: Optional[Mapping[str, str]] = None) -> PipelineConfig:
    env = os.environ if environ is None else environ
    return apply_overrides(
        cfg,
        artifact_root=env.get(ENV_ARTIFACT_ROOT) or None,
        runs_dir=env.get(ENV_RUNS_DIR) or None,
        workers=env.get(ENV_WORKERS) or None,
    )
