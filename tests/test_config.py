from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from archbench.domain import FatalConfigurationError, InstructionCategory
from pipeline.config import apply_env_overrides, apply_overrides, load_config
from pipeline.core import DEFAULT_CONFIG_PATH

from conftest import base_config_dict


def _write(tmp_path: Path, raw) -> Path:
    p = tmp_path / "cfg" / "archbench.yaml"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")
    return p


def test_bundled_example_config_loads() -> None:
    cfg = load_config(DEFAULT_CONFIG_PATH)

    assert cfg.baseline == "standard-riscv"
    assert cfg.candidate == "authentic-cheri"
    assert cfg.candidate_label.suffix == "_cheri"
    assert [c.name for c in cfg.test_cases][:2] == ["buffer_overflow", "use_after_free"]
    assert cfg.artifact_root == (DEFAULT_CONFIG_PATH.parent / ".." / "raw-outputs")

    riscv = cfg.rule_table_for("standard-riscv")
    cheri = cfg.rule_table_for("authentic-cheri")
    assert riscv.categorize("ld") is InstructionCategory.LOAD
    assert riscv.categorize("c.sdsp") is InstructionCategory.STORE
    assert riscv.categorize("addi") is InstructionCategory.ARITHMETIC
    assert riscv.categorize("jal") is InstructionCategory.OTHER
    assert cheri.categorize("clc") is InstructionCategory.LOAD
    assert cheri.categorize("csc") is InstructionCategory.STORE
    assert cheri.categorize("csetbounds") is InstructionCategory.BOUNDS_OP
    assert cheri.categorize("cincoffset") is InstructionCategory.BOUNDS_OP
    assert cheri.categorize("call") is InstructionCategory.OTHER
    assert cheri.categorize("csrr") is InstructionCategory.OTHER
    assert cheri.categorize("c.addi") is InstructionCategory.ARITHMETIC

    assert cfg.assembly_excerpt.enabled
    assert cfg.assembly_excerpt.symbol == "main"
    assert cfg.assembly_excerpt.max_lines == 50


def test_relative_paths_are_anchored_at_config_dir(tmp_path: Path) -> None:
    raw = base_config_dict(Path("artifacts"), Path("runs"), ["a"])
    p = _write(tmp_path, raw)

    cfg = load_config(p)

    assert cfg.artifact_root == p.parent.resolve() / "artifacts"
    assert cfg.runs_dir == p.parent.resolve() / "runs"
    assert cfg.source == p.resolve()


def test_per_case_artifact_overrides(tmp_path: Path) -> None:
    raw = base_config_dict(
        tmp_path,
        tmp_path / "runs",
        [{"name": "uaf", "kind": "security", "artifacts": {"cheri": {"assembly": "uaf-purecap.S"}}}],
    )
    cfg = load_config(_write(tmp_path, raw))
    case = cfg.test_cases[0]

    assert case.kind == "security"
    assert cfg.filename_templates(case, "cheri")["assembly"] == "uaf-purecap.S"
    assert cfg.filename_templates(case, "riscv")["assembly"] == "{test_case}{suffix}.s"


@pytest.mark.parametrize(
    "mutate",
    [
        lambda r: r.update(baseline="x86"),
        lambda r: r.update(candidate=r["baseline"]),
        lambda r: r["architectures"][0].update(rules="missing"),
        lambda r: r["architectures"].append(dict(r["architectures"][0])),
        lambda r: r.update(test_cases=["a", "a"]),
        lambda r: r["rule_tables"]["riscv"]["rules"].append({"category": "load", "regex": "("}),
        lambda r: r["rule_tables"]["riscv"]["rules"].append({"category": "branch", "prefix": "b"}),
        lambda r: r.update(workers=0),
        lambda r: r.update(filenames={"listing": "{test_case}.lst"}),
        lambda r: r.pop("artifact_root"),
        lambda r: r.update(test_cases="abc"),
        lambda r: r.update(test_cases=[{"name": "a", "artifacts": ["riscv"]}]),
        lambda r: r.update(architectures={"name": "riscv", "rules": "riscv"}),
        lambda r: r["rule_tables"]["riscv"].update(rules={"category": "load", "prefix": "l"}),
        lambda r: r.update(filenames={"binary": "{testcase}"}),
        lambda r: r.update(test_cases=[{"name": "a", "artifacts": {"cheri": {"assembly": "{test_case"}}}]),
        lambda r: r.update(assembly_excerpt={"max_lines": 0}),
    ],
)
def test_invalid_configuration_is_fatal(tmp_path: Path, mutate) -> None:
    raw = base_config_dict(tmp_path, tmp_path / "runs", ["a"])
    # rule tables are shared module constants; copy before mutating
    raw["rule_tables"] = yaml.safe_load(yaml.safe_dump(raw["rule_tables"]))
    mutate(raw)

    with pytest.raises(FatalConfigurationError):
        load_config(_write(tmp_path, raw))


def test_missing_or_malformed_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(FatalConfigurationError):
        load_config(tmp_path / "absent.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(FatalConfigurationError):
        load_config(bad)


def test_env_then_cli_overrides(tmp_path: Path) -> None:
    cfg = load_config(_write(tmp_path, base_config_dict(tmp_path, tmp_path / "runs", ["a"])))

    env = {
        "ARCHBENCH_ARTIFACT_ROOT": str(tmp_path / "env-art"),
        "ARCHBENCH_WORKERS": "2",
    }
    cfg = apply_env_overrides(cfg, env)
    assert cfg.artifact_root == (tmp_path / "env-art").resolve()
    assert cfg.workers == 2
    assert cfg.runs_dir == tmp_path / "runs"

    cfg = apply_overrides(cfg, workers=8, runs_dir=tmp_path / "cli-runs")
    assert cfg.workers == 8
    assert cfg.runs_dir == (tmp_path / "cli-runs").resolve()
    assert cfg.artifact_root == (tmp_path / "env-art").resolve()

    with pytest.raises(FatalConfigurationError):
        apply_env_overrides(cfg, {"ARCHBENCH_WORKERS": "many"})
