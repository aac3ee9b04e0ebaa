from __future__ import annotations

import copy
import pickle
from pathlib import Path

import pytest

from archbench.domain import (
    NA,
    ArchitectureLabel,
    BuildArtifact,
    InstructionCategory,
    MetricSet,
    MetricStatus,
    is_na,
)
from pipeline.classifier import InstructionClassifier, RuleTable
from pipeline.metrics import MetricsComputer, overhead_pct

from conftest import CHERI_ASM, CHERI_RULES, RISCV_ASM, RISCV_RULES

RISCV = ArchitectureLabel(name="riscv", toolchain="riscv64-elf-gcc")
CHERI = ArchitectureLabel(name="cheri", toolchain="cheri-clang", suffix="_cheri")


@pytest.mark.parametrize(
    "baseline,candidate,expected",
    [
        (18416, 8424, -54.26),
        (26488, 22960, -13.32),
        (38992, 47416, 21.6),
        (100, 100, 0.0),
    ],
)
def test_overhead_formula(baseline: int, candidate: int, expected: float) -> None:
    assert overhead_pct(baseline, candidate) == expected
    assert overhead_pct(baseline, candidate) == round((candidate - baseline) * 100 / baseline, 2)


@pytest.mark.parametrize("baseline,candidate", [(0, 10), (None, 10), (10, None), (0, 0), (None, None)])
def test_undefined_overhead_is_na(baseline, candidate) -> None:
    value = overhead_pct(baseline, candidate)
    assert value is NA
    assert is_na(value)
    assert value != 0


def test_na_singleton_behaviour() -> None:
    assert not NA
    assert str(NA) == "N/A"
    assert repr(NA) == "NA"
    assert copy.copy(NA) is NA
    assert copy.deepcopy(NA) is NA
    assert pickle.loads(pickle.dumps(NA)) is NA


def _computer() -> MetricsComputer:
    return MetricsComputer(
        {
            "riscv": InstructionClassifier(RuleTable.from_dict("riscv", RISCV_RULES)),
            "cheri": InstructionClassifier(RuleTable.from_dict("cheri", CHERI_RULES)),
        }
    )


def _artifact(tmp_path: Path, arch: ArchitectureLabel, size, asm) -> BuildArtifact:
    asm_path = None
    if asm is not None:
        asm_path = tmp_path / f"{arch.name}.s"
        asm_path.write_text(asm, encoding="utf-8")
    return BuildArtifact(
        test_case_name="t",
        architecture=arch,
        binary_path=tmp_path / arch.name,
        assembly_path=asm_path,
        size_bytes=size,
    )


def test_compute_ok(tmp_path: Path) -> None:
    m = _computer().compute(
        "t",
        _artifact(tmp_path, RISCV, 18416, RISCV_ASM),
        _artifact(tmp_path, CHERI, 8424, CHERI_ASM),
        kind="security",
    )

    assert m.status is MetricStatus.OK
    assert m.size_overhead_pct == -54.26
    assert m.instruction_total(RISCV) == 3
    assert m.instruction_total(CHERI) == 5
    assert m.instruction_overhead_pct == 66.67
    assert m.category_count(CHERI, InstructionCategory.BOUNDS_OP) == 2
    assert m.memory_ops(RISCV) == 2
    assert m.memory_ops(CHERI) == 2
    assert m.size_delta_bytes == 8424 - 18416
    assert m.instruction_delta == 2
    assert m.kind == "security"
    assert m.notes == ()


def test_compute_is_deterministic(tmp_path: Path) -> None:
    b = _artifact(tmp_path, RISCV, 100, RISCV_ASM)
    c = _artifact(tmp_path, CHERI, 120, CHERI_ASM)
    assert _computer().compute("t", b, c) == _computer().compute("t", b, c)


def test_missing_assembly_is_partial(tmp_path: Path) -> None:
    m = _computer().compute(
        "t",
        _artifact(tmp_path, RISCV, 100, RISCV_ASM),
        _artifact(tmp_path, CHERI, 150, None),
    )

    assert m.status is MetricStatus.PARTIAL
    assert m.size_overhead_pct == 50.0
    assert m.instruction_overhead_pct is NA
    assert m.counts_for(CHERI) is None
    assert m.instruction_total(RISCV) == 3
    assert m.instruction_delta is NA
    assert any("assembly listing missing" in n for n in m.notes)


def test_unreadable_assembly_is_partial(tmp_path: Path) -> None:
    cheri = BuildArtifact(
        test_case_name="t",
        architecture=CHERI,
        binary_path=tmp_path / "cheri",
        assembly_path=tmp_path / "vanished.s",
        size_bytes=150,
    )
    m = _computer().compute("t", _artifact(tmp_path, RISCV, 100, RISCV_ASM), cheri)

    assert m.status is MetricStatus.PARTIAL
    assert m.instruction_overhead_pct is NA
    assert any("vanished.s" in n for n in m.notes)


def test_missing_binary_is_failed(tmp_path: Path) -> None:
    m = _computer().compute(
        "t",
        _artifact(tmp_path, RISCV, 100, RISCV_ASM),
        _artifact(tmp_path, CHERI, None, CHERI_ASM),
    )

    assert m.status is MetricStatus.FAILED
    assert m.size_overhead_pct is NA
    assert m.size_delta_bytes is NA
    assert any("binary missing" in n for n in m.notes)


def test_empty_listing_counts_zero_not_unknown(tmp_path: Path) -> None:
    m = _computer().compute(
        "t",
        _artifact(tmp_path, RISCV, 100, "\t.text\n"),
        _artifact(tmp_path, CHERI, 100, CHERI_ASM),
    )

    assert m.status is MetricStatus.OK
    assert m.counts_for(RISCV) == {c: 0 for c in InstructionCategory}
    # zero baseline instructions: ratio undefined, not 0%
    assert m.instruction_overhead_pct is NA


def test_metric_set_dict_round_trip(tmp_path: Path) -> None:
    m = _computer().compute(
        "t",
        _artifact(tmp_path, RISCV, 100, RISCV_ASM),
        _artifact(tmp_path, CHERI, None, None),
        kind="stress",
    )
    assert MetricSet.from_dict(m.to_dict()) == m


def test_metric_set_counts_are_read_only(tmp_path: Path) -> None:
    counts = {c: 1 for c in InstructionCategory}
    m = MetricSet(
        test_case_name="t",
        baseline=_artifact(tmp_path, RISCV, 100, None),
        candidate=_artifact(tmp_path, CHERI, 120, None),
        size_overhead_pct=20.0,
        instruction_counts={RISCV: counts, CHERI: None},
        instruction_overhead_pct=NA,
        status=MetricStatus.PARTIAL,
    )

    # the caller's dict is copied, not shared
    counts[InstructionCategory.LOAD] = 99
    assert m.category_count(RISCV, InstructionCategory.LOAD) == 1

    with pytest.raises(TypeError):
        m.instruction_counts[CHERI] = {}  # type: ignore[index]
    with pytest.raises(TypeError):
        m.counts_for(RISCV)[InstructionCategory.LOAD] = 5  # type: ignore[index]

    assert hash(m) == hash(copy.deepcopy(m))
    assert pickle.loads(pickle.dumps(m)) == m
