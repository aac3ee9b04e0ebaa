from __future__ import annotations

from pathlib import Path

from archbench.domain import ArchitectureLabel, ArtifactStatus
from archbench.io.layout import expected_artifact_paths
from pipeline.locator import ArtifactLocator

from conftest import write_case

CHERI = ArchitectureLabel(name="cheri", toolchain="cheri-clang", suffix="_cheri")
RISCV = ArchitectureLabel(name="riscv", toolchain="riscv64-elf-gcc")


def test_locate_follows_naming_convention(artifact_root: Path) -> None:
    write_case(artifact_root, "cheri", "buffer_overflow", suffix="_cheri", size=8424, asm="\tnop\n", log="ok\n")

    a = ArtifactLocator(artifact_root).locate("buffer_overflow", CHERI)

    arch_dir = artifact_root / "cheri"
    assert a.binary_path == arch_dir / "buffer_overflow_cheri"
    assert a.assembly_path == arch_dir / "buffer_overflow_cheri.s"
    assert a.log_path == arch_dir / "buffer_overflow_cheri_build.log"
    assert a.size_bytes == 8424
    assert a.status is ArtifactStatus.FOUND
    assert a.architecture == CHERI


def test_missing_binary_is_not_an_error(artifact_root: Path) -> None:
    a = ArtifactLocator(artifact_root).locate("nope", RISCV)

    assert a.size_bytes is None
    assert a.status is ArtifactStatus.MISSING
    assert a.assembly_path is None
    assert a.log_path is None
    # the expected location is still recorded for the report
    assert a.binary_path == artifact_root / "riscv" / "nope"


def test_zero_byte_binary_counts_as_missing(artifact_root: Path) -> None:
    write_case(artifact_root, "riscv", "empty", size=0, asm="")

    a = ArtifactLocator(artifact_root).locate("empty", RISCV)

    assert a.size_bytes is None
    assert a.status is ArtifactStatus.MISSING
    assert a.assembly_path == artifact_root / "riscv" / "empty.s"


def test_missing_assembly_is_none_not_empty(artifact_root: Path) -> None:
    write_case(artifact_root, "riscv", "noasm", size=10)

    a = ArtifactLocator(artifact_root).locate("noasm", RISCV)

    assert a.size_bytes == 10
    assert a.assembly_path is None
    assert a.has_assembly is False


def test_templates_override_filenames(artifact_root: Path) -> None:
    arch_dir = artifact_root / "cheri"
    (arch_dir / "use_after_free").write_bytes(b"\0" * 12)
    (arch_dir / "uaf-purecap.S").write_text("\tclc\tca0, 0(csp)\n", encoding="utf-8")

    a = ArtifactLocator(artifact_root).locate(
        "use_after_free",
        CHERI,
        templates={"binary": "{test_case}", "assembly": "uaf-purecap.S"},
    )

    assert a.size_bytes == 12
    assert a.assembly_path == arch_dir / "uaf-purecap.S"


def test_expected_artifact_paths_defaults() -> None:
    paths = expected_artifact_paths("/art", arch_name="cheri", test_case="t", suffix="_cheri")

    assert paths.binary == Path("/art/cheri/t_cheri")
    assert paths.assembly == Path("/art/cheri/t_cheri.s")
    assert paths.log == Path("/art/cheri/t_cheri_build.log")
