from __future__ import annotations

import argparse

MODES = ("run", "list", "report", "compare")


def add_base_args(parser: argparse.ArgumentParser) -> None:
    """Register CLI flags that are shared across every mode.

    This includes:
    - mode selection
    - configuration file and overrides
    - logging
    """

    parser.add_argument(
        "--mode",
        choices=list(MODES),
        default="run",
        help=(
            "run = compare every declared test case and store the run (default), "
            "list = show stored runs, report = re-render a stored run, compare = diff two stored runs"
        ),
    )
    parser.add_argument(
        "--config",
        help="Path to the YAML configuration (default: $ARCHBENCH_CONFIG or configs/cheri_vs_riscv.yaml)",
    )
    parser.add_argument(
        "--artifact-root",
        help="Override artifact_root from the configuration (also: $ARCHBENCH_ARTIFACT_ROOT)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Worker pool size for per-test-case work (also: $ARCHBENCH_WORKERS)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ...; also: $ARCHBENCH_LOG_LEVEL)",
    )
