#!/usr/bin/env python3
"""
CLI for the architecture comparison pipeline.

Modes:
  1) run     - compare every declared test case, store the run, write reports
  2) list    - show stored runs, newest first
  3) report  - re-render the reports of a stored run
  4) compare - diff two stored runs

Usage:
  python archbench_cli.py
  python archbench_cli.py --config configs/cheri_vs_riscv.yaml --artifact-root build
  python archbench_cli.py --mode list
  python archbench_cli.py --mode report --run-id latest --out /tmp/report
  python archbench_cli.py --mode compare --runs previous,latest

Exit codes:
  0  the run (or command) completed, even if some test cases FAILED
  1  a requested stored run does not exist
  2  fatal configuration problem or exhausted run-id space
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from archbench.domain import FatalConfigurationError, RunNotFoundError, StorageCollisionError
from cli.args.base import add_base_args
from cli.args.store import add_store_args
from cli.dispatch import dispatch
from pipeline.core import ENV_PATH
from pipeline.wiring import build_pipeline, configure_logging, load_environment

EXIT_OK = 0
EXIT_RUN_NOT_FOUND = 1
EXIT_FATAL = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare binaries and assembly listings built by two toolchains and track the results."
    )
    add_base_args(parser)
    add_store_args(parser)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    # Always load .env from repo root so terminal runs behave like IDE runs
    load_environment(ENV_PATH)
    configure_logging(args.log_level)

    try:
        pipeline = build_pipeline(
            args.config,
            artifact_root=args.artifact_root,
            runs_dir=args.runs_dir,
            workers=args.workers,
            load_env=False,
        )
        return dispatch(args, pipeline)
    except RunNotFoundError as e:
        print(f"\n❌ {e}")
        return EXIT_RUN_NOT_FOUND
    except (FatalConfigurationError, StorageCollisionError) as e:
        print(f"\n❌ {e}")
        return EXIT_FATAL


if __name__ == "__main__":
    raise SystemExit(main())
