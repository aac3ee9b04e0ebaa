from __future__ import annotations

import argparse


def add_store_args(parser: argparse.ArgumentParser) -> None:
    """Register flags for the historical run store and report output."""

    parser.add_argument(
        "--runs-dir",
        help="Override runs_dir from the configuration (also: $ARCHBENCH_RUNS_DIR)",
    )
    parser.add_argument(
        "--out",
        help="(run|report|compare) Write report files here instead of <runs_dir>/<run_id>/report/",
    )
    parser.add_argument(
        "--run-id",
        default="latest",
        help="(report mode) Stored run id to render, or 'latest' (default)",
    )
    parser.add_argument(
        "--runs",
        default="previous,latest",
        help="(compare mode) Two comma-separated run refs: <previous>,<current> (default: previous,latest)",
    )
