from __future__ import annotations

import argparse

from cli.commands.compare import compare_mode
from cli.commands.report import report_mode
from cli.commands.run import run_mode
from cli.commands.runs import list_mode
from pipeline.pipeline import ArchbenchPipeline

MODE_HANDLERS = {
    "run": run_mode,
    "list": list_mode,
    "report": report_mode,
    "compare": compare_mode,
}


def dispatch(args: argparse.Namespace, pipeline: ArchbenchPipeline) -> int:
    mode = args.mode or "run"
    handler = MODE_HANDLERS.get(mode)
    if handler is None:
        raise SystemExit(f"Unknown mode: {mode}")
    return int(handler(args, pipeline))
