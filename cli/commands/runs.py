from __future__ import annotations

import argparse

from archbench.domain import ArchbenchError

from cli.common import status_line
from pipeline.pipeline import ArchbenchPipeline


def list_mode(args: argparse.Namespace, pipeline: ArchbenchPipeline) -> int:
    run_ids = pipeline.list_runs()
    if not run_ids:
        print(f"ℹ️ No stored runs under {pipeline.store.runs_dir}")
        return 0

    latest = pipeline.store.latest()
    print(f"\nStored runs ({len(run_ids)}) under {pipeline.store.runs_dir}, newest first:")
    for rid in run_ids:
        marker = " (LATEST)" if rid == latest else ""
        try:
            run = pipeline.store.load(rid)
        except (ArchbenchError, OSError, ValueError) as e:
            print(f"  {rid}{marker}  ⚠️ unreadable: {e}")
            continue
        print(f"  {rid}{marker}  cases={len(run.metric_sets)}  {status_line(run)}")
    return 0
