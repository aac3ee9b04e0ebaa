from __future__ import annotations

import argparse

from cli.common import print_paths, status_line
from pipeline.pipeline import ArchbenchPipeline


def report_mode(args: argparse.Namespace, pipeline: ArchbenchPipeline) -> int:
    result = pipeline.report(args.run_id or "latest", out_dir=args.out)
    print(f"\n✅ Rendered reports for run {result.run_id} ({status_line(result.run)})")
    print_paths(result.report_paths)
    return 0
