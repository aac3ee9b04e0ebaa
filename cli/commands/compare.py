from __future__ import annotations

import argparse

from cli.common import parse_csv, print_paths
from pipeline.pipeline import ArchbenchPipeline


def compare_mode(args: argparse.Namespace, pipeline: ArchbenchPipeline) -> int:
    refs = parse_csv(args.runs)
    if len(refs) != 2:
        raise SystemExit(f"--runs expects exactly two comma-separated run refs (got {args.runs!r})")

    cmp, paths = pipeline.compare(refs[0], refs[1], out_dir=args.out)

    print(f"\n✅ Compared {cmp.previous_run_id} -> {cmp.current_run_id}")
    if cmp.added:
        print(f"  Added   : {', '.join(cmp.added)}")
    if cmp.removed:
        print(f"  Removed : {', '.join(cmp.removed)}")
    for c in cmp.status_changes:
        print(f"  Status  : {c.test_case_name} {c.previous_status.value} -> {c.current_status.value}")
    print_paths(paths)
    return 0
