from __future__ import annotations

"""pipeline.report

Feature package for run reports.

Public API:
- ReportGenerator.render(run) -> Report
- write_report(report, out_dir, run=...)

The implementation is split into small modules:
- model.py: the Report value and shared cell formatters
- render_csv.py: summary.csv / instruction_categories.csv
- render_md.py: markdown narrative
- render_asm.py: side-by-side assembly excerpts (optional)
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from archbench.domain import AnalysisRun
from archbench.io.fs import write_json_atomic, write_text_atomic
from archbench.io.layout import RUN_FILENAME

from .model import MARKDOWN_FILENAME, NA_TEXT, Report
from .render_csv import CATEGORIES_FILENAME, SUMMARY_FILENAME, render_categories_csv, render_summary_csv
from .render_asm import ASSEMBLY_FILENAME, AssemblyExcerptOptions, render_assembly_comparison
from .render_md import render_report_markdown

logger = logging.getLogger(__name__)

__all__ = [
    "ASSEMBLY_FILENAME",
    "AssemblyExcerptOptions",
    "CATEGORIES_FILENAME",
    "MARKDOWN_FILENAME",
    "NA_TEXT",
    "Report",
    "ReportGenerator",
    "SUMMARY_FILENAME",
    "write_report",
]


class ReportGenerator:
    """The same run always yields byte-identical output.

    The tables and the narrative depend on the run alone. The optional
    assembly comparison also reads the listings the run points at.
    """

    def __init__(self, assembly_excerpt: Optional[AssemblyExcerptOptions] = None) -> None:
        self.assembly_excerpt = assembly_excerpt or AssemblyExcerptOptions()

    def render(self, run: AnalysisRun) -> Report:
        documents: Dict[str, str] = {}
        if self.assembly_excerpt.enabled:
            documents[ASSEMBLY_FILENAME] = render_assembly_comparison(run, self.assembly_excerpt)
        return Report(
            run_id=run.run_id,
            tables={
                SUMMARY_FILENAME: render_summary_csv(run),
                CATEGORIES_FILENAME: render_categories_csv(run),
            },
            markdown=render_report_markdown(run),
            documents=documents,
        )


def write_report(
    report: Report,
    out_dir: Union[str, Path],
    *,
    run: Optional[AnalysisRun] = None,
) -> Dict[str, str]:
    """Write every file of *report* (plus ``run.json`` when *run* is given).

    Returns ``{filename: absolute path}``.
    """

    out = Path(out_dir).resolve()
    written: Dict[str, str] = {}
    for name, text in sorted(report.files().items()):
        written[name] = str(write_text_atomic(out / name, text))
    if run is not None:
        written[RUN_FILENAME] = str(write_json_atomic(out / RUN_FILENAME, run.to_dict()))
    logger.info("wrote %d report file(s) for run %s to %s", len(written), report.run_id, out)
    return written
