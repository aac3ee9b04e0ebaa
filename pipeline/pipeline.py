"""pipeline.pipeline

This module defines a *single, high-level* object that represents this repo's
primary capabilities.

Why this exists
---------------
The behavior is implemented across several modules:

- :mod:`pipeline.orchestrator` contains the operational entrypoints
  (run, regenerate reports, compare runs).
- :mod:`pipeline.store` owns the historical run store.
- :mod:`pipeline.config` resolves what to compare.

Callers (CLI, scripts, notebooks, CI runners) should not have to wire these
together themselves. The :class:`~pipeline.pipeline.ArchbenchPipeline` facade
gives the repo one obvious entrypoint with a small API:

- ``run()``: compare every declared test case and store the run
- ``list_runs()``: stored run ids, newest first
- ``report(run_ref)``: re-render a stored run
- ``compare(previous, current)``: diff two stored runs
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from archbench.domain import AnalysisRun

from pipeline.compare import RunComparison
from pipeline.config import PipelineConfig
from pipeline.orchestrator import RunResult, compare_stored_runs, regenerate_report, run_analysis
from pipeline.report import ReportGenerator
from pipeline.store import HistoricalRunStore


class ArchbenchPipeline:
    """High-level facade over the pipeline.

    Callers should prefer using this object (built via :func:`pipeline.wiring.build_pipeline`)
    rather than importing low-level modules directly.
    """

    def __init__(
        self,
        config: PipelineConfig,
        *,
        store: Optional[HistoricalRunStore] = None,
        run_fn: Callable[..., RunResult] = run_analysis,
    ) -> None:
        self.config = config
        self.store = store or HistoricalRunStore(config.runs_dir)
        self._run_fn = run_fn

    def run(self, *, out_dir: Optional[Union[str, Path]] = None) -> RunResult:
        return self._run_fn(self.config, out_dir=out_dir, store=self.store)

    def list_runs(self) -> List[str]:
        return self.store.list_runs()

    def load(self, run_ref: str) -> AnalysisRun:
        return self.store.load(self.store.resolve(run_ref))

    def report(self, run_ref: str = "latest", *, out_dir: Optional[Union[str, Path]] = None) -> RunResult:
        generator = ReportGenerator(self.config.assembly_excerpt)
        return regenerate_report(self.store, run_ref, out_dir=out_dir, generator=generator)

    def compare(
        self,
        previous_ref: str = "previous",
        current_ref: str = "latest",
        *,
        out_dir: Optional[Union[str, Path]] = None,
    ) -> Tuple[RunComparison, Dict[str, str]]:
        return compare_stored_runs(self.store, previous_ref, current_ref, out_dir=out_dir)
