"""pipeline.orchestrator

High-level orchestration entrypoints for the comparison pipeline.

Goal
----
Keep *mode logic* (run / report / compare) out of the CLI. The CLI parses
arguments and resolves a :class:`~pipeline.config.PipelineConfig`; everything
from "check the artifact tree" to "write report files" happens here.

Execution model
---------------
1. Fatal preconditions are checked up front: the artifact root and both
   architecture directories must exist. Nothing is dispatched otherwise.
2. Each declared test case runs ``locate -> classify -> compute`` on a bounded
   thread pool. Cases share no data.
3. Results are joined by declaration index, never by completion order, and
   folded into one :class:`AnalysisRun`.
4. The run is saved exactly once, then reports are rendered and written.

Per-case failures of any kind become a ``FAILED``/``PARTIAL`` metric set with
a note. They never cancel sibling cases.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from archbench.domain import (
    NA,
    AnalysisRun,
    ArchbenchError,
    BuildArtifact,
    FatalConfigurationError,
    MetricSet,
    MetricStatus,
)
from archbench.io.fs import write_text_atomic
from archbench.io.layout import expected_artifact_paths
from archbench.io.run_dir import new_run_id

from pipeline.aggregate import aggregate
from pipeline.classifier import InstructionClassifier
from pipeline.compare import (
    COMPARISON_CSV,
    COMPARISON_MD,
    RunComparison,
    compare_runs,
    render_comparison_csv,
    render_comparison_markdown,
)
from pipeline.config import PipelineConfig, TestCaseSpec
from pipeline.locator import ArtifactLocator
from pipeline.metrics import MetricsComputer
from pipeline.report import ReportGenerator, write_report
from pipeline.store import HistoricalRunStore

logger = logging.getLogger(__name__)

CaseRunner = Callable[[TestCaseSpec], MetricSet]


@dataclass(frozen=True)
class RunResult:
    run: AnalysisRun
    report_dir: Path
    report_paths: Dict[str, str] = field(default_factory=dict)

    @property
    def run_id(self) -> str:
        return self.run.run_id


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


def check_preconditions(cfg: PipelineConfig) -> None:
    """Raise :class:`FatalConfigurationError` unless the artifact tree is usable."""
    root = cfg.artifact_root
    if not root.is_dir():
        raise FatalConfigurationError(f"artifact root does not exist: {root}")
    for name in (cfg.baseline, cfg.candidate):
        arch_dir = root / name
        if not arch_dir.is_dir():
            raise FatalConfigurationError(f"artifact directory for architecture {name!r} does not exist: {arch_dir}")


# ---------------------------------------------------------------------------
# Per-case work
# ---------------------------------------------------------------------------


class CaseProcessor:
    """``locate -> classify -> compute`` for one test case.

    Calling the processor never raises: anything that escapes the components
    is converted into a ``FAILED`` metric set for that case.
    """

    def __init__(self, cfg: PipelineConfig) -> None:
        self.cfg = cfg
        self.locator = ArtifactLocator(cfg.artifact_root)
        self.computer = MetricsComputer(
            {a.label.name: InstructionClassifier(cfg.rule_tables[a.rules]) for a in cfg.architectures}
        )

    def process(self, case: TestCaseSpec) -> MetricSet:
        cfg = self.cfg
        baseline = self.locator.locate(
            case.name, cfg.baseline_label, templates=cfg.filename_templates(case, cfg.baseline)
        )
        candidate = self.locator.locate(
            case.name, cfg.candidate_label, templates=cfg.filename_templates(case, cfg.candidate)
        )
        return self.computer.compute(case.name, baseline, candidate, kind=case.kind)

    def __call__(self, case: TestCaseSpec) -> MetricSet:
        try:
            return self.process(case)
        except (ArchbenchError, OSError) as e:
            logger.warning("%s: %s", case.name, e)
            return failed_metric_set(self.cfg, case, str(e))


def failed_metric_set(cfg: PipelineConfig, case: TestCaseSpec, note: str) -> MetricSet:
    """A ``FAILED`` placeholder that still names the expected artifacts."""

    def _side(arch_name: str) -> BuildArtifact:
        label = cfg.architecture(arch_name).label
        try:
            binary = expected_artifact_paths(
                cfg.artifact_root,
                arch_name=label.name,
                test_case=case.name,
                suffix=label.suffix,
                templates=cfg.filename_templates(case, arch_name),
            ).binary
        except ValueError:
            binary = cfg.artifact_root / label.name / case.name
        return BuildArtifact(test_case_name=case.name, architecture=label, binary_path=binary)

    baseline, candidate = _side(cfg.baseline), _side(cfg.candidate)
    return MetricSet(
        test_case_name=case.name,
        baseline=baseline,
        candidate=candidate,
        size_overhead_pct=NA,
        instruction_counts={baseline.architecture: None, candidate.architecture: None},
        instruction_overhead_pct=NA,
        status=MetricStatus.FAILED,
        kind=case.kind,
        notes=(note,),
    )


def compute_metric_sets(
    cfg: PipelineConfig,
    *,
    case_runner: Optional[CaseRunner] = None,
    workers: Optional[int] = None,
) -> List[MetricSet]:
    """Run every declared case on a bounded pool; results in declaration order."""

    runner = case_runner or CaseProcessor(cfg)
    cases: Sequence[TestCaseSpec] = cfg.test_cases
    results: List[Optional[MetricSet]] = [None] * len(cases)
    max_workers = max(1, int(workers or cfg.workers))

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures: Dict[Future, Tuple[int, TestCaseSpec]] = {
            pool.submit(runner, case): (i, case) for i, case in enumerate(cases)
        }
        for fut in as_completed(futures):
            i, case = futures[fut]
            try:
                results[i] = fut.result()
            except Exception as e:
                logger.warning("%s: unexpected error: %s", case.name, e, exc_info=True)
                results[i] = failed_metric_set(cfg, case, f"unexpected error: {type(e).__name__}: {e}")
            logger.debug("%s: %s", case.name, results[i].status.value)

    return [m for m in results if m is not None]


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _now_iso(now: datetime) -> str:
    return now.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def run_analysis(
    cfg: PipelineConfig,
    *,
    out_dir: Optional[Union[str, Path]] = None,
    store: Optional[HistoricalRunStore] = None,
    generator: Optional[ReportGenerator] = None,
    case_runner: Optional[CaseRunner] = None,
    now: Optional[datetime] = None,
) -> RunResult:
    """Execute one full pipeline run and write its reports."""

    check_preconditions(cfg)

    ts = now or datetime.now(timezone.utc)
    store = store or HistoricalRunStore(cfg.runs_dir)
    generator = generator or ReportGenerator(cfg.assembly_excerpt)

    logger.info(
        "run started: %d test case(s), %s vs %s, %d worker(s)",
        len(cfg.test_cases),
        cfg.baseline,
        cfg.candidate,
        cfg.workers,
    )
    metric_sets = compute_metric_sets(cfg, case_runner=case_runner)

    run = aggregate(
        new_run_id(ts),
        metric_sets,
        baseline=cfg.baseline_label,
        candidate=cfg.candidate_label,
        created_at=_now_iso(ts),
    )
    run_id = store.save(run)
    run = run.with_run_id(run_id)

    report_dir = Path(out_dir) if out_dir else store.report_dir(run_id)
    paths = write_report(generator.render(run), report_dir, run=run)

    counts = run.status_counts()
    logger.info(
        "run finished: %s (OK=%d PARTIAL=%d FAILED=%d)",
        run_id,
        counts[MetricStatus.OK],
        counts[MetricStatus.PARTIAL],
        counts[MetricStatus.FAILED],
    )
    return RunResult(run=run, report_dir=report_dir.resolve(), report_paths=paths)


def regenerate_report(
    store: HistoricalRunStore,
    run_ref: str,
    *,
    out_dir: Optional[Union[str, Path]] = None,
    generator: Optional[ReportGenerator] = None,
) -> RunResult:
    """Re-render the reports of a stored run (``latest`` or a run id)."""

    run_id = store.resolve(run_ref)
    run = store.load(run_id)
    report_dir = Path(out_dir) if out_dir else store.report_dir(run_id)
    paths = write_report((generator or ReportGenerator()).render(run), report_dir, run=run)
    return RunResult(run=run, report_dir=report_dir.resolve(), report_paths=paths)


def compare_stored_runs(
    store: HistoricalRunStore,
    previous_ref: str,
    current_ref: str,
    *,
    out_dir: Optional[Union[str, Path]] = None,
) -> Tuple[RunComparison, Dict[str, str]]:
    """Compare two stored runs; writes ``comparison.md``/``comparison.csv``.

    Default output directory: ``<runs_dir>/<current>/report/compare_<previous>/``.
    """

    previous_id = store.resolve(previous_ref)
    current_id = store.resolve(current_ref)
    cmp = compare_runs(store.load(previous_id), store.load(current_id))

    target = Path(out_dir) if out_dir else store.report_dir(current_id) / f"compare_{previous_id}"
    target = target.resolve()
    paths = {
        COMPARISON_MD: str(write_text_atomic(target / COMPARISON_MD, render_comparison_markdown(cmp))),
        COMPARISON_CSV: str(write_text_atomic(target / COMPARISON_CSV, render_comparison_csv(cmp))),
    }
    logger.info("compared runs %s -> %s into %s", previous_id, current_id, target)
    return cmp, paths
