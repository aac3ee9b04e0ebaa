"""pipeline.store

Directory-per-run historical store.

Layout::

    <runs_dir>/
      LATEST                  # newest run id
      20261018120000/
        run.json              # AnalysisRun.to_dict()
        report/               # rendered reports (written by the report layer)
      20261018120000-01/
        run.json

Guarantees
----------
* ``save`` never overwrites: the run directory is reserved with
  ``mkdir(exist_ok=False)``; a taken id is disambiguated with a ``-NN``
  suffix and the id actually used is returned.
* ``run.json`` is written atomically, so a reader never sees half a run. A
  reserved directory without ``run.json`` is not listed.
* ``load(save(run)) == run.with_run_id(<returned id>)``; when there was no
  collision that is simply ``run``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from archbench.domain import AnalysisRun, RunNotFoundError
from archbench.io.fs import read_json, write_json_atomic, write_text_atomic
from archbench.io.layout import (
    LATEST_POINTER,
    RUN_ID_RE,
    list_run_ids,
    read_latest_pointer,
    run_paths,
)
from archbench.io.run_dir import new_run_id, reserve_run_dir

logger = logging.getLogger(__name__)


class HistoricalRunStore:
    def __init__(self, runs_dir: Union[str, Path]) -> None:
        self.runs_dir = Path(runs_dir)

    def __repr__(self) -> str:
        return f"HistoricalRunStore({str(self.runs_dir)!r})"

    # ----------------------------
    # Write
    # ----------------------------

    def save(self, run: AnalysisRun) -> str:
        requested = run.run_id if run.run_id and RUN_ID_RE.match(run.run_id) else new_run_id()
        run_id, _run_dir = reserve_run_dir(self.runs_dir, requested)
        if run_id != run.run_id:
            if run.run_id:
                logger.info("run id %s already taken; saving as %s", run.run_id, run_id)
            run = run.with_run_id(run_id)

        paths = run_paths(self.runs_dir, run_id)
        write_json_atomic(paths.run_json, run.to_dict())
        self._update_latest_pointer()
        logger.info("stored run %s at %s", run_id, paths.run_json)
        return run_id

    def _update_latest_pointer(self) -> None:
        ids = list_run_ids(self.runs_dir)
        if ids:
            write_text_atomic(self.runs_dir / LATEST_POINTER, ids[0] + "\n")

    # ----------------------------
    # Read
    # ----------------------------

    def list_runs(self) -> List[str]:
        """Stored run ids, newest first."""
        return list_run_ids(self.runs_dir)

    def exists(self, run_id: str) -> bool:
        return bool(RUN_ID_RE.match(run_id or "")) and run_paths(self.runs_dir, run_id).run_json.is_file()

    def load(self, run_id: str) -> AnalysisRun:
        if not self.exists(run_id):
            raise RunNotFoundError(run_id)
        data = read_json(run_paths(self.runs_dir, run_id).run_json)
        return AnalysisRun.from_dict(data)

    def latest(self) -> Optional[str]:
        """Newest run id: the ``LATEST`` pointer if valid, else the lexicographic max."""
        pointed = read_latest_pointer(self.runs_dir)
        if pointed and self.exists(pointed):
            return pointed
        ids = self.list_runs()
        return ids[0] if ids else None

    def resolve(self, ref: str) -> str:
        """Resolve ``latest``, ``previous`` or a literal run id to a stored id."""
        key = (ref or "").strip()
        if key.lower() == "latest":
            rid = self.latest()
            if rid is None:
                raise RunNotFoundError("latest")
            return rid
        if key.lower() == "previous":
            ids = self.list_runs()
            latest = self.latest()
            older = [i for i in ids if latest is None or i < latest]
            if not older:
                raise RunNotFoundError("previous")
            return older[0]
        if not self.exists(key):
            raise RunNotFoundError(key)
        return key

    def report_dir(self, run_id: str) -> Path:
        return run_paths(self.runs_dir, run_id).report_dir
