"""archbench.io.run_dir

Run-id helpers that are part of the **filesystem contract**.

A run id is ``YYYYMMDDHHMMSS`` (UTC). Two runs started within the same second
get a monotonic suffix: ``20261018120000``, ``20261018120000-01``,
``20261018120000-02``... Ids sort lexicographically in creation order, so the
newest run is always ``max(run_ids)``.

Reserving an id means creating its directory with ``exist_ok=False``; that is
the only collision check, so it holds across processes as well as threads.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Tuple

from archbench.domain.errors import StorageCollisionError

RUN_ID_FORMAT = "%Y%m%d%H%M%S"
MAX_SUFFIX = 99


def new_run_id(now: Optional[datetime] = None) -> str:
    """Return the timestamp-derived run id for *now* (UTC)."""
    ts = now or datetime.now(timezone.utc)
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime(RUN_ID_FORMAT)


def base_run_id(run_id: str) -> str:
    """Strip a disambiguation suffix: ``20261018120000-02`` -> ``20261018120000``."""
    return run_id.split("-", 1)[0]


def candidate_run_ids(run_id: str, *, max_suffix: int = MAX_SUFFIX) -> Iterator[str]:
    """Yield *run_id* followed by its suffixed variants, in order."""
    base = base_run_id(run_id)
    if run_id == base:
        yield base
        start = 1
    else:
        start = int(run_id.split("-", 1)[1])
    for n in range(start, max_suffix + 1):
        yield f"{base}-{n:02d}"


def reserve_run_dir(root: Path, run_id: str, *, max_suffix: int = MAX_SUFFIX) -> Tuple[str, Path]:
    """Create ``root/<id>`` for the first free id derived from *run_id*.

    Raises :class:`StorageCollisionError` once every suffix is taken.
    """
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)

    attempts = 0
    for rid in candidate_run_ids(run_id, max_suffix=max_suffix):
        attempts += 1
        run_dir = root / rid
        try:
            run_dir.mkdir(exist_ok=False)
        except FileExistsError:
            continue
        return rid, run_dir

    raise StorageCollisionError(run_id, attempts)
