"""archbench.io.fs

Atomic, stable filesystem writers.

Why this module exists
----------------------
Reports and stored runs are meant to be diffed across runs. That only works if
every writer agrees on encoding, newline convention and key order, and if an
interrupted process never leaves a half-written ``run.json`` behind for the
run store to pick up.

All pipeline outputs go through the helpers below.
"""

from __future__ import annotations

import csv
import io
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence


def _atomic_write(path: Path, payload: str, *, encoding: str = "utf-8") -> None:
    """Write *payload* to a temp file next to *path*, then ``os.replace`` it."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        # newline="" keeps "\n" as written on every platform.
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> Path:
    p = Path(path)
    _atomic_write(p, text, encoding=encoding)
    return p


def dumps_json(data: Any) -> str:
    """Serialize JSON with the formatting used for every stored artifact."""
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def write_json_atomic(path: Path, data: Any) -> Path:
    p = Path(path)
    _atomic_write(p, dumps_json(data))
    return p


def read_json(path: Path, *, encoding: str = "utf-8") -> Any:
    with Path(path).open("r", encoding=encoding) as f:
        return json.load(f)


def csv_text(rows: Iterable[Mapping[str, Any]], *, fieldnames: Sequence[str]) -> str:
    """Render rows as CSV text with a fixed header and ``\\n`` line endings.

    Missing keys render as empty strings; callers that must never emit blanks
    (e.g. ``N/A`` metrics) are expected to fill every column themselves.
    """

    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=list(fieldnames), lineterminator="\n")
    w.writeheader()
    for r in rows:
        w.writerow({k: r.get(k, "") for k in fieldnames})
    return buf.getvalue()
