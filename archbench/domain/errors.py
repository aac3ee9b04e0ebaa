"""archbench.domain.errors

Error taxonomy for the pipeline.

Only two kinds of error ever reach a caller of the pipeline:

* :class:`FatalConfigurationError` - the run cannot establish a consistent
  starting state (missing artifact root, invalid rule table, ...).
* :class:`StorageCollisionError` - run-id disambiguation ran out of suffixes.

Everything else is raised *inside* the per-test-case boundary and converted into
a ``PARTIAL``/``FAILED`` status on that case's :class:`MetricSet`.

"Division undefined" is deliberately not an exception: it is the ``NA`` value
in :mod:`archbench.domain.metrics`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class ArchbenchError(Exception):
    """Base class for all errors raised by this package."""


class FatalConfigurationError(ArchbenchError):
    """Required configuration or base directories are absent or invalid."""


class ArtifactMissingError(ArchbenchError):
    """A binary or assembly listing is absent for one test case/architecture."""

    def __init__(self, test_case: str, architecture: str, what: str, path: Optional[Path] = None) -> None:
        self.test_case = test_case
        self.architecture = architecture
        self.what = what
        self.path = path
        where = f" ({path})" if path is not None else ""
        super().__init__(f"{architecture}: {what} missing for {test_case}{where}")


class ParseError(ArchbenchError):
    """An assembly listing could not be read."""

    def __init__(self, path: Union[str, Path], cause: BaseException) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"cannot read assembly listing {self.path}: {cause}")


class StorageCollisionError(ArchbenchError):
    """Run-id disambiguation space exhausted in the run store."""

    def __init__(self, run_id: str, attempts: int) -> None:
        self.run_id = run_id
        self.attempts = attempts
        super().__init__(f"run id {run_id!r} still collides after {attempts} attempts")


class RunNotFoundError(ArchbenchError, KeyError):
    """A stored run id does not exist."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(run_id)

    def __str__(self) -> str:
        return f"run not found: {self.run_id}"
