"""archbench

Core package namespace for the comparative build-metrics pipeline.

Why this exists
---------------
The pipeline compares the same test programs built by two toolchains for two
architectures. Several layers need to agree on the shape of that data:

* domain types (artifacts, instruction records, metric sets, runs)
* IO/layout rules (where artifacts are expected, where runs are stored)

Keeping those contracts here lets :mod:`pipeline` (computation and
orchestration) and :mod:`cli` (entrypoints) depend on one small, side-effect
free package. This package never imports ``pipeline`` or ``cli``.
"""

from __future__ import annotations

__version__ = "0.1.0"
