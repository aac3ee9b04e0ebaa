# pipeline/core.py
from __future__ import annotations

from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
ENV_PATH = ROOT_DIR / ".env"

DEFAULT_CONFIG_PATH = ROOT_DIR / "configs" / "cheri_vs_riscv.yaml"
DEFAULT_RUNS_DIR = "runs/archbench"
DEFAULT_WORKERS = 4

# Environment overrides (see pipeline.config.apply_env_overrides)
ENV_CONFIG = "ARCHBENCH_CONFIG"
ENV_ARTIFACT_ROOT = "ARCHBENCH_ARTIFACT_ROOT"
ENV_RUNS_DIR = "ARCHBENCH_RUNS_DIR"
ENV_WORKERS = "ARCHBENCH_WORKERS"
ENV_LOG_LEVEL = "ARCHBENCH_LOG_LEVEL"
