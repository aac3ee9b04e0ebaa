"""pipeline.wiring

This module is the **composition root** for the Python runtime.

"Composition root" means: the single place where we *assemble* the running
application from its building blocks:

- load environment variables (``.env`` via python-dotenv)
- configure logging
- load the YAML configuration and apply env / CLI overrides
- build the high-level pipeline facade object

Keeping this wiring in one place prevents configuration and dependency setup
from being duplicated across entrypoints (CLI, scripts, notebooks, CI).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

from dotenv import load_dotenv

from pipeline.config import PipelineConfig, apply_env_overrides, apply_overrides, load_config
from pipeline.core import DEFAULT_CONFIG_PATH, ENV_CONFIG, ENV_LOG_LEVEL, ENV_PATH
from pipeline.pipeline import ArchbenchPipeline

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def load_environment(dotenv_path: Path = ENV_PATH) -> None:
    """Load ``.env`` into ``os.environ`` without overriding variables already set."""
    if dotenv_path.exists():
        load_dotenv(dotenv_path, override=False)


def configure_logging(level: Optional[str] = None) -> None:
    name = (level or os.environ.get(ENV_LOG_LEVEL) or "INFO").strip().upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric)


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """CLI flag, then ``ARCHBENCH_CONFIG``, then the bundled example."""
    raw = path or os.environ.get(ENV_CONFIG) or DEFAULT_CONFIG_PATH
    return Path(raw).expanduser().resolve()


def build_config(
    config_path: Optional[Union[str, Path]] = None,
    *,
    artifact_root: Optional[Union[str, Path]] = None,
    runs_dir: Optional[Union[str, Path]] = None,
    workers: Optional[Any] = None,
) -> PipelineConfig:
    cfg = load_config(resolve_config_path(config_path))
    cfg = apply_env_overrides(cfg)
    return apply_overrides(cfg, artifact_root=artifact_root, runs_dir=runs_dir, workers=workers)


def build_pipeline(
    config_path: Optional[Union[str, Path]] = None,
    *,
    artifact_root: Optional[Union[str, Path]] = None,
    runs_dir: Optional[Union[str, Path]] = None,
    workers: Optional[Any] = None,
    load_env: bool = True,
) -> ArchbenchPipeline:
    """Build the high-level pipeline facade.

    Precedence for every setting: CLI argument, then environment, then the
    YAML file.
    """

    if load_env:
        load_environment(ENV_PATH)

    cfg = build_config(config_path, artifact_root=artifact_root, runs_dir=runs_dir, workers=workers)
    return ArchbenchPipeline(cfg)
