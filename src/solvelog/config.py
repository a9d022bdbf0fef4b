# Copyright (c) Syntropy Systems
"""Configuration management for solvelog."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import yaml

PROJECT_DIR_NAME = ".solvelog"
NO_PROJECT_MESSAGE = "No .solvelog directory found. Run 'solvelog init' first."


@dataclass
class SolvelogConfig:
    """Configuration for solvelog."""

    # Number of encoded error-log payloads kept by the job runner
    cache_size: int = 8

    # Base URL of a solvelog server, when viewing remotely
    server_url: str | None = None

    # Level for the CLI log handler
    log_level: str = "WARNING"


def find_project_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .solvelog directory by walking up from start_path.

    Returns None if no .solvelog directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        project_dir = current / PROJECT_DIR_NAME
        if project_dir.is_dir():
            return project_dir
        current = current.parent

    # Check root
    project_dir = current / PROJECT_DIR_NAME
    if project_dir.is_dir():
        return project_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global solvelog config directory (~/.solvelog)."""
    return Path.home() / PROJECT_DIR_NAME


def load_config(project_dir: Path | None = None) -> SolvelogConfig:
    """Load configuration from .solvelog/config.yaml or defaults.

    Looks for config in:
    1. Provided project_dir
    2. Nearest .solvelog directory walking up
    3. ~/.solvelog/config.yaml
    4. Defaults
    """
    config = SolvelogConfig()

    config_path = None

    if project_dir is not None:
        config_path = project_dir / "config.yaml"
    else:
        found_dir = find_project_dir()
        if found_dir is not None:
            config_path = found_dir / "config.yaml"
        else:
            global_config = get_global_config_dir() / "config.yaml"
            if global_config.exists():
                config_path = global_config

    if config_path is not None and config_path.exists():
        with config_path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})

        cache_size = data.get("cache_size")
        if isinstance(cache_size, int) and not isinstance(cache_size, bool) and cache_size > 0:
            config.cache_size = cache_size
        server_url = data.get("server_url")
        if isinstance(server_url, str) and server_url:
            config.server_url = server_url
        log_level = data.get("log_level")
        if isinstance(log_level, str) and isinstance(logging.getLevelName(log_level.upper()), int):
            config.log_level = log_level.upper()

    return config


def get_db_path(project_dir: Path | None = None) -> Path:
    """Get the path to the SQLite database."""
    if project_dir is None:
        project_dir = require_project_dir()

    return project_dir / "solvelog.db"


def require_project_dir() -> Path:
    """Get the .solvelog directory or raise an error if not found."""
    project_dir = find_project_dir()
    if project_dir is None:
        raise RuntimeError(NO_PROJECT_MESSAGE)
    return project_dir
