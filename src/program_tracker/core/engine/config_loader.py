"""
YAML → typed settings loader.

Loads runtime settings from tracker.yaml (bundled with the package) and
optionally merges user overrides from ~/.program-tracker/config.yaml.

Usage:
    from program_tracker.core.engine.config_loader import load_settings
    settings = load_settings()
    settings.data_dir, settings.streak_gap_days

The PROGRAM_TRACKER_HOME environment variable relocates the user directory
(data files, config.yaml and programs/ overrides).  If the user override
file has parse errors, a warning is logged and the file is ignored.
"""

from __future__ import annotations

import importlib.resources
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..config import DEFAULT_USER_ID, STREAK_GAP_DAYS

HOME_ENV_VAR = "PROGRAM_TRACKER_HOME"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; return {} if unreadable or not a mapping."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable YAML file {}: {}", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrackerSettings:
    """Runtime settings after merging bundled and user YAML."""

    home_dir: Path
    data_dir: Path
    default_user_id: str = DEFAULT_USER_ID
    streak_gap_days: int = STREAK_GAP_DAYS
    log_level: str = "WARNING"


def get_home_dir() -> Path:
    """Return the user directory (PROGRAM_TRACKER_HOME or ~/.program-tracker)."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".program-tracker"


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled tracker.yaml, or None if not found."""
    try:
        ref = importlib.resources.files("program_tracker").joinpath("tracker.yaml")
        if ref.is_file():
            # Materialise to a real path so we can pass it to open()
            with importlib.resources.as_file(ref) as p:
                return p
    except (TypeError, ValueError, OSError) as exc:
        # Namespace packages are not resolvable by every Python version
        logger.debug("importlib.resources lookup failed: {}", exc)
    # Fallback: look relative to this file's package root
    candidate = Path(__file__).parent.parent.parent / "tracker.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return <home>/config.yaml if it exists, else None."""
    p = get_home_dir() / "config.yaml"
    return p if p.exists() else None


def load_model_config() -> dict[str, Any]:
    """
    Load and merge configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/program_tracker/tracker.yaml
    2. User override at <home>/config.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = deep_merge(config, load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = load_yaml_file(user)
        if user_cfg:
            logger.debug("Merging user config from {}", user)
            config = deep_merge(config, user_cfg)

    return config


def load_settings() -> TrackerSettings:
    """Build TrackerSettings from the merged YAML configuration."""
    cfg = load_model_config()
    home = get_home_dir()

    storage = cfg.get("storage", {}) or {}
    data_dir_raw = storage.get("data_dir")
    data_dir = Path(data_dir_raw).expanduser() if data_dir_raw else home / "data"

    enrollment = cfg.get("enrollment", {}) or {}
    streaks = cfg.get("streaks", {}) or {}
    logging_cfg = cfg.get("logging", {}) or {}

    return TrackerSettings(
        home_dir=home,
        data_dir=data_dir,
        default_user_id=str(enrollment.get("default_user_id", DEFAULT_USER_ID)),
        streak_gap_days=int(streaks.get("gap_days", STREAK_GAP_DAYS)),
        log_level=str(logging_cfg.get("level", "WARNING")).upper(),
    )
