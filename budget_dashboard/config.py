"""Configuration management for the budget dashboard.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.  Tunable settings that
users may want to change without touching the environment live in an
optional JSON settings file which is merged over :data:`DEFAULT_SETTINGS`.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

# Base project root - assumes this file is in budget_dashboard/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_DATA_DIR", _PROJECT_ROOT / "data"))
BUDGETS_DIR = DATA_DIR / "budgets"

SETTINGS_PATH = Path(
    os.getenv("BUDGET_SETTINGS_PATH", DATA_DIR / "settings.json")
)

# Remote API
API_BASE_URL = os.getenv("BUDGET_API_URL", "http://localhost:5000")
API_TOKEN: Optional[str] = os.getenv("BUDGET_API_TOKEN") or None

LOG_LEVEL = os.getenv("BUDGET_LOG_LEVEL", "INFO")

DEFAULT_SETTINGS: Dict[str, Any] = {
    # Percent-of-allocation levels at which category alerts fire
    'alert_thresholds': [80, 100],
    'request_timeout': 10.0,
    'currency_symbol': '$',
}


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, BUDGETS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def _valid_setting(key: str, value: Any) -> bool:
    """Whether ``value`` has the shape :data:`DEFAULT_SETTINGS` expects for ``key``."""
    if key == 'alert_thresholds':
        return isinstance(value, list) and all(_is_number(v) for v in value)
    if key == 'request_timeout':
        return _is_number(value) and value > 0
    return isinstance(value, type(DEFAULT_SETTINGS[key]))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the settings file merged over :data:`DEFAULT_SETTINGS`.

    Unknown keys are ignored and a value of the wrong type keeps its
    default.  A missing, unreadable or malformed file yields the defaults.

    Args:
        path: Optional settings file; defaults to :data:`SETTINGS_PATH`.

    Returns:
        A fresh settings dictionary.
    """
    target = path or SETTINGS_PATH
    merged = {key: _copy(value) for key, value in DEFAULT_SETTINGS.items()}
    if not target.exists():
        return merged
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError) as exc:
        logging.getLogger(__name__).warning("Ignoring settings file %s: %s", target, exc)
        return merged
    if not isinstance(data, dict):
        return merged
    for key, value in data.items():
        if key not in DEFAULT_SETTINGS:
            continue
        if not _valid_setting(key, value):
            logging.getLogger(__name__).warning(
                "Ignoring invalid %s=%r in %s; using %r", key, value, target, DEFAULT_SETTINGS[key]
            )
            continue
        merged[key] = _copy(value)
    return merged


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts and the Streamlit app."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _copy(value: Any) -> Any:
    return list(value) if isinstance(value, list) else value
