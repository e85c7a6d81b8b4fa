"""Path constants for the tvh-hdhomerun service."""

from __future__ import annotations

import os
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
PROJECT_ROOT = PACKAGE_ROOT.parent

# Shipped defaults; user overrides live under USER_STATE_DIR.
CONFIG_PATH = PACKAGE_ROOT / "config.txt"

_USER_STATE_ENV = os.environ.get("TVH_HDHOMERUN_STATE_DIR")
USER_STATE_DIR = Path(_USER_STATE_ENV).expanduser() if _USER_STATE_ENV else (Path.home() / ".tvh_hdhomerun")
USER_CONFIG_OVERRIDES_DIR = USER_STATE_DIR / "config_overrides"

# Adapter records land in SETTINGS_DIR/input/tvhdhomerun/adapters/<uuid>
DEFAULT_SETTINGS_DIR = USER_STATE_DIR / "settings"

LOGS_DIR = USER_STATE_DIR / "logs"
SERVICE_LOG_FILE = LOGS_DIR / "tvh_hdhomerun.log"


def ensure_directories() -> None:
    """Create the per-user state directories if they don't exist."""

    USER_STATE_DIR.mkdir(parents=True, exist_ok=True)
    USER_CONFIG_OVERRIDES_DIR.mkdir(parents=True, exist_ok=True)
    DEFAULT_SETTINGS_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)


__all__ = [
    "PACKAGE_ROOT",
    "PROJECT_ROOT",
    "CONFIG_PATH",
    "USER_STATE_DIR",
    "USER_CONFIG_OVERRIDES_DIR",
    "DEFAULT_SETTINGS_DIR",
    "LOGS_DIR",
    "SERVICE_LOG_FILE",
    "ensure_directories",
]
