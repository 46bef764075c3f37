"""Central configuration for docraster.

Values come from environment variables first, then from the active render
profile (see profile_loader), then from built-in defaults.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 200


def get_app_name() -> str:
    """Get application name."""
    return "docraster"


def get_app_version() -> str:
    """Get application version from pyproject.toml."""
    try:
        import tomli
        pyproject_path = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            pyproject = tomli.load(f)
            return pyproject.get("project", {}).get("version", "0.1.0")
    except Exception:
        # Installed without the source tree
        return "0.1.0"


def get_default_output_dir() -> Path:
    """Get default output directory.

    - Running from source (dev): project root / "out".
    - Running frozen: ~/.docraster/output.

    Returns:
        Path object to default output directory (created if needed)
    """
    if getattr(sys, "frozen", False):
        output_dir = Path.home() / ".docraster" / "output"
    else:
        output_dir = Path(__file__).resolve().parent.parent.parent / "out"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def get_browser_executable() -> Optional[str]:
    """Get optional Chromium executable path.

    Returns:
        Path from DOCRASTER_BROWSER_PATH, or None to use Playwright's bundled Chromium
    """
    return os.getenv('DOCRASTER_BROWSER_PATH') or None


def get_headless() -> bool:
    """Check if the render browser runs headless.

    Returns:
        False only if DOCRASTER_HEADLESS is 'false' (case-insensitive), defaults to True
    """
    return os.getenv('DOCRASTER_HEADLESS', 'true').lower() != 'false'


def _get_int_env(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value == '':
        return None
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Invalid {name}: {value!r}, ignoring")
        return None
    if parsed < 0:
        logger.warning(f"Invalid {name}: {parsed} (must be >= 0), ignoring")
        return None
    return parsed


def get_max_pages() -> Optional[int]:
    """Get page limit override.

    Returns:
        DOCRASTER_MAX_PAGES as int, or None if unset/invalid (profile value applies)
    """
    value = _get_int_env('DOCRASTER_MAX_PAGES')
    if value == 0:
        logger.warning("DOCRASTER_MAX_PAGES must be >= 1, ignoring")
        return None
    return value


def get_readiness_overrides() -> Dict[str, int]:
    """Get readiness timing overrides from the environment.

    Returns:
        Dict with any of load_timeout_ms, settle_delay_ms, max_wait_ms
    """
    overrides = {}
    for key, env_name in (
        ('load_timeout_ms', 'DOCRASTER_LOAD_TIMEOUT_MS'),
        ('settle_delay_ms', 'DOCRASTER_SETTLE_DELAY_MS'),
        ('max_wait_ms', 'DOCRASTER_MAX_WAIT_MS'),
    ):
        value = _get_int_env(env_name)
        if value is not None:
            overrides[key] = value
    return overrides


__all__ = [
    'DEFAULT_MAX_PAGES',
    'get_app_name',
    'get_app_version',
    'get_default_output_dir',
    'get_browser_executable',
    'get_headless',
    'get_max_pages',
    'get_readiness_overrides',
]
