"""
Configuration for the VRML scene parser.

Settings are read from environment variables at import time so deployments
can tune the parser without code changes.

Usage:
    from src.config.settings import get_setting

    depth = get_setting('max_expansion_depth')

Environment Variables:
    VRML_MAX_EXPANSION_DEPTH=10      - PROTO expansion pass ceiling
    VRML_DEFAULT_COLOR=#4cc3d9       - Color of shapes without a material
    VRML_LOG_LEVEL=INFO              - Log level used by the MCP server
"""

import logging
import os
import re
from typing import Any, Dict

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r'^#[0-9a-fA-F]{6}$')

DEFAULTS: Dict[str, Any] = {
    'max_expansion_depth': 10,
    'default_color': '#4cc3d9',
    'log_level': 'INFO',
}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer, using {default}")
        return default
    if value < 1:
        logger.warning(f"Ignoring {name}={raw!r}: must be >= 1, using {default}")
        return default
    return value


def _env_color(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    if not _HEX_COLOR.match(raw):
        logger.warning(f"Ignoring {name}={raw!r}: not a #rrggbb color, using {default}")
        return default
    return raw.lower()


SETTINGS: Dict[str, Any] = {
    'max_expansion_depth': _env_int('VRML_MAX_EXPANSION_DEPTH', DEFAULTS['max_expansion_depth']),
    'default_color': _env_color('VRML_DEFAULT_COLOR', DEFAULTS['default_color']),
    'log_level': os.getenv('VRML_LOG_LEVEL', DEFAULTS['log_level']).upper(),
}


def get_setting(name: str) -> Any:
    """
    Get a configuration value.

    Args:
        name: Setting name (e.g., 'max_expansion_depth')

    Returns:
        Current value

    Raises:
        KeyError: If setting name is not recognized
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    return SETTINGS[name]


def get_all_settings() -> Dict[str, Any]:
    """Get all settings and their current values."""
    return SETTINGS.copy()


def set_setting(name: str, value: Any) -> None:
    """
    Programmatically set a configuration value (for testing only).

    Warning:
        This is for testing only. In production, use environment variables.
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    SETTINGS[name] = value
