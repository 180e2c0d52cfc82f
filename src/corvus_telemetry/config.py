"""Configuration management for corvus telemetry.

This module handles configuration from environment variables, config files,
and package defaults following the priority order:
1. Environment variables (highest priority)
2. Configuration file (~/.config/corvus/telemetry.json)
3. Package defaults (lowest priority)
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional


# Default configuration values
DEFAULTS = {
    "enabled": True,
    "sentry_dsn": None,
    "posthog_token": None,
    "posthog_host": None,
    "release": None,
    "server_name": None,
    "environment": "production",
    "disable_console_output": False,
}

# Config file location
CONFIG_DIR = Path.home() / ".config" / "corvus"
CONFIG_FILE = CONFIG_DIR / "telemetry.json"


@dataclass
class CorvusConfig:
    """Configuration for installing the telemetry backends."""

    enabled: bool = True
    sentry_dsn: Optional[str] = None
    posthog_token: Optional[str] = None
    posthog_host: Optional[str] = None
    release: Optional[str] = None
    server_name: Optional[str] = None
    environment: str = "production"
    disable_console_output: bool = False

    def services(self) -> Dict[str, Optional[str]]:
        """The services mapping expected by ``Corvus.install``."""
        return {"sentry": self.sentry_dsn, "posthog": self.posthog_token}


def _parse_bool(value: str) -> bool:
    """Parse a boolean from a string value."""
    return value.lower() in ("true", "1", "yes", "on")


def is_opted_out() -> bool:
    """Check the environment for telemetry opt-out signals."""
    # Universal opt-out (DO_NOT_TRACK standard)
    if os.getenv("DO_NOT_TRACK", "").lower() in ("1", "true"):
        return True

    enabled_env = os.getenv("CORVUS_TELEMETRY_ENABLED", "")
    return bool(enabled_env) and not _parse_bool(enabled_env)


def _load_config_file() -> dict[str, Any]:
    """Load configuration from file if it exists."""
    if not CONFIG_FILE.exists():
        return {}

    try:
        with open(CONFIG_FILE) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}

    if not isinstance(data, dict):
        return {}
    return {key: value for key, value in data.items() if key in DEFAULTS}


def _get_env_config() -> dict[str, Any]:
    """Get configuration from environment variables."""
    config: dict[str, Any] = {}

    if is_opted_out():
        config["enabled"] = False
    elif os.getenv("CORVUS_TELEMETRY_ENABLED"):
        config["enabled"] = True

    for key, var in (
        ("sentry_dsn", "CORVUS_SENTRY_DSN"),
        ("posthog_token", "CORVUS_POSTHOG_TOKEN"),
        ("posthog_host", "CORVUS_POSTHOG_HOST"),
        ("release", "CORVUS_RELEASE"),
        ("server_name", "CORVUS_SERVER_NAME"),
        ("environment", "CORVUS_ENVIRONMENT"),
    ):
        value = os.getenv(var)
        if value:
            config[key] = value

    console_env = os.getenv("CORVUS_DISABLE_CONSOLE_OUTPUT")
    if console_env:
        config["disable_console_output"] = _parse_bool(console_env)

    return config


def load_config() -> CorvusConfig:
    """Load telemetry configuration from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Package defaults

    Returns:
        CorvusConfig: The merged configuration.
    """
    # Start with defaults
    merged = dict(DEFAULTS)

    # Layer in config file
    merged.update(_load_config_file())

    # Layer in environment variables (highest priority)
    merged.update(_get_env_config())

    return CorvusConfig(**merged)


def save_config(config: CorvusConfig) -> None:
    """Save configuration to file.

    Args:
        config: The configuration to save.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    with open(CONFIG_FILE, "w") as f:
        json.dump(asdict(config), f, indent=2)
