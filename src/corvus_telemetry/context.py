"""Host environment detection and default event context.

The default context holds ambient facts about the machine and runtime. It is
merged into the context of every installed backend, with explicit
configuration winning on key collisions.
"""

from __future__ import annotations

import functools
import locale
import os
import platform
import sys
from enum import Enum
from typing import Any, Dict, Optional


class HostEnvironment(str, Enum):
    """Kinds of host processes telemetry can run in."""

    # Regular interpreter
    PYTHON = "python"

    # PyInstaller, cx_Freeze and similar bundles
    FROZEN = "frozen"

    # Pyodide or another emscripten build running inside a browser
    BROWSER = "browser"

    @property
    def browser_like(self) -> bool:
        """Whether the host behaves like a web page rather than a process."""
        return self is HostEnvironment.BROWSER


def is_running_from_executable() -> bool:
    """Check if running from a frozen/bundled executable.

    Returns:
        True if running from PyInstaller, cx_Freeze, etc.
    """
    return getattr(sys, "frozen", False) or hasattr(sys, "_MEIPASS")


def detect_host_environment() -> HostEnvironment:
    """Detect the host environment of the current process."""
    if sys.platform == "emscripten":
        return HostEnvironment.BROWSER
    if is_running_from_executable():
        return HostEnvironment.FROZEN
    return HostEnvironment.PYTHON


def get_host_architecture() -> str:
    """Get the machine architecture.

    ``platform.architecture()`` describes the interpreter binary, which
    differs from the host when a 32 bit Python runs on a 64 bit system.
    """
    return platform.machine() or platform.architecture()[0]


def _get_locale() -> Optional[str]:
    language, _ = locale.getlocale()
    return language or os.getenv("LC_ALL") or os.getenv("LANG")


def _process_context() -> Dict[str, Any]:
    # psutil has no emscripten build, so browser hosts must never import it
    import psutil

    memory = psutil.virtual_memory()
    return {
        "arch": platform.architecture()[0],
        "python": platform.python_version(),
        "osPlatform": sys.platform,
        "osRelease": platform.release(),
        "cpuCores": os.cpu_count(),
        "totalMemory": memory.total,
        "startFreeMemory": memory.available,
        "hostArch": get_host_architecture(),
        "locale": _get_locale(),
    }


@functools.lru_cache(maxsize=None)
def _build_default_context() -> Dict[str, Dict[str, Any]]:
    process = {} if detect_host_environment().browser_like else _process_context()
    return {
        HostEnvironment.PYTHON.value: process,
        HostEnvironment.FROZEN.value: {**process, "executable": sys.executable},
        HostEnvironment.BROWSER.value: {},
    }


def default_context() -> Dict[str, Dict[str, Any]]:
    """Get the default context for every host environment.

    The context is computed once per process, so ``startFreeMemory`` is the
    free memory at the time of the first call.

    Returns:
        A mapping from host environment name to a flat mapping of facts.
    """
    return {name: dict(facts) for name, facts in _build_default_context().items()}


def get_default_context(host: Optional[HostEnvironment] = None) -> Dict[str, Any]:
    """Get the default context of a single host environment.

    Args:
        host: The host environment. Defaults to the detected one.

    Returns:
        A flat mapping of ambient facts.
    """
    host = host or detect_host_environment()
    return default_context()[host.value]
