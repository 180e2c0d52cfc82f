"""Path redaction for telemetry data.

This module removes local directory structure from anything that is about
to leave the process:
- Absolute paths inside strings are replaced by their basename
- Nested mappings and sequences are redacted recursively
- Exceptions are projected to a plain mapping of their own attributes first

Disk device paths (``/dev/sdb``, ``\\\\.\\PHYSICALDRIVE1``) look like absolute
paths but identify hardware, not user files, so they are left untouched.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from types import ModuleType
from typing import Any, Optional

from .errors import exception_to_mapping


# Prefixes of device paths that must never be basenamed
DEVICE_PATH_PREFIXES = ("/dev/", "\\\\.\\")


def _basify(token: str, path_module: ModuleType) -> str:
    if token.startswith(DEVICE_PATH_PREFIXES):
        return token

    if not path_module.isabs(token):
        return token

    separators = path_module.sep + (path_module.altsep or "")
    return path_module.basename(token.rstrip(separators)) or token


def basify_contained_paths(text: str, path_module: Optional[ModuleType] = None) -> str:
    """Replace every absolute path contained in a string with its basename.

    The string is split into words on single spaces, and each word is further
    split on ``(`` so that paths inside parentheses (as found in stack trace
    lines) are handled on their own.

    Args:
        text: The string potentially containing paths.
        path_module: ``posixpath`` or ``ntpath``. Defaults to ``os.path``.

    Returns:
        The string with absolute paths basenamed.

    Examples:
        >>> import posixpath
        >>> basify_contained_paths("path /home/john/rpi.img", posixpath)
        'path rpi.img'
        >>> basify_contained_paths("at main (/home/john/app.py:3)", posixpath)
        'at main (app.py:3)'
    """
    path_module = path_module or os.path

    words = []
    for word in text.split(" "):
        sections = word.split("(")
        words.append("(".join(_basify(section, path_module) for section in sections))

    return " ".join(words)


def redact(value: Any, path_module: Optional[ModuleType] = None) -> Any:
    """Create a copy of a value with all absolute paths replaced by basenames.

    Args:
        value: A string, mapping, sequence, exception, or any other value.
        path_module: ``posixpath`` or ``ntpath``. Defaults to ``os.path``.

    Returns:
        A new structure with every string redacted. Keys, positions and
        non-string leaves are preserved. ``None`` is returned unchanged.

    Example:
        >>> import posixpath
        >>> redact({"image": "/home/john/rpi.img", "size": 4}, posixpath)
        {'image': 'rpi.img', 'size': 4}
    """
    path_module = path_module or os.path

    if isinstance(value, BaseException):
        value = exception_to_mapping(value)

    if isinstance(value, str):
        return basify_contained_paths(value, path_module)

    if isinstance(value, Mapping):
        return {key: redact(item, path_module) for key, item in value.items()}

    if isinstance(value, (list, tuple)):
        return [redact(item, path_module) for item in value]

    return value


def create_before_send_filter():
    """Create a before_send filter function for Sentry.

    Returns:
        A function suitable for use as Sentry's before_send callback.
    """
    from sentry_sdk.types import Event, Hint

    def before_send(event: Event, hint: Hint) -> Optional[Event]:
        """Strip absolute paths from events before sending to Sentry."""
        return redact(event)

    return before_send
