"""Convenience decorators for telemetry tracking.

This module provides decorators for easily adding telemetry to functions:
- track_errors: Automatically report exceptions
- track_event: Track an analytics event on every call
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Optional, TypeVar

from .client import get_corvus

F = TypeVar("F", bound=Callable[..., Any])


def track_errors(reraise: bool = True) -> Callable[[F], F]:
    """Decorator to automatically report exceptions.

    Exceptions go through ``Corvus.log_exception``, so they are logged to
    the console and reported unless marked with a falsy ``report``.

    Args:
        reraise: Whether to re-raise the exception after reporting.

    Returns:
        Decorated function.

    Example:
        @track_errors(reraise=True)
        def write_image(image, drive):
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                get_corvus().log_exception(e)

                if reraise:
                    raise
                return None

        return wrapper  # type: ignore

    return decorator


def track_event(
    name: Optional[str] = None,
    include_args: bool = False,
) -> Callable[[F], F]:
    """Decorator to track an event whenever a function is called.

    Args:
        name: Event name. Defaults to the function name.
        include_args: Whether to include keyword arguments in the event data.
            Warning: may expose sensitive data if enabled.

    Returns:
        Decorated function.

    Example:
        @track_event("Drive Selected")
        def select_drive(drive):
            ...
    """

    def decorator(func: F) -> F:
        event_name = name or func.__name__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            data = {"function": func.__name__, "module": func.__module__}
            if include_args:
                data["arguments"] = dict(kwargs)

            get_corvus().log_event(event_name, data)
            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
