"""Exceptions raised by corvus_telemetry and the errors it reports.

Two unrelated things live here:
- The exception hierarchy raised to callers on configuration mistakes
- The union of error values accepted by ``Corvus.log_exception``
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Union


class CorvusError(Exception):
    """Base class for all corvus_telemetry errors."""


class ConfigurationError(CorvusError, ValueError):
    """Raised when required configuration is missing or invalid."""


class UnsupportedServiceError(ConfigurationError):
    """Raised when installing a backend that is not supported."""

    def __init__(self, service: str) -> None:
        super().__init__(f"Service not supported: {service}")
        self.service = service


class AlreadyInstalledError(CorvusError):
    """Raised when installing a backend twice."""


class NotInstalledError(CorvusError):
    """Raised when an operation needs a backend that is not installed."""


def exception_to_mapping(error: BaseException) -> Dict[str, Any]:
    """Project an exception onto a plain mapping of its own attributes.

    The traceback is not an own attribute and is left out.
    """
    mapping: Dict[str, Any] = {"message": str(error)}
    mapping.update(vars(error))
    return mapping


@dataclass(frozen=True)
class StringError:
    """An error given as a bare message."""

    message: str

    def as_mapping(self) -> Dict[str, Any]:
        return {"message": self.message}


@dataclass(frozen=True)
class StructuredError:
    """An error given as a mapping, such as a decoded API error payload."""

    message: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def as_mapping(self) -> Dict[str, Any]:
        return {"message": self.message, **self.properties}


@dataclass(frozen=True)
class NativeError:
    """A raised Python exception."""

    exception: BaseException

    @property
    def message(self) -> str:
        return str(self.exception)

    def as_mapping(self) -> Dict[str, Any]:
        return exception_to_mapping(self.exception)


ReportableError = Union[StringError, StructuredError, NativeError]


def coerce_error(value: Any) -> ReportableError:
    """Convert any value accepted as an error into a ``ReportableError``.

    Args:
        value: An exception, a mapping, a string, or any other value.

    Returns:
        The matching member of the union. Values that are neither exceptions
        nor mappings become a ``StringError`` of their ``str()``.
    """
    if isinstance(value, (StringError, StructuredError, NativeError)):
        return value
    if isinstance(value, BaseException):
        return NativeError(value)
    if isinstance(value, Mapping):
        properties = dict(value)
        message = properties.pop("message", "")
        return StructuredError(str(message), properties)
    return StringError(str(value))


def should_report_error(error: Any) -> bool:
    """Check whether an error should be reported to external services.

    An error is silenced by giving it a falsy ``report`` attribute (or key,
    for mappings). Errors without it are reported, so that errors we do not
    control are never lost.

    Args:
        error: Any value passed as an error.

    Returns:
        Whether the error should be reported.

    Example:
        >>> error = ValueError("cancelled by user")
        >>> error.report = False
        >>> should_report_error(error)
        False
    """
    if isinstance(error, NativeError):
        error = error.exception
    elif isinstance(error, StructuredError):
        error = error.properties

    if isinstance(error, Mapping):
        return "report" not in error or bool(error["report"])

    return not hasattr(error, "report") or bool(error.report)
