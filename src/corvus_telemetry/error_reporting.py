"""Sentry error reporting backend.

This module wraps the Sentry SDK behind the small install/uninstall/capture
surface the dispatch facade needs. Events are path-redacted by a
``before_send`` filter installed with the client.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import sentry_sdk

from .context import HostEnvironment, detect_host_environment, get_default_context
from .errors import (
    AlreadyInstalledError,
    ConfigurationError,
    NativeError,
    NotInstalledError,
    StructuredError,
    coerce_error,
)
from .privacy import create_before_send_filter

logger = logging.getLogger(__name__)

# Name of the Sentry context holding combined context objects
CONTEXT_NAME = "corvus"


class ContextSetter:
    """Strategy for handing a context object to the Sentry SDK."""

    def apply(self, context: Dict[str, Any]) -> None:
        raise NotImplementedError


class SplitContextSetter(ContextSetter):
    """Set user, extra and tags through their own setters.

    Browser-like hosts only understand the ``user``, ``extra`` and ``tags``
    parts of a context, each through a dedicated call.
    """

    def apply(self, context: Dict[str, Any]) -> None:
        if context.get("user") is not None:
            sentry_sdk.set_user(context["user"])
        for key, value in (context.get("extra") or {}).items():
            sentry_sdk.set_extra(key, value)
        for key, value in (context.get("tags") or {}).items():
            sentry_sdk.set_tag(key, value)


class CombinedContextSetter(ContextSetter):
    """Set the whole context as a single Sentry context object."""

    def apply(self, context: Dict[str, Any]) -> None:
        sentry_sdk.set_context(CONTEXT_NAME, dict(context))


def context_setter_for(host: HostEnvironment) -> ContextSetter:
    """Pick the context setting strategy for a host environment."""
    if host.browser_like:
        return SplitContextSetter()
    return CombinedContextSetter()


class SentryService:
    """Error reporting through the Sentry SDK."""

    def __init__(self, host: Optional[HostEnvironment] = None) -> None:
        self._host = host or detect_host_environment()
        self._context_setter = context_setter_for(self._host)
        self._context: Dict[str, Any] = {}
        self._installed = False

    @property
    def context(self) -> Dict[str, Any]:
        """The context stored since install."""
        return self._context

    def is_installed(self) -> bool:
        """Whether the Sentry client is installed."""
        return self._installed

    def _require_installed(self) -> None:
        if not self._installed:
            raise NotInstalledError("Sentry not installed")

    def install(self, dsn: str, options: Optional[Dict[str, Any]] = None) -> None:
        """Install the Sentry client.

        At a minimum, the options must contain the release. Any other option
        is passed to ``sentry_sdk.init()``, except ``extra`` which is merged
        over the default context and applied to the scope.

        Args:
            dsn: Sentry Data Source Name.
            options: Sentry options, ``release`` included.

        Raises:
            AlreadyInstalledError: If Sentry is already installed.
            ConfigurationError: If no release is given.
        """
        if self._installed:
            raise AlreadyInstalledError("Sentry already installed")

        options = dict(options or {})
        if not options.get("release"):
            raise ConfigurationError("Sentry requires a release")

        extra = {**get_default_context(self._host), **(options.pop("extra", None) or {})}

        sentry_kwargs = {"before_send": create_before_send_filter()}
        sentry_kwargs.update(options)

        sentry_sdk.init(dsn=dsn, **sentry_kwargs)

        self._context = {"extra": extra}
        self._context_setter.apply(self._context)
        self._installed = True
        logger.debug("Sentry installed for release %s", options["release"])

    def uninstall(self) -> None:
        """Close the Sentry client, flushing pending events."""
        self._require_installed()

        sentry_sdk.get_client().close()
        self._context = {}
        self._installed = False

    def set_context(self, context: Dict[str, Any]) -> None:
        """Merge context into the context sent with every event.

        Args:
            context: Context with optional ``user``, ``extra`` and ``tags``
                parts. Browser-like hosts ignore any other key.
        """
        self._require_installed()

        self._context.update(context)
        self._context_setter.apply(self._context)

    def capture_exception(self, error: Any) -> Optional[str]:
        """Send an error to Sentry.

        Args:
            error: An exception, a mapping or a string.

        Returns:
            The event ID.
        """
        self._require_installed()

        error = coerce_error(error)
        if isinstance(error, NativeError):
            return sentry_sdk.capture_exception(error.exception)

        with sentry_sdk.isolation_scope():
            if isinstance(error, StructuredError):
                for key, value in error.properties.items():
                    sentry_sdk.set_extra(key, value)
            return sentry_sdk.capture_message(error.message, level="error")

    def capture_message(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        level: str = "info",
    ) -> Optional[str]:
        """Send a message to Sentry with context for this message only.

        Args:
            message: The message to capture.
            context: Context applied to this event only.
            level: Log level (debug, info, warning, error, fatal).

        Returns:
            The event ID.
        """
        self._require_installed()

        with sentry_sdk.isolation_scope():
            if context:
                self._context_setter.apply({**self._context, **context})
            return sentry_sdk.capture_message(message, level=level)
