"""Dispatch facade over the telemetry backends.

This module provides ``Corvus``, the single object host applications talk
to. It tracks which backends are installed, merges context, and routes
events to PostHog and exceptions to Sentry, subject to a process-wide
enable switch and a caller supplied should-report predicate.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .analytics import AnalyticsService
from .config import CorvusConfig, is_opted_out, load_config
from .context import HostEnvironment, detect_host_environment
from .error_reporting import SentryService
from .errors import (
    AlreadyInstalledError,
    ConfigurationError,
    NotInstalledError,
    UnsupportedServiceError,
    coerce_error,
    should_report_error,
)

logger = logging.getLogger(__name__)

SENTRY = "sentry"
POSTHOG = "posthog"
SUPPORTED_SERVICES = (SENTRY, POSTHOG)


def _always_report() -> bool:
    return True


def describe_event(message: str, data: Any = None) -> str:
    """Render an event as a single console line.

    Never raises: data that cannot be serialized as JSON is shown with
    ``repr()`` instead.
    """
    if data is None:
        return message

    try:
        payload = json.dumps(data, default=str)
    except (TypeError, ValueError):
        payload = repr(data)
    return f"{message} ({payload})"


class Corvus:
    """Unified telemetry facade for error reporting and product analytics.

    This facade wraps Sentry and PostHog and provides:
    - Install/uninstall of each backend with shared configuration
    - Context merged into every event
    - Key normalization and path redaction of outgoing data
    - A global enable switch and a should-report predicate
    - Console logging of every event, even when nothing is sent

    Example:
        corvus = get_corvus()
        corvus.install(
            services={"sentry": "https://key@sentry.example.com/1", "posthog": "phc_xxx"},
            release="1.0.0",
        )
        corvus.log_event("Flash Started", {"image": "/home/john/rpi.img"})
    """

    _instance: Optional["Corvus"] = None

    def __init__(
        self,
        fake: bool = False,
        host: Optional[HostEnvironment] = None,
        sentry: Optional[SentryService] = None,
        analytics: Optional[AnalyticsService] = None,
    ) -> None:
        """Initialize the facade.

        Args:
            fake: Never install nor send anything. Console logging still
                happens. Useful when testing host applications.
            host: Host environment. Detected when not given.
            sentry: Sentry backend to use instead of a new one.
            analytics: PostHog backend to use instead of a new one.
        """
        self._host = host or detect_host_environment()
        self._services: Dict[str, Any] = {
            SENTRY: sentry or SentryService(self._host),
            POSTHOG: analytics or AnalyticsService(self._host),
        }
        self._installed_services: List[str] = []
        self._enabled = not is_opted_out()
        self._fake = fake
        self._console_output_disabled = False
        self._should_report: Callable[[], Any] = _always_report

    @classmethod
    def get_instance(cls) -> "Corvus":
        """Get the process-wide facade.

        Returns:
            The singleton Corvus instance.
        """
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Dispose of the process-wide facade (useful for testing)."""
        if cls._instance is not None:
            cls._instance.dispose()
        cls._instance = None

    @property
    def host(self) -> HostEnvironment:
        return self._host

    @property
    def sentry(self) -> SentryService:
        return self._services[SENTRY]

    @property
    def analytics(self) -> AnalyticsService:
        return self._services[POSTHOG]

    @property
    def console_output_disabled(self) -> bool:
        return self._console_output_disabled

    def get_supported_services(self) -> List[str]:
        """Identifiers accepted by ``install``."""
        return list(SUPPORTED_SERVICES)

    def get_installed_services(self) -> List[str]:
        """Identifiers of the installed backends, in install order."""
        return list(self._installed_services)

    def is_installed(self, name: Optional[str] = None) -> bool:
        """Whether a backend, or any backend when no name is given, is installed."""
        if name is None:
            return bool(self._installed_services)
        return name in self._installed_services

    def install(
        self,
        services: Mapping[str, Optional[str]],
        release: Optional[str] = None,
        server_name: Optional[str] = None,
        environment: Optional[str] = None,
        should_report: Optional[Callable[[], Any]] = None,
        disable_console_output: bool = False,
        extra: Optional[Dict[str, Any]] = None,
        analytics_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Install telemetry backends.

        Every service is validated before any of them is installed. If a
        backend fails to install, the backends installed by this call are
        uninstalled again before the error propagates.

        Args:
            services: Maps ``sentry`` to a DSN and ``posthog`` to a project
                token. Services mapped to None are skipped.
            release: Application release. Required to install Sentry.
            server_name: Name of the machine or deployment.
            environment: Sentry environment name.
            should_report: Predicate replacing the should-report predicate.
            disable_console_output: Silence console logging.
            extra: Context sent with every event, merged over the default
                context.
            analytics_options: PostHog ``host`` and ``distinct_id`` options.

        Raises:
            UnsupportedServiceError: If a service is not supported.
            AlreadyInstalledError: If a service is already installed.
            ConfigurationError: If Sentry is requested without a release.
        """
        self._console_output_disabled = bool(disable_console_output)

        if self._fake:
            return

        requested = {name: value for name, value in services.items() if value is not None}
        for name in services:
            if name not in SUPPORTED_SERVICES:
                raise UnsupportedServiceError(name)
        for name in requested:
            if self.is_installed(name):
                raise AlreadyInstalledError(f"{name} already installed")
        if SENTRY in requested and not release:
            raise ConfigurationError("Sentry requires a release")

        if should_report is not None:
            self.should_report(should_report)

        installed: List[str] = []
        try:
            for name, value in requested.items():
                if name == SENTRY:
                    options: Dict[str, Any] = {"release": release, "extra": dict(extra or {})}
                    if server_name is not None:
                        options["server_name"] = server_name
                    if environment is not None:
                        options["environment"] = environment
                    self.sentry.install(value, options)
                else:
                    options = {}
                    if release is not None:
                        options["version"] = release
                    if server_name is not None:
                        options["serverName"] = server_name
                    options.update(extra or {})
                    options.update(analytics_options or {})
                    self.analytics.install(value, options)

                self._installed_services.append(name)
                installed.append(name)
                logger.debug("Installed %s", name)
        except Exception:
            # Leave nothing from this call installed so it can be retried
            for name in reversed(installed):
                self._uninstall_service(name)
            raise

    def install_from_config(self, config: Optional[CorvusConfig] = None) -> List[str]:
        """Install the backends configured in the environment or config file.

        Args:
            config: Configuration to use instead of ``load_config()``.

        Returns:
            The installed services.
        """
        config = config or load_config()
        if not config.enabled:
            self._enabled = False

        self.install(
            services=config.services(),
            release=config.release,
            server_name=config.server_name,
            environment=config.environment,
            disable_console_output=config.disable_console_output,
            analytics_options={"host": config.posthog_host} if config.posthog_host else None,
        )
        return self.get_installed_services()

    def _uninstall_service(self, name: str) -> None:
        self._services[name].uninstall()
        self._installed_services.remove(name)
        logger.debug("Uninstalled %s", name)

    def uninstall(self, name: Optional[str] = None) -> None:
        """Uninstall a backend, or every installed backend when no name is given.

        Raises:
            UnsupportedServiceError: If the service is not supported.
            NotInstalledError: If the backend, or every backend, is not
                installed.
        """
        if name is None:
            if not self._installed_services:
                raise NotInstalledError("Not installed")
            for installed in list(self._installed_services):
                self._uninstall_service(installed)
            return

        if name not in SUPPORTED_SERVICES:
            raise UnsupportedServiceError(name)
        if not self.is_installed(name):
            raise NotInstalledError(f"{name} not installed")
        self._uninstall_service(name)

    def dispose(self) -> None:
        """Uninstall whatever is installed."""
        for installed in list(self._installed_services):
            self._uninstall_service(installed)

    def set_context(self, context: Dict[str, Any]) -> None:
        """Merge context into every installed backend.

        Raises:
            NotInstalledError: If no backend is installed.
        """
        if not self._installed_services:
            raise NotInstalledError("Not installed")

        for name in self._installed_services:
            self._services[name].set_context(context)

    def enable(self) -> None:
        """Enable sending to external services."""
        self._enabled = True

    def disable(self) -> None:
        """Disable sending to external services. Console logging continues."""
        self._enabled = False

    def is_enabled(self) -> bool:
        """Whether events may be sent to external services."""
        return self._enabled and not self._fake

    def should_report(self, predicate: Callable[[], Any]) -> None:
        """Set the predicate deciding whether events reach external services.

        Raises:
            TypeError: If the predicate is not callable.
        """
        if not callable(predicate):
            raise TypeError("Function expected")
        self._should_report = predicate

    def disable_console_output(self) -> None:
        self._console_output_disabled = True

    def enable_console_output(self) -> None:
        self._console_output_disabled = False

    def _should_send(self) -> bool:
        return self.is_enabled() and bool(self._should_report())

    def log_debug(self, message: str) -> None:
        """Write a line to the console unless console output is disabled."""
        if not self._console_output_disabled:
            logger.debug("%s", message)

    def log_event(self, message: str, data: Any = None) -> None:
        """Log an event and track it in PostHog.

        Args:
            message: The event name.
            data: Event data, normalized before it is sent.

        Example:
            corvus.log_event("Close Modal", {"userAccepted": False})
        """
        self.log_debug(describe_event(message, data))

        if self._should_send() and self.is_installed(POSTHOG):
            self.analytics.track(message, data)

    def capture_message(
        self,
        message: str,
        context: Any = None,
        sentry: bool = False,
        analytics: bool = True,
    ) -> None:
        """Log a message and send it to the selected backends.

        Args:
            message: The message.
            context: Context for this message only.
            sentry: Also send the message to Sentry.
            analytics: Track the message in PostHog.
        """
        self.log_debug(describe_event(message, context))

        if not self._should_send():
            return

        if analytics and self.is_installed(POSTHOG):
            self.analytics.track(message, context)
        if sentry and self.is_installed(SENTRY):
            self.sentry.capture_message(message, context)

    def log_exception(self, error: Any) -> None:
        """Log an error and report it to Sentry.

        The error is not reported when sending is disabled, when Sentry is
        not installed, or when the error has a falsy ``report`` attribute.

        Args:
            error: An exception, a mapping or a string.
        """
        if not self._console_output_disabled:
            exc_info = error if isinstance(error, BaseException) else None
            logger.error("%s", error, exc_info=exc_info)

        if (
            not self.is_installed(SENTRY)
            or not self._should_send()
            or not should_report_error(error)
        ):
            return

        self.sentry.capture_exception(coerce_error(error))


# Convenience function for singleton access
def get_corvus() -> Corvus:
    """Get the singleton telemetry facade.

    Returns:
        The Corvus singleton.
    """
    return Corvus.get_instance()
