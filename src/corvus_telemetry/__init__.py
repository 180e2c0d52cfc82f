"""Corvus Telemetry - One facade for error reporting and product analytics.

This package installs Sentry (error reporting) and PostHog (product
analytics) behind a single context-aware API.

Features:
- One install call for both backends, sharing release and context
- Event data flattened into readable, start-cased properties
- Absolute filesystem paths redacted before anything leaves the process
- Global enable switch, should-report predicate, and per-error opt-out
- Buffering of analytics events until configuration is known

Quick Start:
    from corvus_telemetry import get_corvus

    corvus = get_corvus()
    corvus.install(
        services={
            "sentry": "https://key@sentry.example.com/1",
            "posthog": "phc_xxx",
        },
        release="1.0.0",
    )

    # Track events
    corvus.log_event("Flash Started", {"drive": {"sizeBytes": 8e9}})

    # Report exceptions
    try:
        risky_operation()
    except Exception as e:
        corvus.log_exception(e)
        raise

Silencing an error:
    error = RuntimeError("cancelled by user")
    error.report = False
    corvus.log_exception(error)  # logged locally, never reported

Opt-out:
    export DO_NOT_TRACK=1
    # Or
    export CORVUS_TELEMETRY_ENABLED=false
"""

from corvus_telemetry.analytics import AnalyticsService
from corvus_telemetry.client import (
    POSTHOG,
    SENTRY,
    SUPPORTED_SERVICES,
    Corvus,
    describe_event,
    get_corvus,
)
from corvus_telemetry.config import (
    CONFIG_DIR,
    CONFIG_FILE,
    DEFAULTS,
    CorvusConfig,
    load_config,
    save_config,
)
from corvus_telemetry.context import (
    HostEnvironment,
    default_context,
    detect_host_environment,
    get_default_context,
    is_running_from_executable,
)
from corvus_telemetry.decorators import track_errors, track_event
from corvus_telemetry.deferred import (
    AnalyticsConfig,
    DeferredTracker,
    MissingConfigPolicy,
    TrackerState,
)
from corvus_telemetry.error_reporting import (
    CombinedContextSetter,
    SentryService,
    SplitContextSetter,
)
from corvus_telemetry.errors import (
    AlreadyInstalledError,
    ConfigurationError,
    CorvusError,
    NativeError,
    NotInstalledError,
    ReportableError,
    StringError,
    StructuredError,
    UnsupportedServiceError,
    coerce_error,
    should_report_error,
)
from corvus_telemetry.normalize import normalize, start_case
from corvus_telemetry.privacy import (
    basify_contained_paths,
    create_before_send_filter,
    redact,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Facade
    "Corvus",
    "get_corvus",
    "describe_event",
    "SENTRY",
    "POSTHOG",
    "SUPPORTED_SERVICES",
    # Backends
    "SentryService",
    "AnalyticsService",
    "SplitContextSetter",
    "CombinedContextSetter",
    # Deferred analytics
    "DeferredTracker",
    "AnalyticsConfig",
    "MissingConfigPolicy",
    "TrackerState",
    # Config
    "CorvusConfig",
    "load_config",
    "save_config",
    "CONFIG_DIR",
    "CONFIG_FILE",
    "DEFAULTS",
    # Context
    "HostEnvironment",
    "default_context",
    "detect_host_environment",
    "get_default_context",
    "is_running_from_executable",
    # Normalization and privacy
    "normalize",
    "start_case",
    "redact",
    "basify_contained_paths",
    "create_before_send_filter",
    # Errors
    "CorvusError",
    "ConfigurationError",
    "UnsupportedServiceError",
    "AlreadyInstalledError",
    "NotInstalledError",
    "ReportableError",
    "StringError",
    "StructuredError",
    "NativeError",
    "coerce_error",
    "should_report_error",
    # Decorators
    "track_errors",
    "track_event",
]
