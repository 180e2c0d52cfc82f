"""Pytest configuration and fixtures for telemetry tests."""

import os
from unittest.mock import patch

import pytest

from corvus_telemetry.client import Corvus
from corvus_telemetry.context import HostEnvironment

TEST_DSN = "https://key@sentry.example.com/1"
TEST_TOKEN = "phc_test_token"

FIXED_CONTEXT = {"osPlatform": "linux", "cpuCores": 4}


@pytest.fixture(autouse=True)
def clean_env():
    """Provide a clean environment without telemetry-related variables."""
    env_vars_to_clear = [
        "DO_NOT_TRACK",
        "CORVUS_TELEMETRY_ENABLED",
        "CORVUS_SENTRY_DSN",
        "CORVUS_POSTHOG_TOKEN",
        "CORVUS_POSTHOG_HOST",
        "CORVUS_RELEASE",
        "CORVUS_SERVER_NAME",
        "CORVUS_ENVIRONMENT",
        "CORVUS_DISABLE_CONSOLE_OUTPUT",
    ]

    # Store original values
    original = {var: os.environ.get(var) for var in env_vars_to_clear}

    # Clear the variables
    for var in env_vars_to_clear:
        if var in os.environ:
            del os.environ[var]

    yield

    # Restore original values
    for var, value in original.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]


@pytest.fixture(autouse=True)
def reset_corvus():
    """Reset the facade singleton before and after each test."""
    Corvus._instance = None
    yield
    Corvus._instance = None


@pytest.fixture
def fixed_context():
    """Replace the machine-dependent default context with a fixed one."""
    with patch(
        "corvus_telemetry.error_reporting.get_default_context",
        return_value=dict(FIXED_CONTEXT),
    ), patch(
        "corvus_telemetry.analytics.get_default_context",
        return_value=dict(FIXED_CONTEXT),
    ):
        yield dict(FIXED_CONTEXT)


@pytest.fixture
def mock_sentry():
    """Mock sentry_sdk for testing."""
    with patch("corvus_telemetry.error_reporting.sentry_sdk") as mock:
        yield mock


@pytest.fixture
def mock_posthog():
    """Mock the PostHog client class for testing."""
    with patch("corvus_telemetry.analytics.Posthog") as mock:
        yield mock


@pytest.fixture
def corvus(fixed_context, mock_sentry, mock_posthog):
    """Provide a facade with mocked backends, disposed after the test."""
    instance = Corvus(host=HostEnvironment.PYTHON)
    yield instance
    instance.dispose()


@pytest.fixture
def installed_corvus(corvus):
    """Provide a facade with both backends installed."""
    corvus.install(
        services={"sentry": TEST_DSN, "posthog": TEST_TOKEN},
        release="1.0.0",
        analytics_options={"distinct_id": "test-user"},
    )
    return corvus
