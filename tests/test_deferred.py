"""Tests for deferred analytics configuration."""

from unittest.mock import MagicMock, call

import pytest

from corvus_telemetry.analytics import AnalyticsService
from corvus_telemetry.deferred import (
    AnalyticsConfig,
    DeferredTracker,
    MissingConfigPolicy,
    TrackerState,
)
from corvus_telemetry.errors import ConfigurationError


@pytest.fixture
def service():
    return MagicMock(spec=AnalyticsService)


class TestBuffering:
    """Tests for events tracked before configuration."""

    def test_starts_buffering(self, service):
        tracker = DeferredTracker(service)

        tracker.track("App Started")

        assert tracker.state is TrackerState.BUFFERING
        assert tracker.pending == 1
        service.track.assert_not_called()

    def test_invalid_maxsize(self, service):
        with pytest.raises(ValueError):
            DeferredTracker(service, maxsize=0)

    def test_full_queue_drops_new_events(self, service):
        """Events beyond the bound are dropped, queued ones keep their order."""
        tracker = DeferredTracker(service, maxsize=2)
        tracker.track("first")
        tracker.track("second")
        tracker.track("third")

        assert tracker.pending == 2

        tracker.configure(AnalyticsConfig(token="phc_xxx"))
        assert service.track.call_args_list == [call("first", None), call("second", None)]


class TestConfigure:
    """Tests for resolving the configuration."""

    def test_drains_in_order_once(self, service):
        """Buffered events are sent in order, exactly once, after install."""
        tracker = DeferredTracker(service)
        tracker.track("a")
        tracker.track("b", {"x": 1})
        tracker.track("c")

        tracker.configure(AnalyticsConfig(token="phc_xxx", options={"version": "1.0.0"}))

        assert service.mock_calls == [
            call.install("phc_xxx", {"version": "1.0.0"}),
            call.track("a", None),
            call.track("b", {"x": 1}),
            call.track("c", None),
        ]
        assert tracker.state is TrackerState.READY
        assert tracker.pending == 0

    def test_ready_tracks_immediately(self, service):
        tracker = DeferredTracker(service)
        tracker.configure(AnalyticsConfig(token="phc_xxx"))

        tracker.track("Flash Started", {"drive": "usb"})

        service.track.assert_called_once_with("Flash Started", {"drive": "usb"})

    def test_missing_config_disables(self, service):
        """Without configuration, buffered and later events are never sent."""
        tracker = DeferredTracker(service)
        tracker.track("before")

        tracker.configure(None)
        tracker.track("after")

        assert tracker.state is TrackerState.DISABLED
        assert tracker.pending == 0
        service.install.assert_not_called()
        service.track.assert_not_called()

    def test_missing_config_raises(self, service):
        """The raise policy keeps buffering so a later configure can succeed."""
        tracker = DeferredTracker(service, on_missing_config=MissingConfigPolicy.RAISE)
        tracker.track("before")

        with pytest.raises(ConfigurationError):
            tracker.configure(None)

        assert tracker.state is TrackerState.BUFFERING
        assert tracker.pending == 1

        tracker.configure(AnalyticsConfig(token="phc_xxx"))
        service.track.assert_called_once_with("before", None)

    def test_policy_from_string(self, service):
        tracker = DeferredTracker(service, on_missing_config="raise")

        with pytest.raises(ConfigurationError):
            tracker.configure(None)

    def test_configure_twice(self, service):
        tracker = DeferredTracker(service)
        tracker.configure(AnalyticsConfig(token="phc_xxx"))

        with pytest.raises(ConfigurationError):
            tracker.configure(AnalyticsConfig(token="phc_xxx"))

    def test_configure_after_disable(self, service):
        tracker = DeferredTracker(service)
        tracker.configure(None)

        with pytest.raises(ConfigurationError):
            tracker.configure(AnalyticsConfig(token="phc_xxx"))
