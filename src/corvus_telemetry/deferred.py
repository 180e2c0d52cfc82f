"""Deferred analytics configuration.

Hosts often learn whether and how to report analytics only after startup,
for example once a settings file or a remote flag has been read. Events
tracked before then are buffered and delivered in order once the analytics
configuration is known.

    BUFFERING --configure(config)--> READY
    BUFFERING --configure(None)----> DISABLED
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, Optional, Tuple

from .analytics import AnalyticsService
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MAXSIZE = 1000


class TrackerState(str, Enum):
    """States of a ``DeferredTracker``."""

    BUFFERING = "buffering"
    READY = "ready"
    DISABLED = "disabled"


class MissingConfigPolicy(str, Enum):
    """What to do when configuration resolves to nothing."""

    # Drop buffered events and ignore every later one
    DISABLE = "disable"

    # Raise ConfigurationError and keep buffering
    RAISE = "raise"


@dataclass
class AnalyticsConfig:
    """Configuration handed to ``AnalyticsService.install``."""

    token: str
    options: Dict[str, Any] = field(default_factory=dict)


class DeferredTracker:
    """Buffer analytics events until the analytics configuration arrives.

    Example:
        tracker = DeferredTracker()
        tracker.track("App Started", {"version": "1.0.0"})
        ...
        tracker.configure(AnalyticsConfig(token="phc_xxx"))  # delivers App Started
    """

    def __init__(
        self,
        service: Optional[AnalyticsService] = None,
        maxsize: int = DEFAULT_MAXSIZE,
        on_missing_config: MissingConfigPolicy = MissingConfigPolicy.DISABLE,
    ) -> None:
        if maxsize < 1:
            raise ValueError(f"maxsize must be positive, got {maxsize}")

        self._service = service or AnalyticsService()
        self._maxsize = maxsize
        self._on_missing_config = MissingConfigPolicy(on_missing_config)
        self._queue: Deque[Tuple[str, Any]] = deque()
        self._state = TrackerState.BUFFERING

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def pending(self) -> int:
        """Number of buffered events."""
        return len(self._queue)

    @property
    def service(self) -> AnalyticsService:
        return self._service

    def track(self, message: str, data: Any = None) -> None:
        """Track an event now, later, or never, depending on the state."""
        if self._state is TrackerState.READY:
            self._service.track(message, data)
        elif self._state is TrackerState.BUFFERING:
            if len(self._queue) >= self._maxsize:
                logger.warning("Analytics queue full, dropping event %r", message)
                return
            self._queue.append((message, data))

    def configure(self, config: Optional[AnalyticsConfig]) -> None:
        """Resolve the analytics configuration.

        Args:
            config: The configuration, or None when analytics is not
                configured.

        Raises:
            ConfigurationError: If already configured, or if ``config`` is
                None and the missing-config policy is ``raise``.
        """
        if self._state is not TrackerState.BUFFERING:
            raise ConfigurationError(f"Analytics already configured ({self._state.value})")

        if config is None:
            if self._on_missing_config is MissingConfigPolicy.RAISE:
                raise ConfigurationError("No analytics configuration")
            logger.warning(
                "No analytics configuration, dropping %d buffered events", len(self._queue)
            )
            self._queue.clear()
            self._state = TrackerState.DISABLED
            return

        self._service.install(config.token, config.options)
        self._state = TrackerState.READY

        while self._queue:
            message, data = self._queue.popleft()
            self._service.track(message, data)
