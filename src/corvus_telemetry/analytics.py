"""PostHog product analytics backend.

Event properties are normalized into flat, start-cased mappings and have
absolute paths redacted before they reach the PostHog client.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any, Dict, Optional

from posthog import Posthog

from .context import HostEnvironment, detect_host_environment, get_default_context
from .errors import AlreadyInstalledError, NotInstalledError
from .normalize import normalize
from .privacy import redact

logger = logging.getLogger(__name__)


def _as_properties(data: Any) -> Dict[str, Any]:
    """Normalize data into a property mapping.

    Lists normalize to lists, which cannot be merged into a property
    mapping, so they end up under ``Value`` like any other scalar.
    """
    normalized = normalize(data)
    if isinstance(normalized, Mapping):
        return normalized
    return {"Value": normalized}


class AnalyticsService:
    """Product analytics through the PostHog client."""

    def __init__(self, host: Optional[HostEnvironment] = None) -> None:
        self._host = host or detect_host_environment()
        self._client: Optional[Posthog] = None
        self._context: Dict[str, Any] = {}
        self._distinct_id: Optional[str] = None

    @property
    def context(self) -> Dict[str, Any]:
        """The normalized context merged into every event."""
        return self._context

    @property
    def distinct_id(self) -> Optional[str]:
        """The identifier events are attributed to."""
        return self._distinct_id

    def is_installed(self) -> bool:
        """Whether the PostHog client is installed."""
        return self._client is not None

    def _require_installed(self) -> None:
        if self._client is None:
            raise NotInstalledError("PostHog not installed")

    def install(self, token: str, options: Optional[Dict[str, Any]] = None) -> None:
        """Install the PostHog client.

        Args:
            token: PostHog project API key.
            options: Context properties for every event, plus the optional
                ``host`` (PostHog instance URL) and ``distinct_id`` options.
                A random distinct ID is generated when none is given.

        Raises:
            AlreadyInstalledError: If PostHog is already installed.
        """
        if self._client is not None:
            raise AlreadyInstalledError("PostHog already installed")

        options = dict(options or {})
        api_host = options.pop("host", None)
        self._distinct_id = options.pop("distinct_id", None) or str(uuid.uuid4())

        client_kwargs = {"host": api_host} if api_host else {}
        self._client = Posthog(token, **client_kwargs)
        self._context = _as_properties({**get_default_context(self._host), **options})
        logger.debug("PostHog installed for %s", self._distinct_id)

    def uninstall(self) -> None:
        """Shut the PostHog client down, flushing pending events."""
        self._require_installed()

        self._client.shutdown()
        self._client = None
        self._context = {}

    def set_context(self, context: Any) -> None:
        """Merge normalized context into the context of every event."""
        self._require_installed()

        self._context.update(_as_properties(context))

    def track(self, message: str, data: Any = None) -> None:
        """Track an event.

        Args:
            message: The event name.
            data: Event data. Nested mappings are flattened.
        """
        self._require_installed()

        properties = dict(self._context)
        if data is not None:
            properties.update(_as_properties(data))

        self._client.capture(
            distinct_id=self._distinct_id,
            event=message,
            properties=redact(properties),
        )
