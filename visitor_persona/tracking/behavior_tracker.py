"""
Behavior tracker - client-side event capture.

Buffers behavior events for one visitor session and flushes them to the
collection endpoint. Delivery is best effort: a failed flush drops the
batch, tracking must never break the page that hosts it.
"""

import logging
import time
import uuid
from typing import Callable, List, Optional

import httpx

from visitor_persona.models.behavior_event import (
    BehaviorEvent,
    BehaviorEventData,
    BehaviorEventType,
    TrackRequest,
)
from visitor_persona.utils.constants import (
    IDLE_AFTER_MS,
    TRACKER_FLUSH_SIZE,
    TRACKER_TIMEOUT_SECONDS,
)


logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class BehaviorTracker:
    """
    Event buffer for one visitor session.

    Keeps the running max scroll depth and the navigation sequence so each
    scroll and navigation event carries the full picture, the way the
    aggregator expects.

    Example usage:
        tracker = BehaviorTracker("https://example.com/track")
        tracker.track_pageview("/")
        tracker.track_click("resume-download", section="hero")
        tracker.close()
    """

    def __init__(
        self,
        endpoint: str,
        session_id: Optional[str] = None,
        device_type: str = 'desktop',
        flush_size: int = TRACKER_FLUSH_SIZE,
        client: Optional[httpx.Client] = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """
        Initialize tracker.

        Args:
            endpoint: URL of the collection endpoint
            session_id: Client session id. A random one is generated if omitted.
            device_type: "desktop", "mobile" or "tablet"
            flush_size: Buffer length that triggers an automatic flush
            client: HTTP client to send with. One is created if omitted.
            clock: Returns the current time in epoch milliseconds
        """
        self.endpoint = endpoint
        self.session_id = session_id or f"rand_{uuid.uuid4().hex}"
        self.device_type = device_type
        self.flush_size = flush_size
        self._client = client or httpx.Client(timeout=TRACKER_TIMEOUT_SECONDS)
        self._owns_client = client is None
        self._clock = clock

        self.buffer: List[BehaviorEvent] = []
        self.navigation_path: List[str] = []
        self.max_scroll_depth = 0.0
        self._last_activity = clock()
        self._page_loaded_at = clock()
        self._idle_reported = False

    # =========================================================================
    # Event capture
    # =========================================================================

    def track_pageview(self, path: str, referrer: Optional[str] = None) -> None:
        if not self.navigation_path:
            self.navigation_path.append(path)
        self._queue(BehaviorEventType.PAGEVIEW, BehaviorEventData(path=path, referrer=referrer))

    def track_scroll(self, depth: float) -> None:
        """Record scroll position as a 0-100 percentage."""
        depth = max(0.0, min(100.0, depth))
        self.max_scroll_depth = max(self.max_scroll_depth, depth)
        self._queue(
            BehaviorEventType.SCROLL,
            BehaviorEventData(depth=depth, max_depth=self.max_scroll_depth),
        )

    def track_click(
        self,
        element: str,
        element_type: Optional[str] = None,
        section: Optional[str] = None,
    ) -> None:
        self._queue(
            BehaviorEventType.CLICK,
            BehaviorEventData(
                element=element,
                element_type=element_type,
                section=section,
                path=self.current_path,
            ),
        )

    def track_hover(self, keywords: List[str], duration_ms: Optional[float] = None) -> None:
        self._queue(
            BehaviorEventType.HOVER,
            BehaviorEventData(keywords=list(keywords), duration=duration_ms),
        )

    def track_interaction(self, interaction_type: str) -> None:
        """interaction_type: "animation", "demo", "code", "form" or "chat"."""
        self._queue(
            BehaviorEventType.INTERACTION,
            BehaviorEventData(interaction_type=interaction_type),
        )

    def track_navigation(self, to_path: str) -> None:
        """Record a route change; repeated navigation to the current path is ignored."""
        from_path = self.current_path
        if to_path == from_path:
            return

        self.record_time_on_page()
        self.navigation_path.append(to_path)
        self._queue(
            BehaviorEventType.NAVIGATION,
            BehaviorEventData(
                from_path=from_path,
                to_path=to_path,
                sequence=list(self.navigation_path),
            ),
        )
        self._queue(BehaviorEventType.PAGEVIEW, BehaviorEventData(path=to_path))
        self.max_scroll_depth = 0.0
        self._page_loaded_at = self._clock()

    def record_time_on_page(self) -> None:
        """Queue a time event for the current page, e.g. when it is hidden."""
        time_on_page = self._clock() - self._page_loaded_at
        self._queue(
            BehaviorEventType.TIME,
            BehaviorEventData(time_on_page=time_on_page, path=self.current_path),
            activity=False,
        )

    def check_idle(self) -> bool:
        """
        Queue an idle event once the visitor has been inactive long enough.

        Returns:
            True if an idle event was queued
        """
        idle_duration = self._clock() - self._last_activity
        if self._idle_reported or idle_duration < IDLE_AFTER_MS:
            return False
        self._queue(
            BehaviorEventType.IDLE,
            BehaviorEventData(idle_duration=idle_duration),
            activity=False,
        )
        self._idle_reported = True
        return True

    @property
    def current_path(self) -> Optional[str]:
        return self.navigation_path[-1] if self.navigation_path else None

    # =========================================================================
    # Delivery
    # =========================================================================

    def flush(self) -> bool:
        """
        Send buffered events to the collection endpoint.

        The buffer is cleared before sending; a failed batch is not retried.

        Returns:
            True if the endpoint accepted the batch
        """
        if not self.buffer:
            return True

        events, self.buffer = self.buffer, []
        payload = TrackRequest(events=events, device_type=self.device_type)

        try:
            response = self._client.post(
                self.endpoint,
                json=payload.model_dump(mode='json', exclude_none=True),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug("Dropped %d tracking events: %s", len(events), e)
            return False
        return True

    def close(self) -> None:
        """Record time on the current page, flush, and release the client."""
        if self.navigation_path:
            self.record_time_on_page()
            self.track_scroll(self.max_scroll_depth)
        self.flush()
        if self._owns_client:
            self._client.close()

    def _queue(
        self,
        event_type: BehaviorEventType,
        data: BehaviorEventData,
        activity: bool = True,
    ) -> None:
        now = self._clock()
        self.buffer.append(BehaviorEvent(
            session_id=self.session_id,
            timestamp=now,
            type=event_type,
            data=data,
        ))
        if activity:
            self._last_activity = now
            self._idle_reported = False

        if len(self.buffer) >= self.flush_size:
            self.flush()
