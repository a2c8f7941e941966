"""
BehaviorEvent model - Raw tracking events sent by the client.

Uses Pydantic v2 so the same models validate the collection endpoint's
request body and build the tracker's outgoing payload.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class BehaviorEventType(str, Enum):
    PAGEVIEW = "pageview"
    SCROLL = "scroll"
    CLICK = "click"
    HOVER = "hover"
    TIME = "time"
    NAVIGATION = "navigation"
    INTERACTION = "interaction"
    IDLE = "idle"


class BehaviorEventData(BaseModel):
    """
    Event payload. Which fields are set depends on the event type.

    Durations are in milliseconds, scroll depths in percent (0-100).
    """
    # Pageview
    path: Optional[str] = None
    referrer: Optional[str] = None

    # Scroll
    depth: Optional[float] = Field(default=None, ge=0, le=100)
    max_depth: Optional[float] = Field(default=None, ge=0, le=100)

    # Click
    element: Optional[str] = None
    element_type: Optional[str] = None
    section: Optional[str] = None

    # Hover
    duration: Optional[float] = Field(default=None, ge=0)
    keywords: Optional[List[str]] = None

    # Time
    time_on_page: Optional[float] = Field(default=None, ge=0)
    total_time: Optional[float] = Field(default=None, ge=0)

    # Navigation
    from_path: Optional[str] = None
    to_path: Optional[str] = None
    sequence: Optional[List[str]] = None
    speed: Optional[str] = None

    # Interaction ("animation", "demo", "code", "form", "chat")
    interaction_type: Optional[str] = None

    # Idle
    idle_duration: Optional[float] = Field(default=None, ge=0)


class BehaviorEvent(BaseModel):
    session_id: str = ""  # checked by the collection endpoint
    timestamp: int  # epoch milliseconds
    type: BehaviorEventType
    data: BehaviorEventData = Field(default_factory=BehaviorEventData)


class TrackRequest(BaseModel):
    """Batch of events flushed by one client."""
    events: List[BehaviorEvent] = Field(default_factory=list)
    device_type: str = 'desktop'
