"""
AggregatedBehavior model - Per-session summary of tracked behavior.

Uses Pydantic v2 for validation. Produced by the event aggregator, stored
alongside the visitor session, and consumed read-only by the vectorizer.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AggregatedBehavior(BaseModel):
    """
    Summary counters folded from a session's raw behavior events.
    Why: Gives the vectorizer a fixed-shape input regardless of event volume.
    """
    session_id: UUID = Field(default_factory=uuid4)

    # Engagement
    time_on_homepage: float = Field(default=0.0, ge=0)  # seconds
    scroll_depth: float = Field(default=0.0, ge=0, le=1)
    idle_time: float = Field(default=0.0, ge=0)  # seconds
    mouse_heatmap_density: float = 0.0
    navigation_speed: float = 0.0

    # Direct actions
    clicked_resume: bool = False
    opened_design_showcase: bool = False
    opened_ai_intake_form: bool = False
    interacted_with_animations: bool = False

    # Counters
    opened_code_samples_count: int = Field(default=0, ge=0)
    visited_projects_count: int = Field(default=0, ge=0)
    played_demos_count: int = Field(default=0, ge=0)

    # Sequences
    navigation_path: List[str] = Field(default_factory=list)
    hovered_keywords: List[str] = Field(default_factory=list)

    # Last computed vector, kept for audit
    behavior_vector: List[float] = Field(default_factory=list)

    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator(
        'time_on_homepage', 'scroll_depth', 'idle_time',
        'mouse_heatmap_density', 'navigation_speed',
        'opened_code_samples_count', 'visited_projects_count',
        'played_demos_count',
        mode='before',
    )
    @classmethod
    def _missing_number_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator(
        'clicked_resume', 'opened_design_showcase',
        'opened_ai_intake_form', 'interacted_with_animations',
        mode='before',
    )
    @classmethod
    def _missing_flag_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator(
        'navigation_path', 'hovered_keywords', 'behavior_vector',
        mode='before',
    )
    @classmethod
    def _missing_list_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def interaction_count(self) -> int:
        """Discrete interactions: counters plus one per direct action."""
        return (
            self.opened_code_samples_count
            + self.visited_projects_count
            + self.played_demos_count
            + int(self.clicked_resume)
            + int(self.opened_design_showcase)
            + int(self.opened_ai_intake_form)
        )

    @property
    def click_targets(self) -> List[str]:
        """Named click targets plus hovered keywords, for prompt building."""
        targets = []
        if self.clicked_resume:
            targets.append('resume')
        if self.opened_design_showcase:
            targets.append('design')
        if self.opened_ai_intake_form:
            targets.append('intake')
        targets.extend(self.hovered_keywords)
        return targets


class VisitorSession(BaseModel):
    """
    Tracked visitor session.
    Why: Holds the cached classification between requests.
    """
    id: UUID = Field(default_factory=uuid4)
    fingerprint_hash: str
    persona: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    mood: Optional[str] = None
    device_type: str = 'desktop'
    consent_given: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    last_seen: datetime = Field(default_factory=_utcnow)
