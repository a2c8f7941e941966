"""
Event aggregator for folding raw behavior events into session counters.
"""

from datetime import datetime, timezone
from typing import Iterable

from visitor_persona.models.aggregated_behavior import AggregatedBehavior
from visitor_persona.models.behavior_event import BehaviorEvent, BehaviorEventType
from visitor_persona.utils.constants import (
    HOMEPAGE_PATH,
    INTAKE_PATH,
    MAX_HOVERED_KEYWORDS,
)


class EventAggregator:
    """
    Folds tracking events into an AggregatedBehavior record.

    Click targets are matched by substring on the tracked element id, or on
    the section the element belongs to:
    - resume -> clicked_resume
    - code (or section "code") -> opened_code_samples_count
    - project (or section "projects") -> visited_projects_count
    - design (or section "design") -> opened_design_showcase
    - demo / game -> played_demos_count
    - intake (or click on /intake) -> opened_ai_intake_form

    Example usage:
        aggregator = EventAggregator()
        behavior = aggregator.apply(behavior, events)
    """

    def apply(
        self,
        behavior: AggregatedBehavior,
        events: Iterable[BehaviorEvent],
    ) -> AggregatedBehavior:
        """
        Fold a batch of events into a copy of the aggregated record.

        Args:
            behavior: Current aggregated record (not modified)
            events: Events in arrival order

        Returns:
            Updated copy of the record
        """
        updated = behavior.model_copy(deep=True)
        changed = False

        for event in events:
            changed = self._apply_event(updated, event) or changed

        if changed:
            updated.updated_at = datetime.now(timezone.utc)
        return updated

    def _apply_event(self, behavior: AggregatedBehavior, event: BehaviorEvent) -> bool:
        data = event.data

        if event.type == BehaviorEventType.TIME:
            if _positive(data.time_on_page) and data.path == HOMEPAGE_PATH:
                behavior.time_on_homepage += data.time_on_page / 1000
                return True

        elif event.type == BehaviorEventType.SCROLL:
            if data.max_depth:
                behavior.scroll_depth = max(behavior.scroll_depth, data.max_depth / 100)
                return True

        elif event.type == BehaviorEventType.CLICK:
            return self._apply_click(behavior, event)

        elif event.type == BehaviorEventType.INTERACTION:
            if data.interaction_type == 'animation':
                behavior.interacted_with_animations = True
                return True

        elif event.type == BehaviorEventType.IDLE:
            if _positive(data.idle_duration):
                behavior.idle_time += data.idle_duration / 1000
                return True

        elif event.type == BehaviorEventType.NAVIGATION:
            # The client sends its whole path so far; the latest one wins
            if data.sequence:
                behavior.navigation_path = list(data.sequence)
                return True

        elif event.type == BehaviorEventType.HOVER:
            if data.keywords:
                behavior.hovered_keywords.extend(data.keywords)
                del behavior.hovered_keywords[:-MAX_HOVERED_KEYWORDS]
                return True

        return False

    def _apply_click(self, behavior: AggregatedBehavior, event: BehaviorEvent) -> bool:
        element = (event.data.element or '').lower()
        section = (event.data.section or '').lower()
        changed = False

        if 'resume' in element:
            behavior.clicked_resume = True
            changed = True
        if 'code' in element or section == 'code':
            behavior.opened_code_samples_count += 1
            changed = True
        if 'project' in element or section == 'projects':
            behavior.visited_projects_count += 1
            changed = True
        if 'design' in element or section == 'design':
            behavior.opened_design_showcase = True
            changed = True
        if 'demo' in element or 'game' in element:
            behavior.played_demos_count += 1
            changed = True
        if 'intake' in element or event.data.path == INTAKE_PATH:
            behavior.opened_ai_intake_form = True
            changed = True

        return changed


def aggregate_events(
    behavior: AggregatedBehavior,
    events: Iterable[BehaviorEvent],
) -> AggregatedBehavior:
    """
    Fold events using the default aggregator.

    Args:
        behavior: Current aggregated record
        events: New events

    Returns:
        Updated copy of the record
    """
    aggregator = EventAggregator()
    return aggregator.apply(behavior, events)


def _positive(value) -> bool:
    # Events built without validation can still carry negative durations
    return value is not None and value > 0
