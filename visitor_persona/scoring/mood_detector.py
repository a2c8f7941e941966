"""
Mood detector for describing a visitor's browsing style.

Mood is independent of persona: it only looks at pace and depth signals.
"""

from typing import Callable, List, Tuple

from visitor_persona.models.aggregated_behavior import AggregatedBehavior
from visitor_persona.models.behavior_vector import BehaviorVector
from visitor_persona.models.persona import MoodType
from visitor_persona.utils.constants import (
    DEFAULT_MOOD,
    MOOD_DEEP_SCROLL,
    MOOD_FAST_NAVIGATION,
    MOOD_IDLE_SECONDS,
    MOOD_SHALLOW_SCROLL,
    MOOD_SLOW_NAVIGATION,
)


MoodRule = Callable[[AggregatedBehavior, BehaviorVector], bool]


class MoodDetector:
    """
    Rule-based detector for visitor mood.

    Rules are checked in priority order - first match wins:
    1. PROFESSIONAL - fast navigation, shallow scroll (quick scanning)
    2. CASUAL - long idle time
    3. FOCUSED - deep scroll, slow navigation (deep reading)
    4. PLAYFUL - played any demo
    5. EXPLORATORY (fallback)

    Example usage:
        detector = MoodDetector()
        mood = detector.detect(behavior, vector)
    """

    def __init__(self) -> None:
        self._rules: List[Tuple[MoodType, MoodRule]] = [
            (MoodType.PROFESSIONAL, self._is_scanning),
            (MoodType.CASUAL, self._is_idle),
            (MoodType.FOCUSED, self._is_deep_reading),
            (MoodType.PLAYFUL, self._is_playing),
        ]

    def detect(
        self,
        behavior: AggregatedBehavior,
        vector: BehaviorVector,
    ) -> MoodType:
        """
        Detect the mood for a session.

        Args:
            behavior: Aggregated behavior (scroll depth, idle time, demos)
            vector: Behavior vector (navigation speed)

        Returns:
            First matching mood, or EXPLORATORY
        """
        for mood, rule in self._rules:
            if rule(behavior, vector):
                return mood
        return DEFAULT_MOOD

    @staticmethod
    def _is_scanning(behavior: AggregatedBehavior, vector: BehaviorVector) -> bool:
        return (
            vector.navigation_speed > MOOD_FAST_NAVIGATION
            and behavior.scroll_depth < MOOD_SHALLOW_SCROLL
        )

    @staticmethod
    def _is_idle(behavior: AggregatedBehavior, vector: BehaviorVector) -> bool:
        return behavior.idle_time > MOOD_IDLE_SECONDS

    @staticmethod
    def _is_deep_reading(behavior: AggregatedBehavior, vector: BehaviorVector) -> bool:
        return (
            behavior.scroll_depth > MOOD_DEEP_SCROLL
            and vector.navigation_speed < MOOD_SLOW_NAVIGATION
        )

    @staticmethod
    def _is_playing(behavior: AggregatedBehavior, vector: BehaviorVector) -> bool:
        return behavior.played_demos_count > 0


_default_detector = None


def infer_mood(behavior: AggregatedBehavior, vector: BehaviorVector) -> MoodType:
    """
    Detect mood using the default detector.

    Args:
        behavior: Aggregated behavior
        vector: Behavior vector computed from the same behavior

    Returns:
        Detected mood
    """
    global _default_detector
    if _default_detector is None:
        _default_detector = MoodDetector()
    return _default_detector.detect(behavior, vector)
