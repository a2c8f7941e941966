"""Data models for visitor persona detection."""

from .behavior_vector import BehaviorVector, DIMENSION_NAMES
from .persona import (
    ClassificationSource,
    DEFAULT_PERSONA,
    MoodType,
    PersonaClassification,
    PersonaType,
)
from .aggregated_behavior import AggregatedBehavior, VisitorSession
from .behavior_event import (
    BehaviorEvent,
    BehaviorEventData,
    BehaviorEventType,
    TrackRequest,
)

__all__ = [
    'BehaviorVector',
    'DIMENSION_NAMES',
    'ClassificationSource',
    'DEFAULT_PERSONA',
    'MoodType',
    'PersonaClassification',
    'PersonaType',
    'AggregatedBehavior',
    'VisitorSession',
    'BehaviorEvent',
    'BehaviorEventData',
    'BehaviorEventType',
    'TrackRequest',
]
