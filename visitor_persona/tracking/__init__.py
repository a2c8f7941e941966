"""Behavior event capture and aggregation."""

from .behavior_tracker import BehaviorTracker
from .event_aggregator import EventAggregator, aggregate_events

__all__ = [
    'BehaviorTracker',
    'EventAggregator',
    'aggregate_events',
]
