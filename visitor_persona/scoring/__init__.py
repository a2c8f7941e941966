"""Behavior vectorization, centroid matching and mood detection."""

from .behavior_vectorizer import BehaviorVectorizer, vectorize
from .centroid_classifier import (
    CentroidClassifier,
    CentroidMatch,
    classify_vector,
    closest_personas,
)
from .mood_detector import MoodDetector, infer_mood

__all__ = [
    'BehaviorVectorizer',
    'vectorize',
    'CentroidClassifier',
    'CentroidMatch',
    'classify_vector',
    'closest_personas',
    'MoodDetector',
    'infer_mood',
]
