"""Persona classifiers."""

from .llm_classifier import LLMClassificationError, LLMPersonaClassifier, LLMVerdict
from .hybrid_classifier import (
    ClassificationResult,
    DisambiguationOutcome,
    HybridPersonaClassifier,
    fingerprint_session,
)

__all__ = [
    'LLMClassificationError',
    'LLMPersonaClassifier',
    'LLMVerdict',
    'ClassificationResult',
    'DisambiguationOutcome',
    'HybridPersonaClassifier',
    'fingerprint_session',
]
