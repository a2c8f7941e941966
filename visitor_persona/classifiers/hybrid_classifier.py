"""
Hybrid persona classifier for visitor sessions.

Runs the per-request classification state machine: default for unknown or
empty sessions, cached result when stored confidence is high, otherwise
vectorize + nearest centroid, with LLM disambiguation for low-confidence
results. Never raises: any internal error becomes a default classification.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from starlette.concurrency import run_in_threadpool

from visitor_persona.classifiers.llm_classifier import (
    LLMClassificationError,
    LLMPersonaClassifier,
)
from visitor_persona.models.aggregated_behavior import AggregatedBehavior, VisitorSession
from visitor_persona.models.behavior_vector import BehaviorVector
from visitor_persona.models.persona import (
    ClassificationSource,
    MoodType,
    PersonaClassification,
    PersonaType,
)
from visitor_persona.scoring.behavior_vectorizer import BehaviorVectorizer
from visitor_persona.scoring.centroid_classifier import CentroidClassifier
from visitor_persona.scoring.mood_detector import MoodDetector
from visitor_persona.storage.session_store import SessionStore
from visitor_persona.utils.constants import (
    CACHE_CONFIDENCE_THRESHOLD,
    CACHED_MOOD_FALLBACK,
    DISAMBIGUATION_THRESHOLD,
    LOW_DATA_CONFIDENCE,
    NO_STORE_CONFIDENCE,
)


logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    HEURISTIC = "heuristic"
    HYBRID = "hybrid"
    FAILED = "failed"


@dataclass(frozen=True)
class DisambiguationOutcome:
    """
    Why the final classification took the shape it did.

    HEURISTIC: the centroid result was accepted as is.
    HYBRID: the LLM answered; llm_confidence is what it reported.
    FAILED: the LLM was consulted but failed; reason says how.
    """

    kind: OutcomeKind
    llm_confidence: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def heuristic(cls) -> 'DisambiguationOutcome':
        return cls(OutcomeKind.HEURISTIC)

    @classmethod
    def hybrid(cls, llm_confidence: float) -> 'DisambiguationOutcome':
        return cls(OutcomeKind.HYBRID, llm_confidence=llm_confidence)

    @classmethod
    def failed(cls, reason: str) -> 'DisambiguationOutcome':
        return cls(OutcomeKind.FAILED, reason=reason)


@dataclass(frozen=True)
class ClassificationResult:
    """Classification plus the evidence used to reach it."""

    classification: PersonaClassification
    source: ClassificationSource
    vector: Optional[BehaviorVector] = None
    similarities: Dict[PersonaType, float] = field(default_factory=dict)
    outcome: Optional[DisambiguationOutcome] = None

    def to_dict(self) -> Dict[str, Any]:
        """Response payload for the classify endpoint."""
        payload: Dict[str, Any] = {
            'success': self.source != ClassificationSource.FALLBACK,
            'classification': self.classification.to_dict(),
            'source': self.source.value,
        }
        if self.vector is not None:
            payload['vector'] = self.vector.to_list()
        if self.similarities:
            payload['all_scores'] = {
                persona.value: score for persona, score in self.similarities.items()
            }
        return payload

    @classmethod
    def default(cls, source: ClassificationSource, confidence: float) -> 'ClassificationResult':
        return cls(
            classification=PersonaClassification.default(confidence),
            source=source,
        )


def fingerprint_session(session_key: str) -> str:
    """Stable hash of a client session id, used as the session lookup key."""
    return hashlib.sha256(session_key.encode('utf-8')).hexdigest()[:32]


class HybridPersonaClassifier:
    """
    Orchestrator for per-session persona classification.

    Example usage:
        classifier = HybridPersonaClassifier(store=store, llm=llm)
        result = await classifier.classify("fp_abc123")
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        llm: Optional[LLMPersonaClassifier] = None,
        vectorizer: Optional[BehaviorVectorizer] = None,
        centroids: Optional[CentroidClassifier] = None,
        mood_detector: Optional[MoodDetector] = None,
    ) -> None:
        """
        Initialize classifier.

        Args:
            store: Session storage. None means classification always
                   returns the default persona.
            llm: LLM disambiguator. None disables disambiguation.
        """
        self.store = store
        self.llm = llm
        self.vectorizer = vectorizer or BehaviorVectorizer()
        self.centroids = centroids or CentroidClassifier()
        self.mood_detector = mood_detector or MoodDetector()

    async def classify(self, session_key: str, use_ai: bool = True) -> ClassificationResult:
        """
        Classify the visitor behind a client session id.

        Args:
            session_key: Client-side session identifier
            use_ai: Whether low-confidence results may consult the LLM

        Returns:
            ClassificationResult; never raises
        """
        try:
            return await self._classify(session_key, use_ai)
        except Exception:
            logger.exception("Classification failed for session %s", session_key)
            return ClassificationResult.default(
                ClassificationSource.FALLBACK, LOW_DATA_CONFIDENCE
            )

    async def _classify(self, session_key: str, use_ai: bool) -> ClassificationResult:
        if self.store is None:
            return ClassificationResult.default(
                ClassificationSource.DEFAULT, NO_STORE_CONFIDENCE
            )

        fingerprint_hash = fingerprint_session(session_key)
        session = await run_in_threadpool(self.store.get_session, fingerprint_hash)
        if session is None:
            return ClassificationResult.default(
                ClassificationSource.NEW_VISITOR, LOW_DATA_CONFIDENCE
            )

        cached = self._cached_classification(session)
        if cached is not None:
            return ClassificationResult(
                classification=cached, source=ClassificationSource.CACHED
            )

        behavior = await run_in_threadpool(self.store.get_behavior, session.id)
        if behavior is None:
            return ClassificationResult.default(
                ClassificationSource.INSUFFICIENT_DATA, LOW_DATA_CONFIDENCE
            )

        result = await self.classify_behavior(behavior, use_ai=use_ai)
        await self._write_back(session, result)
        return result

    async def classify_behavior(
        self,
        behavior: AggregatedBehavior,
        use_ai: bool = True,
    ) -> ClassificationResult:
        """
        Classify an aggregated behavior record without touching storage.

        Args:
            behavior: Aggregated behavior to classify
            use_ai: Whether low-confidence results may consult the LLM

        Returns:
            ClassificationResult with source VECTOR or HYBRID
        """
        vector = self.vectorizer.vectorize(behavior)
        match = self.centroids.classify(vector)
        heuristic = PersonaClassification(
            persona=match.persona,
            confidence=match.confidence,
            mood=self.mood_detector.detect(behavior, vector),
        )

        final = heuristic
        outcome = DisambiguationOutcome.heuristic()
        if use_ai and self.llm is not None and match.confidence < DISAMBIGUATION_THRESHOLD:
            final, outcome = await self._disambiguate(behavior, heuristic)

        source = (
            ClassificationSource.HYBRID
            if outcome.kind == OutcomeKind.HYBRID
            else ClassificationSource.VECTOR
        )
        return ClassificationResult(
            classification=final,
            source=source,
            vector=vector,
            similarities=match.similarities,
            outcome=outcome,
        )

    async def _disambiguate(
        self,
        behavior: AggregatedBehavior,
        heuristic: PersonaClassification,
    ):
        """Blend the heuristic result with the LLM's, or keep it on failure."""
        try:
            verdict = await self.llm.classify(behavior)
        except LLMClassificationError as e:
            logger.warning("LLM disambiguation failed, using heuristic: %s", e)
            return heuristic, DisambiguationOutcome.failed(str(e))
        except Exception as e:
            # Anything the provider SDK throws still leaves the heuristic result
            logger.warning(
                "Unexpected LLM error, using heuristic: %r", e, exc_info=True
            )
            return heuristic, DisambiguationOutcome.failed(repr(e))

        blended = PersonaClassification(
            persona=verdict.persona,
            confidence=(heuristic.confidence + verdict.confidence) / 2,
            mood=verdict.mood,
        )
        return blended, DisambiguationOutcome.hybrid(verdict.confidence)

    def _cached_classification(
        self, session: VisitorSession
    ) -> Optional[PersonaClassification]:
        if not session.persona or session.confidence is None:
            return None
        if session.confidence <= CACHE_CONFIDENCE_THRESHOLD:
            return None

        try:
            persona = PersonaType(session.persona)
        except ValueError:
            logger.warning("Ignoring unknown cached persona %r", session.persona)
            return None
        try:
            mood = MoodType(session.mood) if session.mood else CACHED_MOOD_FALLBACK
        except ValueError:
            mood = CACHED_MOOD_FALLBACK
        return PersonaClassification(
            persona=persona, confidence=session.confidence, mood=mood
        )

    async def _write_back(self, session: VisitorSession, result: ClassificationResult) -> None:
        """Persist classification and vector; failures never reach the caller."""
        try:
            await run_in_threadpool(
                self.store.save_classification, session.id, result.classification
            )
            if result.vector is not None:
                await run_in_threadpool(self.store.save_vector, session.id, result.vector)
        except Exception:
            logger.warning(
                "Failed to persist classification for session %s",
                session.id,
                exc_info=True,
            )
