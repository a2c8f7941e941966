"""
Unit tests for persona classifiers.

Tests cover:
- LLM reply parsing and validation
- LLM call failure handling
- Provider selection from settings
- Hybrid classification state machine
"""

import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from visitor_persona.classifiers.hybrid_classifier import (
    ClassificationResult,
    HybridPersonaClassifier,
    OutcomeKind,
    fingerprint_session,
)
from visitor_persona.classifiers.llm_classifier import (
    LLMClassificationError,
    LLMPersonaClassifier,
    LLMVerdict,
    extract_json_object,
    parse_verdict,
)
from visitor_persona.models.aggregated_behavior import AggregatedBehavior
from visitor_persona.models.persona import (
    ClassificationSource,
    MoodType,
    PersonaClassification,
    PersonaType,
)
from visitor_persona.scoring.centroid_classifier import CentroidMatch
from visitor_persona.storage.session_store import InMemorySessionStore
from visitor_persona.utils.config import Settings


# =============================================================================
# Test Doubles
# =============================================================================

class FakeCompletions:
    """Stands in for client.chat.completions."""

    def __init__(self, content=None, error=None, delay=0.0, choices=True):
        self.content = content
        self.error = error
        self.delay = delay
        self.choices = choices
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if not self.choices:
            return SimpleNamespace(choices=[])
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class FakeLLM:
    """Stands in for LLMPersonaClassifier inside the hybrid classifier."""

    def __init__(self, verdict=None, error=None):
        self.verdict = verdict
        self.error = error
        self.calls = 0

    async def classify(self, behavior):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.verdict


class FixedCentroids:
    """Centroid classifier that always answers the same persona and confidence."""

    def __init__(self, persona, confidence):
        self.persona = persona
        self.confidence = confidence

    def classify(self, vector):
        similarity = 0.5 + self.confidence / 2
        return CentroidMatch(
            persona=self.persona,
            confidence=self.confidence,
            similarity=similarity,
            similarities={self.persona: similarity},
        )


class NoBehaviorStore(InMemorySessionStore):
    def get_behavior(self, session_id):
        return None


class BrokenStore(InMemorySessionStore):
    def get_session(self, fingerprint_hash):
        raise RuntimeError("database unavailable")


class ReadOnlyStore(InMemorySessionStore):
    def save_classification(self, session_id, classification):
        raise RuntimeError("read-only replica")


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def behavior():
    return AggregatedBehavior(
        time_on_homepage=120,
        scroll_depth=0.6,
        opened_code_samples_count=3,
        navigation_path=['/', '/projects', '/architecture'],
        hovered_keywords=['github'],
    )


@pytest.fixture
def store():
    return InMemorySessionStore()


def _seed(store, session_key, behavior):
    """Create a session for the key and store its aggregated behavior."""
    session = store.create_session(fingerprint_session(session_key))
    store.save_behavior(behavior.model_copy(update={'session_id': session.id}))
    return session


# =============================================================================
# JSON Extraction Tests
# =============================================================================

class TestExtractJsonObject:
    """Tests for extract_json_object function."""

    def test_bare_object(self):
        assert extract_json_object('{"persona": "cto"}') == {'persona': 'cto'}

    def test_surrounding_prose(self):
        text = 'Here you go: {"persona": "engineer", "confidence": 0.9} Hope it helps!'
        assert extract_json_object(text) == {'persona': 'engineer', 'confidence': 0.9}

    def test_markdown_fence(self):
        text = '```json\n{"persona": "designer"}\n```'
        assert extract_json_object(text) == {'persona': 'designer'}

    def test_skips_invalid_braces(self):
        text = 'Thinking {about it} ... {"persona": "gamer"}'
        assert extract_json_object(text) == {'persona': 'gamer'}

    def test_no_object(self):
        assert extract_json_object('I think this is an engineer.') is None
        assert extract_json_object('') is None


class TestParseVerdict:
    """Tests for parse_verdict function."""

    def test_valid_reply(self):
        verdict = parse_verdict('{"persona": "engineer", "confidence": 0.85, "mood": "focused"}')

        assert verdict == LLMVerdict(
            persona=PersonaType.ENGINEER,
            confidence=0.85,
            mood=MoodType.FOCUSED,
        )

    def test_case_insensitive_values(self):
        verdict = parse_verdict('{"persona": "Recruiter", "confidence": 0.7, "mood": "PROFESSIONAL"}')

        assert verdict.persona == PersonaType.RECRUITER
        assert verdict.mood == MoodType.PROFESSIONAL

    def test_confidence_is_clamped(self):
        verdict = parse_verdict('{"persona": "cto", "confidence": 1.4, "mood": "focused"}')
        assert verdict.confidence == 1.0

        verdict = parse_verdict('{"persona": "cto", "confidence": -2, "mood": "focused"}')
        assert verdict.confidence == 0.0

    def test_string_confidence(self):
        verdict = parse_verdict('{"persona": "cto", "confidence": "0.7", "mood": "focused"}')
        assert verdict.confidence == 0.7

    def test_unknown_persona(self):
        with pytest.raises(LLMClassificationError, match="Malformed"):
            parse_verdict('{"persona": "astronaut", "confidence": 0.9, "mood": "focused"}')

    def test_unknown_mood(self):
        with pytest.raises(LLMClassificationError):
            parse_verdict('{"persona": "cto", "confidence": 0.9, "mood": "grumpy"}')

    def test_missing_field(self):
        with pytest.raises(LLMClassificationError):
            parse_verdict('{"persona": "cto", "confidence": 0.9}')

    def test_non_numeric_confidence(self):
        with pytest.raises(LLMClassificationError):
            parse_verdict('{"persona": "cto", "confidence": "high", "mood": "focused"}')

    def test_nan_confidence(self):
        with pytest.raises(LLMClassificationError):
            parse_verdict('{"persona": "cto", "confidence": NaN, "mood": "focused"}')

    def test_no_json(self):
        with pytest.raises(LLMClassificationError, match="No JSON"):
            parse_verdict("engineer, probably")


# =============================================================================
# LLMPersonaClassifier Tests
# =============================================================================

class TestLLMPersonaClassifier:
    """Tests for LLMPersonaClassifier class."""

    def test_classify(self, behavior):
        completions = FakeCompletions(
            content='{"persona": "engineer", "confidence": 0.8, "mood": "focused"}'
        )
        llm = LLMPersonaClassifier(fake_client(completions), model="test-model")

        verdict = asyncio.run(llm.classify(behavior))

        assert verdict.persona == PersonaType.ENGINEER
        assert verdict.confidence == 0.8

        call = completions.calls[0]
        assert call['model'] == "test-model"
        assert call['temperature'] == 0.3
        assert call['max_tokens'] == 256
        assert call['messages'][0]['role'] == 'system'
        assert '/architecture' in call['messages'][1]['content']

    def test_empty_reply(self, behavior):
        llm = LLMPersonaClassifier(fake_client(FakeCompletions(choices=False)), model="m")

        with pytest.raises(LLMClassificationError):
            asyncio.run(llm.classify(behavior))

    def test_null_content(self, behavior):
        llm = LLMPersonaClassifier(fake_client(FakeCompletions(content=None)), model="m")

        with pytest.raises(LLMClassificationError):
            asyncio.run(llm.classify(behavior))

    def test_api_error(self, behavior):
        request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        completions = FakeCompletions(error=openai.APIConnectionError(request=request))
        llm = LLMPersonaClassifier(fake_client(completions), model="m")

        with pytest.raises(LLMClassificationError, match="LLM call failed"):
            asyncio.run(llm.classify(behavior))

    def test_transport_error(self, behavior):
        completions = FakeCompletions(error=httpx.ConnectError("connection refused"))
        llm = LLMPersonaClassifier(fake_client(completions), model="m")

        with pytest.raises(LLMClassificationError):
            asyncio.run(llm.classify(behavior))

    def test_timeout(self, behavior):
        completions = FakeCompletions(
            content='{"persona": "engineer", "confidence": 0.8, "mood": "focused"}',
            delay=1.0,
        )
        llm = LLMPersonaClassifier(fake_client(completions), model="m", timeout=0.01)

        with pytest.raises(LLMClassificationError, match="timed out"):
            asyncio.run(llm.classify(behavior))


class TestProviderSelection:
    """Tests for LLMPersonaClassifier.from_settings."""

    def test_no_provider(self):
        settings = Settings(_env_file=None, openrouter_api_key="", groq_api_key="")
        assert LLMPersonaClassifier.from_settings(settings) is None

    def test_prefers_openrouter(self):
        settings = Settings(
            _env_file=None,
            openrouter_api_key="or-key",
            groq_api_key="groq-key",
            openrouter_model="some/model:free",
        )
        llm = LLMPersonaClassifier.from_settings(settings)

        assert llm.model == "some/model:free"
        assert "openrouter.ai" in str(llm.client.base_url)

    def test_groq_only(self):
        settings = Settings(
            _env_file=None,
            openrouter_api_key="",
            groq_api_key="groq-key",
        )
        llm = LLMPersonaClassifier.from_settings(settings)

        assert llm.model == "llama-3.3-70b-versatile"
        assert "api.groq.com" in str(llm.client.base_url)


# =============================================================================
# HybridPersonaClassifier Tests
# =============================================================================

class TestFingerprintSession:
    """Tests for fingerprint_session function."""

    def test_stable_and_short(self):
        first = fingerprint_session("rand_abc")

        assert first == fingerprint_session("rand_abc")
        assert len(first) == 32
        assert first != fingerprint_session("rand_abd")


class TestHybridStateMachine:
    """Tests for the storage-backed classification paths."""

    def test_no_store_returns_default(self):
        classifier = HybridPersonaClassifier(store=None)
        result = asyncio.run(classifier.classify("anything"))

        assert result.source == ClassificationSource.DEFAULT
        assert result.classification == PersonaClassification.default(0.5)

    def test_new_visitor(self, store):
        classifier = HybridPersonaClassifier(store=store)
        result = asyncio.run(classifier.classify("never-seen"))

        assert result.source == ClassificationSource.NEW_VISITOR
        assert result.classification.persona == PersonaType.CURIOUS
        assert result.classification.confidence == 0.3

    def test_insufficient_data(self):
        store = NoBehaviorStore()
        store.create_session(fingerprint_session("sess"))
        classifier = HybridPersonaClassifier(store=store)

        result = asyncio.run(classifier.classify("sess"))

        assert result.source == ClassificationSource.INSUFFICIENT_DATA
        assert result.classification.confidence == 0.3

    def test_cached_short_circuit(self, store, behavior):
        """High stored confidence is returned without vectorizing."""
        session = _seed(store, "sess", behavior)
        store.save_classification(session.id, PersonaClassification(
            persona=PersonaType.ENGINEER,
            confidence=0.85,
            mood=MoodType.FOCUSED,
        ))
        llm = FakeLLM(error=LLMClassificationError("should not be called"))
        classifier = HybridPersonaClassifier(store=store, llm=llm)

        result = asyncio.run(classifier.classify("sess"))

        assert result.source == ClassificationSource.CACHED
        assert result.classification.persona == PersonaType.ENGINEER
        assert result.classification.confidence == 0.85
        assert result.vector is None
        assert llm.calls == 0

    def test_cache_threshold_is_strict(self, store, behavior):
        """Stored confidence of exactly 0.7 is recomputed."""
        session = _seed(store, "sess", behavior)
        store.save_classification(session.id, PersonaClassification(
            persona=PersonaType.GAMER,
            confidence=0.7,
            mood=MoodType.PLAYFUL,
        ))
        classifier = HybridPersonaClassifier(store=store)

        result = asyncio.run(classifier.classify("sess"))

        assert result.source == ClassificationSource.VECTOR

    def test_cached_mood_defaults_to_focused(self, behavior):
        class MoodlessStore(InMemorySessionStore):
            def get_session(self, fingerprint_hash):
                session = super().get_session(fingerprint_hash)
                return session.model_copy(update={
                    'persona': 'cto', 'confidence': 0.9, 'mood': None,
                })

        store = MoodlessStore()
        _seed(store, "sess", behavior)
        classifier = HybridPersonaClassifier(store=store)

        result = asyncio.run(classifier.classify("sess"))

        assert result.source == ClassificationSource.CACHED
        assert result.classification.mood == MoodType.FOCUSED

    def test_writes_back_classification_and_vector(self, store, behavior):
        session = _seed(store, "sess", behavior)
        classifier = HybridPersonaClassifier(store=store)

        result = asyncio.run(classifier.classify("sess"))

        assert result.source == ClassificationSource.VECTOR
        stored = store.get_session(fingerprint_session("sess"))
        assert stored.persona == result.classification.persona.value
        assert stored.confidence == result.classification.confidence
        assert store.get_behavior(session.id).behavior_vector == result.vector.to_list()

    def test_write_back_failure_is_ignored(self, behavior):
        store = ReadOnlyStore()
        _seed(store, "sess", behavior)
        classifier = HybridPersonaClassifier(store=store)

        result = asyncio.run(classifier.classify("sess"))

        assert result.source == ClassificationSource.VECTOR
        assert result.vector is not None

    def test_internal_error_falls_back(self):
        classifier = HybridPersonaClassifier(store=BrokenStore())
        result = asyncio.run(classifier.classify("sess"))

        assert result.source == ClassificationSource.FALLBACK
        assert result.classification == PersonaClassification.default(0.3)
        assert result.to_dict()['success'] is False


class TestHybridDisambiguation:
    """Tests for LLM disambiguation of low-confidence results."""

    def test_llm_failure_keeps_heuristic(self, behavior):
        """Failed disambiguation returns the heuristic result unchanged."""
        centroids = FixedCentroids(PersonaType.ENGINEER, 0.4)
        heuristic = asyncio.run(
            HybridPersonaClassifier(centroids=centroids).classify_behavior(behavior)
        )
        classifier = HybridPersonaClassifier(
            llm=FakeLLM(error=LLMClassificationError("LLM call timed out")),
            centroids=centroids,
        )

        result = asyncio.run(classifier.classify_behavior(behavior))

        assert result.classification == heuristic.classification
        assert result.classification.confidence == 0.4
        assert result.source == ClassificationSource.VECTOR
        assert result.outcome.kind == OutcomeKind.FAILED
        assert "timed out" in result.outcome.reason

    def test_unexpected_llm_error_keeps_heuristic(self, behavior):
        """Errors outside LLMClassificationError still fall back to the vector result."""
        llm = FakeLLM(error=ValueError("unexpected response shape from provider"))
        classifier = HybridPersonaClassifier(
            llm=llm,
            centroids=FixedCentroids(PersonaType.ENGINEER, 0.4),
        )

        result = asyncio.run(classifier.classify_behavior(behavior))

        assert llm.calls == 1
        assert result.classification.persona == PersonaType.ENGINEER
        assert result.classification.confidence == 0.4
        assert result.source == ClassificationSource.VECTOR
        assert result.outcome.kind == OutcomeKind.FAILED
        assert "ValueError" in result.outcome.reason

    def test_unexpected_llm_error_through_store(self, store, behavior):
        _seed(store, "sess", behavior)
        classifier = HybridPersonaClassifier(
            store=store,
            llm=FakeLLM(error=AttributeError("'NoneType' object has no attribute 'message'")),
            centroids=FixedCentroids(PersonaType.ENGINEER, 0.4),
        )

        result = asyncio.run(classifier.classify("sess"))

        assert result.to_dict()["success"] is True
        assert result.source == ClassificationSource.VECTOR
        assert result.classification.persona == PersonaType.ENGINEER

    def test_llm_success_blends_confidence(self, behavior):
        llm = FakeLLM(verdict=LLMVerdict(
            persona=PersonaType.DESIGNER,
            confidence=0.8,
            mood=MoodType.PLAYFUL,
        ))
        classifier = HybridPersonaClassifier(
            llm=llm,
            centroids=FixedCentroids(PersonaType.ENGINEER, 0.4),
        )

        result = asyncio.run(classifier.classify_behavior(behavior))

        assert result.classification.confidence == pytest.approx(0.6)
        assert result.classification.persona == PersonaType.DESIGNER
        assert result.classification.mood == MoodType.PLAYFUL
        assert result.source == ClassificationSource.HYBRID
        assert result.outcome.kind == OutcomeKind.HYBRID
        assert result.outcome.llm_confidence == 0.8

    def test_confident_result_skips_llm(self, behavior):
        llm = FakeLLM(error=LLMClassificationError("should not be called"))
        classifier = HybridPersonaClassifier(
            llm=llm,
            centroids=FixedCentroids(PersonaType.ENGINEER, 0.6),
        )

        result = asyncio.run(classifier.classify_behavior(behavior))

        assert llm.calls == 0
        assert result.source == ClassificationSource.VECTOR
        assert result.outcome.kind == OutcomeKind.HEURISTIC

    def test_use_ai_false_skips_llm(self, behavior):
        llm = FakeLLM(error=LLMClassificationError("should not be called"))
        classifier = HybridPersonaClassifier(
            llm=llm,
            centroids=FixedCentroids(PersonaType.ENGINEER, 0.1),
        )

        result = asyncio.run(classifier.classify_behavior(behavior, use_ai=False))

        assert llm.calls == 0
        assert result.classification.confidence == 0.1

    def test_hybrid_through_store(self, store, behavior):
        _seed(store, "sess", behavior)
        llm = FakeLLM(verdict=LLMVerdict(
            persona=PersonaType.CTO,
            confidence=0.8,
            mood=MoodType.FOCUSED,
        ))
        classifier = HybridPersonaClassifier(
            store=store,
            llm=llm,
            centroids=FixedCentroids(PersonaType.ENGINEER, 0.4),
        )

        result = asyncio.run(classifier.classify("sess", use_ai=True))

        assert result.source == ClassificationSource.HYBRID
        assert store.get_session(fingerprint_session("sess")).persona == 'cto'


class TestClassificationResult:
    """Tests for ClassificationResult serialization."""

    def test_default_payload(self):
        result = ClassificationResult.default(ClassificationSource.NEW_VISITOR, 0.3)

        assert result.to_dict() == {
            'success': True,
            'classification': {
                'persona': 'curious',
                'confidence': 0.3,
                'mood': 'exploratory',
            },
            'source': 'new-visitor',
        }

    def test_vector_payload(self, behavior):
        result = asyncio.run(HybridPersonaClassifier().classify_behavior(behavior))
        payload = result.to_dict()

        assert len(payload['vector']) == 12
        assert set(payload['all_scores']) == {p.value for p in PersonaType}
        assert payload['source'] == 'vector'
