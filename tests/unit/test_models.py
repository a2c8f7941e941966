"""
Unit tests for data models.

Tests cover:
- BehaviorVector validation and positional conversion
- PersonaClassification validation and serialization
- AggregatedBehavior coercion and derived properties
- BehaviorEvent validation
"""

import pytest
from pydantic import ValidationError

from visitor_persona.models.aggregated_behavior import AggregatedBehavior, VisitorSession
from visitor_persona.models.behavior_event import (
    BehaviorEvent,
    BehaviorEventData,
    BehaviorEventType,
    TrackRequest,
)
from visitor_persona.models.behavior_vector import BehaviorVector, DIMENSION_NAMES
from visitor_persona.models.persona import (
    DEFAULT_PERSONA,
    MoodType,
    PersonaClassification,
    PersonaType,
)


# =============================================================================
# BehaviorVector Tests
# =============================================================================

class TestBehaviorVector:
    """Tests for BehaviorVector model."""

    def test_dimension_order(self):
        """Dimension order is the contract with the centroid table."""
        assert DIMENSION_NAMES == (
            'resume_focus',
            'code_focus',
            'design_focus',
            'leadership_focus',
            'game_focus',
            'exploration_breadth',
            'engagement_depth',
            'interaction_rate',
            'technical_interest',
            'visual_interest',
            'navigation_speed',
            'intent_clarity',
        )

    def test_from_list_preserves_order(self):
        """Test from_list maps positions onto named dimensions."""
        values = [i / 20 for i in range(12)]
        vector = BehaviorVector.from_list(values)

        assert vector.resume_focus == 0.0
        assert vector.code_focus == 0.05
        assert vector.intent_clarity == 0.55
        assert vector.to_list() == values

    def test_from_list_wrong_length(self):
        """Test any length other than 12 is rejected."""
        with pytest.raises(ValueError, match="12 values"):
            BehaviorVector.from_list([0.5] * 11)

        with pytest.raises(ValueError, match="12 values"):
            BehaviorVector.from_list([0.5] * 13)

    def test_out_of_range_value(self):
        """Test values outside 0-1 raise error."""
        values = [0.5] * 12
        values[3] = 1.5

        with pytest.raises(ValueError, match="leadership_focus"):
            BehaviorVector.from_list(values)

    def test_negative_value(self):
        values = [0.5] * 12
        values[0] = -0.1

        with pytest.raises(ValueError, match="resume_focus"):
            BehaviorVector.from_list(values)

    def test_zeros(self):
        vector = BehaviorVector.zeros()
        assert vector.to_list() == [0.0] * 12

    def test_focus_scores(self):
        vector = BehaviorVector.from_list([0.1, 0.2, 0.3, 0.4, 0.5] + [0.0] * 7)
        assert vector.focus_scores == (0.1, 0.2, 0.3, 0.4, 0.5)

    def test_to_dict(self):
        vector = BehaviorVector.zeros()
        data = vector.to_dict()

        assert list(data.keys()) == list(DIMENSION_NAMES)
        assert all(v == 0.0 for v in data.values())

    def test_frozen(self):
        """Test vectors are immutable."""
        vector = BehaviorVector.zeros()
        with pytest.raises(Exception):
            vector.code_focus = 0.5


# =============================================================================
# PersonaClassification Tests
# =============================================================================

class TestPersonaClassification:
    """Tests for PersonaClassification model."""

    def test_valid_classification(self):
        classification = PersonaClassification(
            persona=PersonaType.ENGINEER,
            confidence=0.8,
            mood=MoodType.FOCUSED,
        )
        assert classification.persona == PersonaType.ENGINEER
        assert classification.confidence == 0.8

    def test_confidence_out_of_range(self):
        """Test confidence outside 0-1 raises error."""
        with pytest.raises(ValueError, match="confidence"):
            PersonaClassification(
                persona=PersonaType.ENGINEER,
                confidence=1.2,
                mood=MoodType.FOCUSED,
            )

    def test_to_dict_uses_wire_values(self):
        classification = PersonaClassification(
            persona=PersonaType.CTO,
            confidence=0.75,
            mood=MoodType.PROFESSIONAL,
        )
        assert classification.to_dict() == {
            'persona': 'cto',
            'confidence': 0.75,
            'mood': 'professional',
        }

    def test_from_dict(self):
        classification = PersonaClassification.from_dict({
            'persona': 'gamer',
            'confidence': '0.6',
            'mood': 'playful',
        })
        assert classification.persona == PersonaType.GAMER
        assert classification.confidence == 0.6
        assert classification.mood == MoodType.PLAYFUL

    def test_from_dict_unknown_persona(self):
        with pytest.raises(ValueError):
            PersonaClassification.from_dict({
                'persona': 'astronaut',
                'confidence': 0.6,
                'mood': 'playful',
            })

    def test_default(self):
        """Test default classification is curious and exploratory."""
        classification = PersonaClassification.default(0.3)

        assert classification.persona == DEFAULT_PERSONA == PersonaType.CURIOUS
        assert classification.confidence == 0.3
        assert classification.mood == MoodType.EXPLORATORY

    def test_str_representation(self):
        classification = PersonaClassification.default(0.5)
        text = str(classification)

        assert "curious" in text
        assert "50.0%" in text


# =============================================================================
# AggregatedBehavior Tests
# =============================================================================

class TestAggregatedBehavior:
    """Tests for AggregatedBehavior model."""

    def test_defaults(self):
        behavior = AggregatedBehavior()

        assert behavior.time_on_homepage == 0.0
        assert behavior.clicked_resume is False
        assert behavior.navigation_path == []
        assert behavior.hovered_keywords == []

    def test_none_values_coerce_to_zero(self):
        """Nullable database columns arrive as None."""
        behavior = AggregatedBehavior(
            time_on_homepage=None,
            scroll_depth=None,
            clicked_resume=None,
            opened_code_samples_count=None,
            navigation_path=None,
            hovered_keywords=None,
            behavior_vector=None,
        )

        assert behavior.time_on_homepage == 0
        assert behavior.scroll_depth == 0
        assert behavior.clicked_resume is False
        assert behavior.opened_code_samples_count == 0
        assert behavior.navigation_path == []
        assert behavior.hovered_keywords == []
        assert behavior.behavior_vector == []

    def test_scroll_depth_is_a_fraction(self):
        with pytest.raises(ValidationError):
            AggregatedBehavior(scroll_depth=1.5)

    def test_negative_counter_rejected(self):
        with pytest.raises(ValidationError):
            AggregatedBehavior(played_demos_count=-1)

    def test_interaction_count(self):
        behavior = AggregatedBehavior(
            opened_code_samples_count=2,
            visited_projects_count=1,
            played_demos_count=1,
            clicked_resume=True,
            opened_ai_intake_form=True,
        )
        assert behavior.interaction_count == 6

    def test_click_targets(self):
        behavior = AggregatedBehavior(
            clicked_resume=True,
            opened_design_showcase=True,
            hovered_keywords=['typescript'],
        )
        assert behavior.click_targets == ['resume', 'design', 'typescript']


class TestVisitorSession:
    """Tests for VisitorSession model."""

    def test_new_session(self):
        session = VisitorSession(fingerprint_hash="abc")

        assert session.persona is None
        assert session.confidence is None
        assert session.device_type == 'desktop'
        assert session.created_at.tzinfo is not None

    def test_confidence_range(self):
        with pytest.raises(ValidationError):
            VisitorSession(fingerprint_hash="abc", confidence=2.0)


# =============================================================================
# BehaviorEvent Tests
# =============================================================================

class TestBehaviorEvent:
    """Tests for BehaviorEvent model."""

    def test_parse_event(self):
        event = BehaviorEvent.model_validate({
            'session_id': 'sess_1',
            'timestamp': 1700000000000,
            'type': 'click',
            'data': {'element': 'resume-download', 'section': 'hero'},
        })

        assert event.type == BehaviorEventType.CLICK
        assert event.data.element == 'resume-download'
        assert event.data.path is None

    def test_missing_session_id_defaults_to_empty(self):
        event = BehaviorEvent.model_validate({'timestamp': 0, 'type': 'idle'})

        assert event.session_id == ''
        assert event.data == BehaviorEventData()

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            BehaviorEvent.model_validate({
                'session_id': 'sess_1',
                'timestamp': 0,
                'type': 'teleport',
            })

    def test_scroll_depth_is_a_percentage(self):
        with pytest.raises(ValidationError):
            BehaviorEventData(max_depth=150)

    @pytest.mark.parametrize('field', ['duration', 'time_on_page', 'total_time', 'idle_duration'])
    def test_negative_duration_rejected(self, field):
        with pytest.raises(ValidationError, match=field):
            BehaviorEventData(**{field: -5000})

    def test_zero_duration_allowed(self):
        assert BehaviorEventData(time_on_page=0).time_on_page == 0

    def test_track_request_defaults(self):
        request = TrackRequest()

        assert request.events == []
        assert request.device_type == 'desktop'
