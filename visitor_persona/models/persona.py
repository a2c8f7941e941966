"""
Persona model - Visitor persona classification result.

Defines the closed persona and mood enumerations shared by the classifier,
the prompts and the personalization layer, plus the classification record
written back onto a visitor session.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class PersonaType(str, Enum):
    """Closed set of visitor-intent categories."""

    RECRUITER = "recruiter"
    ENGINEER = "engineer"
    DESIGNER = "designer"
    CTO = "cto"
    GAMER = "gamer"
    CURIOUS = "curious"


class MoodType(str, Enum):
    """Persona-independent descriptor of browsing style."""

    PROFESSIONAL = "professional"
    CASUAL = "casual"
    EXPLORATORY = "exploratory"
    FOCUSED = "focused"
    PLAYFUL = "playful"


class ClassificationSource(str, Enum):
    """Which path of the classification state machine produced a result."""

    DEFAULT = "default"
    NEW_VISITOR = "new-visitor"
    INSUFFICIENT_DATA = "insufficient-data"
    CACHED = "cached"
    VECTOR = "vector"
    HYBRID = "hybrid"
    FALLBACK = "fallback"


# Persona used for new visitors and whenever no strong signal exists
DEFAULT_PERSONA = PersonaType.CURIOUS


@dataclass(frozen=True)
class PersonaClassification:
    """
    Classified persona for a visitor session.

    Attributes:
        persona: Best-matching persona
        confidence: How strongly the classification should be trusted (0-1)
        mood: Browsing style, derived independently of persona
    """

    persona: PersonaType
    confidence: float
    mood: MoodType

    def __post_init__(self) -> None:
        """
        Validate the classification after initialization.

        Raises:
            ValueError: If confidence is outside the 0-1 range
        """
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be between 0 and 1, got: {self.confidence}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dictionary."""
        return {
            'persona': self.persona.value,
            'confidence': self.confidence,
            'mood': self.mood.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PersonaClassification':
        """
        Create PersonaClassification from dictionary.

        Args:
            data: Dictionary with persona, confidence and mood

        Returns:
            New PersonaClassification instance

        Raises:
            ValueError: If persona or mood is not a known value
        """
        return cls(
            persona=PersonaType(data['persona']),
            confidence=float(data['confidence']),
            mood=MoodType(data['mood']),
        )

    @classmethod
    def default(
        cls,
        confidence: float,
        mood: MoodType = MoodType.EXPLORATORY,
    ) -> 'PersonaClassification':
        """Default classification for visitors without usable signal."""
        return cls(persona=DEFAULT_PERSONA, confidence=confidence, mood=mood)

    def __str__(self) -> str:
        """Human-readable string representation."""
        return (
            f"PersonaClassification("
            f"persona={self.persona.value}, "
            f"confidence={self.confidence:.1%}, "
            f"mood={self.mood.value})"
        )
