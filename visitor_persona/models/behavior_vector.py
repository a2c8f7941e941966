"""
BehaviorVector model - 12-dimensional encoding of a session's behavior.

Dimension order is the only contract between the vectorizer output and the
persona centroid table, so it is defined once here as dataclass field order
and every conversion to positional form goes through to_list()/from_list().
"""

from dataclasses import astuple, dataclass, fields
from typing import Dict, List, Sequence, Tuple


@dataclass(frozen=True)
class BehaviorVector:
    """
    Normalized behavior features for one visitor session.

    All fields are in the 0.0-1.0 range.

    Focus Areas:
        resume_focus: Resume and experience interactions
        code_focus: Code samples and GitHub
        design_focus: Design work and case studies
        leadership_focus: Architecture and methodology
        game_focus: Games, demos and interactive content

    Engagement Qualities:
        exploration_breadth: Variety of pages visited
        engagement_depth: Time spent and scroll depth
        interaction_rate: Discrete interactions per minute
        technical_interest: Mean of code and leadership focus
        visual_interest: Mean of design and game focus
        navigation_speed: Fast scanner (1) vs deep reader (0)
        intent_clarity: Single dominant focus (1) vs scattered
    """

    resume_focus: float
    code_focus: float
    design_focus: float
    leadership_focus: float
    game_focus: float
    exploration_breadth: float
    engagement_depth: float
    interaction_rate: float
    technical_interest: float
    visual_interest: float
    navigation_speed: float
    intent_clarity: float

    def __post_init__(self) -> None:
        """
        Validate dimensions after initialization.

        Raises:
            ValueError: If any dimension is outside 0-1 range
        """
        for field_obj in fields(self):
            value = getattr(self, field_obj.name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(
                    f"{field_obj.name} must be between 0 and 1, got: {value}"
                )

    @property
    def focus_scores(self) -> Tuple[float, float, float, float, float]:
        """The five focus-area dimensions in order."""
        return (
            self.resume_focus,
            self.code_focus,
            self.design_focus,
            self.leadership_focus,
            self.game_focus,
        )

    def to_list(self) -> List[float]:
        """Positional form, in DIMENSION_NAMES order."""
        return list(astuple(self))

    def to_dict(self) -> Dict[str, float]:
        """Named form, keyed by dimension name."""
        return dict(zip(DIMENSION_NAMES, self.to_list()))

    @classmethod
    def from_list(cls, values: Sequence[float]) -> 'BehaviorVector':
        """
        Create BehaviorVector from positional values.

        Args:
            values: Exactly 12 numbers in DIMENSION_NAMES order

        Returns:
            New BehaviorVector instance

        Raises:
            ValueError: If the sequence does not have 12 values
        """
        if len(values) != len(DIMENSION_NAMES):
            raise ValueError(
                f"Behavior vector needs {len(DIMENSION_NAMES)} values, "
                f"got: {len(values)}"
            )
        return cls(*(float(v) for v in values))

    @classmethod
    def zeros(cls) -> 'BehaviorVector':
        return cls.from_list([0.0] * len(DIMENSION_NAMES))


DIMENSION_NAMES: Tuple[str, ...] = tuple(f.name for f in fields(BehaviorVector))
