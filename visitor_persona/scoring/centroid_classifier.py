"""
Centroid classifier for scoring visitor personas.

Compares a behavior vector against the hand-authored persona centroids by
cosine similarity and converts the best similarity into a confidence score.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from visitor_persona.models.behavior_vector import BehaviorVector
from visitor_persona.models.persona import DEFAULT_PERSONA, PersonaType
from visitor_persona.utils.constants import PERSONA_CENTROIDS, SIMILARITY_FLOOR
from visitor_persona.utils.vector_math import clamp, cosine_similarity


@dataclass(frozen=True)
class CentroidMatch:
    """
    Result of a nearest-centroid classification.

    Attributes:
        persona: Persona whose centroid is most similar
        confidence: Similarity rescaled from [0.5, 1.0] onto [0, 1]
        similarity: Raw cosine similarity of the best match
        similarities: Cosine similarity for every persona
    """

    persona: PersonaType
    confidence: float
    similarity: float
    similarities: Dict[PersonaType, float] = field(default_factory=dict)

    def closest(self, count: int = 3) -> List[Tuple[PersonaType, float]]:
        """
        Get the closest personas ranked by similarity (highest first).

        Args:
            count: How many personas to return

        Returns:
            List of (persona, similarity) tuples sorted descending
        """
        ranked = sorted(self.similarities.items(), key=lambda x: x[1], reverse=True)
        return ranked[:count]

    def to_dict(self) -> Dict[str, float]:
        """Similarity per persona keyed by persona value."""
        return {persona.value: score for persona, score in self.similarities.items()}


class CentroidClassifier:
    """
    Nearest-centroid classifier over BehaviorVector space.

    Personas are scanned in centroid table order; the first persona with a
    strictly higher similarity wins, so ties keep the earlier persona and an
    all-zero vector stays on the default persona.

    Example usage:
        classifier = CentroidClassifier()
        match = classifier.classify(vector)
    """

    def __init__(
        self,
        centroids: Optional[Mapping[PersonaType, BehaviorVector]] = None,
    ) -> None:
        """
        Initialize classifier.

        Args:
            centroids: Reference vector per persona. Defaults to
                       PERSONA_CENTROIDS.
        """
        source = centroids if centroids is not None else PERSONA_CENTROIDS
        self._centroids = {
            persona: centroid.to_list() for persona, centroid in source.items()
        }

    def classify(self, vector: BehaviorVector) -> CentroidMatch:
        """
        Classify a behavior vector into the best-matching persona.

        Args:
            vector: Behavior vector to classify

        Returns:
            CentroidMatch with persona, confidence and all similarities
        """
        values = vector.to_list()
        similarities: Dict[PersonaType, float] = {}
        best_persona = DEFAULT_PERSONA
        best_similarity = 0.0

        for persona, centroid in self._centroids.items():
            similarity = cosine_similarity(values, centroid)
            similarities[persona] = similarity

            if similarity > best_similarity:
                best_similarity = similarity
                best_persona = persona

        return CentroidMatch(
            persona=best_persona,
            confidence=self.similarity_to_confidence(best_similarity),
            similarity=best_similarity,
            similarities=similarities,
        )

    @staticmethod
    def similarity_to_confidence(similarity: float) -> float:
        """
        Rescale a cosine similarity into a confidence score.

        Similarity at or below SIMILARITY_FLOOR (0.5) gives 0.0, similarity
        of 1.0 gives 1.0, linear in between.
        """
        return clamp((similarity - SIMILARITY_FLOOR) / (1.0 - SIMILARITY_FLOOR))


def classify_vector(vector: BehaviorVector) -> CentroidMatch:
    """
    Classify a vector using the default centroid table.

    Args:
        vector: Behavior vector

    Returns:
        CentroidMatch for the vector
    """
    classifier = CentroidClassifier()
    return classifier.classify(vector)


def closest_personas(
    vector: BehaviorVector,
    count: int = 3,
) -> List[Tuple[PersonaType, float]]:
    """Top-N personas by similarity to the vector."""
    return classify_vector(vector).closest(count)
