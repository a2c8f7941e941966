"""
Behavior vectorizer for converting aggregated behavior into feature vectors.

Maps an AggregatedBehavior record onto the 12 normalized dimensions of a
BehaviorVector: five focus areas followed by seven engagement qualities.
"""

from typing import Dict, List, Optional

from visitor_persona.models.aggregated_behavior import AggregatedBehavior
from visitor_persona.models.behavior_vector import BehaviorVector
from visitor_persona.utils.constants import (
    ANIMATION_INTERACTION_SCORE,
    CODE_VIEWS_RANGE,
    COUNT_BONUS_WEIGHT,
    DEFAULT_INTENT_CLARITY,
    DEMO_PLAYS_RANGE,
    DIRECT_ACTION_BASE,
    ENGAGEMENT_ANIMATION_WEIGHT,
    ENGAGEMENT_SCROLL_WEIGHT,
    ENGAGEMENT_TIME_WEIGHT,
    FOCUS_KEYWORDS,
    HOVER_MATCH_WEIGHT,
    INTERACTIONS_PER_MINUTE_RANGE,
    PATH_MATCH_WEIGHT,
    SECONDS_PER_PAGE_RANGE,
    TIME_ON_HOMEPAGE_RANGE,
    UNIQUE_PATHS_RANGE,
)
from visitor_persona.utils.vector_math import clamp, normalize


class BehaviorVectorizer:
    """
    Calculator for behavior vectors from aggregated session behavior.

    Pure and deterministic: the same record always yields the same vector.

    Example usage:
        vectorizer = BehaviorVectorizer()
        vector = vectorizer.vectorize(behavior)
    """

    def __init__(self, keywords: Optional[Dict[str, List[str]]] = None) -> None:
        """
        Initialize vectorizer.

        Args:
            keywords: Focus-area keyword sets. Defaults to FOCUS_KEYWORDS.
        """
        self.keywords = keywords or FOCUS_KEYWORDS

    def vectorize(self, behavior: AggregatedBehavior) -> BehaviorVector:
        """
        Calculate the behavior vector for one session.

        Args:
            behavior: Aggregated behavior for the session

        Returns:
            BehaviorVector with every dimension in 0-1
        """
        nav_path = behavior.navigation_path
        hovered = behavior.hovered_keywords

        # Focus areas
        resume_focus = clamp(self._focus_score(
            nav_path, hovered, self.keywords['resume'], behavior.clicked_resume
        ))
        code_focus = clamp(
            self._focus_score(nav_path, hovered, self.keywords['code'], False)
            + normalize(behavior.opened_code_samples_count, *CODE_VIEWS_RANGE)
            * COUNT_BONUS_WEIGHT
        )
        design_focus = clamp(self._focus_score(
            nav_path, hovered, self.keywords['design'],
            behavior.opened_design_showcase,
        ))
        leadership_focus = clamp(self._focus_score(
            nav_path, hovered, self.keywords['leadership'], False
        ))
        game_focus = clamp(
            self._focus_score(nav_path, hovered, self.keywords['game'], False)
            + normalize(behavior.played_demos_count, *DEMO_PLAYS_RANGE)
            * COUNT_BONUS_WEIGHT
        )
        focus_scores = [
            resume_focus, code_focus, design_focus, leadership_focus, game_focus
        ]

        return BehaviorVector(
            resume_focus=resume_focus,
            code_focus=code_focus,
            design_focus=design_focus,
            leadership_focus=leadership_focus,
            game_focus=game_focus,
            exploration_breadth=self._exploration_breadth(nav_path),
            engagement_depth=self._engagement_depth(behavior),
            interaction_rate=self._interaction_rate(behavior),
            technical_interest=(code_focus + leadership_focus) / 2,
            visual_interest=(design_focus + game_focus) / 2,
            navigation_speed=self._navigation_speed(behavior),
            intent_clarity=self._intent_clarity(focus_scores),
        )

    def _focus_score(
        self,
        nav_path: List[str],
        hovered_keywords: List[str],
        target_keywords: List[str],
        direct_action: bool,
    ) -> float:
        """
        Raw (unclamped) interest in one focus area.

        Starts at DIRECT_ACTION_BASE when the characteristic action occurred,
        then adds a weight for every (entry, keyword) substring hit.
        """
        score = DIRECT_ACTION_BASE if direct_action else 0.0

        for path in nav_path:
            path_lower = path.lower()
            for keyword in target_keywords:
                if keyword in path_lower:
                    score += PATH_MATCH_WEIGHT

        for hovered in hovered_keywords:
            hovered_lower = hovered.lower()
            for keyword in target_keywords:
                if keyword in hovered_lower:
                    score += HOVER_MATCH_WEIGHT

        return score

    def _exploration_breadth(self, nav_path: List[str]) -> float:
        """Distinct pages visited, normalized."""
        return normalize(len(set(nav_path)), *UNIQUE_PATHS_RANGE)

    def _engagement_depth(self, behavior: AggregatedBehavior) -> float:
        """
        Blend of time on homepage, scroll depth and animation interaction.

        Formula: 0.4 * time + 0.4 * scroll + 0.2 * (0.3 if animated else 0)
        """
        time_score = normalize(behavior.time_on_homepage, *TIME_ON_HOMEPAGE_RANGE)
        animation_score = (
            ANIMATION_INTERACTION_SCORE if behavior.interacted_with_animations else 0.0
        )
        return clamp(
            ENGAGEMENT_TIME_WEIGHT * time_score
            + ENGAGEMENT_SCROLL_WEIGHT * behavior.scroll_depth
            + ENGAGEMENT_ANIMATION_WEIGHT * animation_score
        )

    def _interaction_rate(self, behavior: AggregatedBehavior) -> float:
        """Discrete interactions per minute, with a one-minute floor."""
        minutes = max(behavior.time_on_homepage / 60, 1.0)
        rate_per_minute = behavior.interaction_count / minutes
        return normalize(rate_per_minute, *INTERACTIONS_PER_MINUTE_RANGE)

    def _navigation_speed(self, behavior: AggregatedBehavior) -> float:
        """
        Inverse of average seconds per page.

        1.0 = scanning (5s or less per page), 0.0 = reading (60s or more).
        """
        pages = max(1, len(behavior.navigation_path))
        avg_time_per_page = behavior.time_on_homepage / pages
        return 1.0 - normalize(avg_time_per_page, *SECONDS_PER_PAGE_RANGE)

    def _intent_clarity(self, focus_scores: List[float]) -> float:
        """
        Share of total focus held by the dominant area.

        Falls back to DEFAULT_INTENT_CLARITY when there is no focus signal.
        """
        total = sum(focus_scores)
        if total == 0:
            return DEFAULT_INTENT_CLARITY
        return clamp(max(focus_scores) / total)


def vectorize(behavior: AggregatedBehavior) -> BehaviorVector:
    """
    Calculate the behavior vector for a session.

    Convenience function using default vectorizer.

    Args:
        behavior: Aggregated behavior

    Returns:
        BehaviorVector with all dimensions populated
    """
    vectorizer = BehaviorVectorizer()
    return vectorizer.vectorize(behavior)
