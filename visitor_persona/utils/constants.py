"""
Constants for the visitor persona engine.

This module contains all magic numbers, keyword sets, thresholds and the
persona centroid table used throughout the application. Centralizing these
makes the classifier easier to tune.
"""

from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from visitor_persona.models.behavior_vector import BehaviorVector
from visitor_persona.models.persona import MoodType, PersonaType


# =============================================================================
# NORMALIZATION RANGES
# =============================================================================

# (min, max) ranges fed to normalize()
TIME_ON_HOMEPAGE_RANGE: Tuple[float, float] = (0.0, 300.0)   # 0-5 minutes
CODE_VIEWS_RANGE: Tuple[float, float] = (0.0, 10.0)
DEMO_PLAYS_RANGE: Tuple[float, float] = (0.0, 5.0)
UNIQUE_PATHS_RANGE: Tuple[float, float] = (0.0, 10.0)
INTERACTIONS_PER_MINUTE_RANGE: Tuple[float, float] = (0.0, 5.0)
SECONDS_PER_PAGE_RANGE: Tuple[float, float] = (5.0, 60.0)


# =============================================================================
# FOCUS SCORING
# =============================================================================

DIRECT_ACTION_BASE = 0.5      # Baseline when the characteristic action occurred
PATH_MATCH_WEIGHT = 0.15      # Per keyword hit in the navigation path
HOVER_MATCH_WEIGHT = 0.10     # Per keyword hit in the hovered keywords
COUNT_BONUS_WEIGHT = 0.5      # Weight of normalized code views / demo plays

# Engagement depth blend
ENGAGEMENT_TIME_WEIGHT = 0.4
ENGAGEMENT_SCROLL_WEIGHT = 0.4
ENGAGEMENT_ANIMATION_WEIGHT = 0.2
ANIMATION_INTERACTION_SCORE = 0.3

# Intent clarity when no focus signal exists at all
DEFAULT_INTENT_CLARITY = 0.3

# Keywords matched (substring, case-insensitive) against paths and hovers
FOCUS_KEYWORDS: Dict[str, List[str]] = {
    'resume': ['resume', 'cv', 'experience', 'work', 'employment', 'career', 'hire'],
    'code': ['code', 'github', 'repository', 'source', 'implementation', 'technical'],
    'design': ['design', 'ui', 'ux', 'visual', 'portfolio', 'case-study', 'mockup'],
    'leadership': ['architecture', 'system', 'team', 'lead', 'manager', 'scale', 'methodology'],
    'game': ['game', 'demo', 'play', 'interactive', 'engine', 'unity', 'unreal'],
}


# =============================================================================
# CLASSIFICATION THRESHOLDS
# =============================================================================

# Cosine similarity at or below this maps to zero confidence
SIMILARITY_FLOOR = 0.5

# Stored classifications above this are returned without recomputation
CACHE_CONFIDENCE_THRESHOLD = 0.7

# Heuristic results below this are sent to the LLM for disambiguation
DISAMBIGUATION_THRESHOLD = 0.6

# Confidence reported for default classifications
NO_STORE_CONFIDENCE = 0.5
LOW_DATA_CONFIDENCE = 0.3

DEFAULT_MOOD = MoodType.EXPLORATORY
CACHED_MOOD_FALLBACK = MoodType.FOCUSED


# =============================================================================
# MOOD DETECTION
# =============================================================================

MOOD_FAST_NAVIGATION = 0.7    # navigation speed above this = scanning
MOOD_SHALLOW_SCROLL = 0.3
MOOD_IDLE_SECONDS = 60.0
MOOD_DEEP_SCROLL = 0.8
MOOD_SLOW_NAVIGATION = 0.4


# =============================================================================
# LLM DISAMBIGUATION
# =============================================================================

LLM_TEMPERATURE = 0.3
LLM_MAX_TOKENS = 256
LLM_TIMEOUT_SECONDS = 10.0

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

GROQ_CLASSIFICATION_MODEL = "llama-3.3-70b-versatile"
OPENROUTER_CLASSIFICATION_MODEL = "deepseek/deepseek-r1:free"


# =============================================================================
# EVENT CAPTURE
# =============================================================================

IDLE_AFTER_MS = 30_000        # 30 seconds of inactivity = idle
TRACKER_FLUSH_SIZE = 20
TRACKER_TIMEOUT_SECONDS = 5.0
HOMEPAGE_PATH = "/"
INTAKE_PATH = "/intake"

# Most recent hovered keywords kept per session
MAX_HOVERED_KEYWORDS = 100


# =============================================================================
# DATA RETENTION
# =============================================================================

LOG_RETENTION_DAYS = 7        # Raw behavior_logs rows
BEHAVIOR_RETENTION_DAYS = 30  # aggregated_behaviors rows, by updated_at


# =============================================================================
# PERSONA CENTROIDS
# =============================================================================
# Hand-tuned reference vectors. Iteration order is PersonaType order, which
# is also the tie-break order during classification.

PERSONA_CENTROIDS: Mapping[PersonaType, BehaviorVector] = MappingProxyType({
    # Quick scanning, hiring intent
    PersonaType.RECRUITER: BehaviorVector(
        resume_focus=0.9,
        code_focus=0.2,
        design_focus=0.2,
        leadership_focus=0.3,
        game_focus=0.1,
        exploration_breadth=0.4,
        engagement_depth=0.4,
        interaction_rate=0.6,
        technical_interest=0.3,
        visual_interest=0.3,
        navigation_speed=0.7,
        intent_clarity=0.8,
    ),
    # Deep reading of code and technical content
    PersonaType.ENGINEER: BehaviorVector(
        resume_focus=0.2,
        code_focus=0.9,
        design_focus=0.3,
        leadership_focus=0.5,
        game_focus=0.4,
        exploration_breadth=0.6,
        engagement_depth=0.8,
        interaction_rate=0.7,
        technical_interest=0.9,
        visual_interest=0.3,
        navigation_speed=0.4,
        intent_clarity=0.7,
    ),
    # Visual work and case studies
    PersonaType.DESIGNER: BehaviorVector(
        resume_focus=0.2,
        code_focus=0.3,
        design_focus=0.9,
        leadership_focus=0.3,
        game_focus=0.4,
        exploration_breadth=0.6,
        engagement_depth=0.7,
        interaction_rate=0.6,
        technical_interest=0.3,
        visual_interest=0.9,
        navigation_speed=0.5,
        intent_clarity=0.7,
    ),
    # Broad exploration, architecture and leadership
    PersonaType.CTO: BehaviorVector(
        resume_focus=0.5,
        code_focus=0.6,
        design_focus=0.4,
        leadership_focus=0.9,
        game_focus=0.2,
        exploration_breadth=0.8,
        engagement_depth=0.7,
        interaction_rate=0.6,
        technical_interest=0.7,
        visual_interest=0.5,
        navigation_speed=0.5,
        intent_clarity=0.8,
    ),
    # Demos and interactive elements
    PersonaType.GAMER: BehaviorVector(
        resume_focus=0.1,
        code_focus=0.4,
        design_focus=0.3,
        leadership_focus=0.1,
        game_focus=0.9,
        exploration_breadth=0.7,
        engagement_depth=0.6,
        interaction_rate=0.9,
        technical_interest=0.5,
        visual_interest=0.6,
        navigation_speed=0.6,
        intent_clarity=0.5,
    ),
    # Balanced, wandering
    PersonaType.CURIOUS: BehaviorVector(
        resume_focus=0.4,
        code_focus=0.4,
        design_focus=0.4,
        leadership_focus=0.3,
        game_focus=0.3,
        exploration_breadth=0.5,
        engagement_depth=0.4,
        interaction_rate=0.4,
        technical_interest=0.4,
        visual_interest=0.4,
        navigation_speed=0.5,
        intent_clarity=0.3,
    ),
})


# =============================================================================
# PERSONALIZATION
# =============================================================================

SECTION_ORDERS: Mapping[PersonaType, Tuple[str, ...]] = MappingProxyType({
    PersonaType.RECRUITER: ("hero", "about", "certificates", "skills", "projects", "contact"),
    PersonaType.ENGINEER: ("hero", "projects", "skills", "architecture", "about", "certificates", "contact"),
    PersonaType.DESIGNER: ("hero", "projects", "case-studies", "about", "skills", "certificates", "contact"),
    PersonaType.CTO: ("hero", "about", "architecture", "certificates", "projects", "skills", "contact"),
    PersonaType.GAMER: ("hero", "projects", "skills", "about", "certificates", "contact"),
    PersonaType.CURIOUS: ("hero", "about", "projects", "skills", "certificates", "contact"),
})
