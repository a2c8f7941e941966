"""
Content selector for persona-driven page personalization.

Maps a classified persona to the page section order, its display profile
and the chat assistant's system prompt.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from visitor_persona.models.persona import PersonaClassification, PersonaType
from visitor_persona.utils.constants import SECTION_ORDERS
from visitor_persona.utils.prompts import chat_system_prompt as _chat_system_prompt


@dataclass(frozen=True)
class PersonaProfile:
    """
    Display configuration for a persona.

    Attributes:
        persona: Persona this profile describes
        name: Human-readable persona name
        description: One-line description of the visitor type
        primary_color: Accent color family for the page theme
        tone: Voice used for copy and chat ("formal", "technical", ...)
        priorities: Content areas to put first
    """

    persona: PersonaType
    name: str
    description: str
    primary_color: str
    tone: str
    priorities: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.persona.value,
            'name': self.name,
            'description': self.description,
            'primary_color': self.primary_color,
            'tone': self.tone,
            'priorities': list(self.priorities),
        }


PERSONA_PROFILES: Mapping[PersonaType, PersonaProfile] = {
    PersonaType.RECRUITER: PersonaProfile(
        persona=PersonaType.RECRUITER,
        name='Recruiter',
        description='Talent acquisition professional',
        primary_color='blue',
        tone='formal',
        priorities=('resume', 'experience', 'skills', 'contact'),
    ),
    PersonaType.ENGINEER: PersonaProfile(
        persona=PersonaType.ENGINEER,
        name='Engineer',
        description='Software developer or technical professional',
        primary_color='green',
        tone='technical',
        priorities=('projects', 'code', 'skills', 'github'),
    ),
    PersonaType.DESIGNER: PersonaProfile(
        persona=PersonaType.DESIGNER,
        name='Designer',
        description='UX/UI or visual designer',
        primary_color='purple',
        tone='creative',
        priorities=('portfolio', 'case-studies', 'process', 'aesthetics'),
    ),
    PersonaType.CTO: PersonaProfile(
        persona=PersonaType.CTO,
        name='CTO / Manager',
        description='Technical leader or engineering manager',
        primary_color='amber',
        tone='strategic',
        priorities=('architecture', 'leadership', 'methodology', 'scale'),
    ),
    PersonaType.GAMER: PersonaProfile(
        persona=PersonaType.GAMER,
        name='Gamer',
        description='Gaming enthusiast or game developer',
        primary_color='red',
        tone='playful',
        priorities=('games', 'demos', 'interactive', 'fun'),
    ),
    PersonaType.CURIOUS: PersonaProfile(
        persona=PersonaType.CURIOUS,
        name='Curious Visitor',
        description='General explorer',
        primary_color='slate',
        tone='friendly',
        priorities=('overview', 'highlights', 'about', 'explore'),
    ),
}


class ContentSelector:
    """
    Selector for persona-specific page content.

    Example usage:
        selector = ContentSelector()
        content = selector.select(classification, navigation_history=["/"])
    """

    def section_order(self, persona: PersonaType) -> List[str]:
        """Section ids in display order for a persona."""
        return list(SECTION_ORDERS[persona])

    def persona_profile(self, persona: PersonaType) -> PersonaProfile:
        return PERSONA_PROFILES[persona]

    def chat_system_prompt(
        self,
        persona: PersonaType,
        navigation_history: Optional[List[str]] = None,
    ) -> str:
        return _chat_system_prompt(persona, navigation_history or [])

    def select(
        self,
        classification: PersonaClassification,
        navigation_history: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Build the personalized content payload for a classification.

        Args:
            classification: Persona classification for the visitor
            navigation_history: Pages visited so far, used in the chat prompt

        Returns:
            Dict with persona, mood, section order, profile and chat prompt
        """
        persona = classification.persona
        return {
            'persona': persona.value,
            'mood': classification.mood.value,
            'sections': self.section_order(persona),
            'profile': self.persona_profile(persona).to_dict(),
            'chat_system_prompt': self.chat_system_prompt(persona, navigation_history),
        }


_default_selector = ContentSelector()


def section_order(persona: PersonaType) -> List[str]:
    """
    Section order for a persona using the default selector.

    Args:
        persona: Persona to order sections for

    Returns:
        Section ids, hero first and contact last
    """
    return _default_selector.section_order(persona)


def persona_profile(persona: PersonaType) -> PersonaProfile:
    """Display profile for a persona."""
    return _default_selector.persona_profile(persona)


def chat_system_prompt(
    persona: PersonaType,
    navigation_history: Optional[List[str]] = None,
) -> str:
    """Chat assistant system prompt tailored to a persona."""
    return _default_selector.chat_system_prompt(persona, navigation_history)
