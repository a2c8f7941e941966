"""Persona-driven content selection."""

from .content_selector import (
    ContentSelector,
    PersonaProfile,
    chat_system_prompt,
    persona_profile,
    section_order,
)

__all__ = [
    'ContentSelector',
    'PersonaProfile',
    'chat_system_prompt',
    'persona_profile',
    'section_order',
]
