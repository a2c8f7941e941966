"""
Prompt templates for LLM persona classification and the chat assistant.
"""

import json
from typing import Dict, List

from visitor_persona.models.aggregated_behavior import AggregatedBehavior
from visitor_persona.models.persona import MoodType, PersonaType


CLASSIFICATION_SYSTEM_PROMPT = (
    "You are an expert at understanding website visitor intent based on "
    "their behavior patterns. You answer with a single JSON object and "
    "nothing else."
)

PERSONA_DEFINITIONS: Dict[PersonaType, str] = {
    PersonaType.RECRUITER: (
        "Focuses on resume, experience, skills. Quick scanning. "
        "Looks for contact info and role fit."
    ),
    PersonaType.ENGINEER: (
        "Deep dives into code, GitHub, technical projects. Long time on tech "
        "content. Interested in implementation."
    ),
    PersonaType.DESIGNER: (
        "Explores visual work, case studies. Interested in process, "
        "aesthetics, and UX decisions."
    ),
    PersonaType.CTO: (
        "Broad exploration, interested in architecture, leadership, "
        "methodology, and team/scale topics."
    ),
    PersonaType.GAMER: (
        "Interacts with game projects, demos, interactive elements. "
        "Playful exploration pattern."
    ),
    PersonaType.CURIOUS: (
        "Random pattern, no clear focus. General browsing without specific "
        "intent."
    ),
}


def classification_prompt(behavior: AggregatedBehavior) -> str:
    """
    Build the user prompt describing a session's behavior.

    Args:
        behavior: Aggregated behavior for the session

    Returns:
        Prompt with behavior data, persona definitions and the answer format
    """
    pages = behavior.navigation_path
    time_data = {'homepage': behavior.time_on_homepage}
    scroll_data = {'homepage': round(behavior.scroll_depth * 100, 1)}

    definitions = "\n".join(
        f"{i}. **{persona.value}**: {PERSONA_DEFINITIONS[persona]}"
        for i, persona in enumerate(PersonaType, start=1)
    )

    return f"""## Behavior Data:
- Pages visited: {', '.join(pages)}
- Time spent (seconds): {json.dumps(time_data)}
- Scroll depths (%): {json.dumps(scroll_data)}
- Elements clicked: {', '.join(behavior.click_targets)}
- Navigation sequence: {' → '.join(pages)}

## Persona Definitions:
{definitions}

## Task:
Analyze the behavior and classify into exactly ONE persona. Consider:
- Dominant content areas they focused on
- Time investment patterns (quick scan vs deep read)
- Navigation intentionality (focused vs wandering)
- Click targets (what they actively engaged with)

Respond with ONLY valid JSON (no markdown, no explanation):
{{"persona": "engineer", "confidence": 0.85, "mood": "focused"}}

Valid personas: {', '.join(p.value for p in PersonaType)}
Valid moods: {', '.join(m.value for m in MoodType)}"""


_CHAT_BASE_PROMPT = """You are an AI assistant for a developer's portfolio website. You help visitors learn about the developer's work, skills, and experience. Be helpful, concise, and professional. Do not use placeholder text like [Developer's Name] or [Client]; speak naturally.

The visitor has navigated through: {history}
"""

_CHAT_PERSONA_GUIDANCE: Dict[PersonaType, str] = {
    PersonaType.RECRUITER: """This visitor appears to be a recruiter or talent acquisition professional. Adjust your responses to:
- Provide clear, business-value focused summaries
- Highlight achievements with measurable impact
- Be concise and scannable
- Emphasize availability, team fit, and soft skills when relevant""",
    PersonaType.ENGINEER: """This visitor appears to be a software engineer or developer. Adjust your responses to:
- Be technically detailed and precise
- Include architecture decisions and implementation details
- Reference specific technologies, frameworks, and tools
- Discuss trade-offs and be peer-to-peer in tone""",
    PersonaType.DESIGNER: """This visitor appears to be a designer (UX/UI or visual). Adjust your responses to:
- Emphasize design thinking and process
- Discuss user experience decisions
- Reference visual systems, accessibility, and aesthetics
- Be creative and expressive in tone""",
    PersonaType.CTO: """This visitor appears to be a CTO, engineering manager, or technical leader. Adjust your responses to:
- Focus on systems thinking and architecture
- Discuss scalability, team dynamics, and methodology
- Highlight leadership and mentorship experience
- Address business impact and strategic decisions""",
    PersonaType.GAMER: """This visitor appears to be a gaming enthusiast or game developer. Adjust your responses to:
- Be more casual and playful
- Reference gaming concepts when relevant
- Highlight interactive projects and game dev experience
- Include fun details""",
    PersonaType.CURIOUS: """This visitor is exploring generally without a specific focus. Adjust your responses to:
- Be welcoming and guide exploration
- Provide balanced overviews
- Ask clarifying questions to understand interests
- Suggest relevant sections to explore""",
}


def chat_system_prompt(persona: PersonaType, navigation_history: List[str]) -> str:
    """
    Persona-specific system prompt for the chat assistant.

    Args:
        persona: Classified persona of the visitor
        navigation_history: Pages the visitor has seen, in order

    Returns:
        System prompt text
    """
    history = ' → '.join(navigation_history) if navigation_history else 'just arrived'
    return _CHAT_BASE_PROMPT.format(history=history) + "\n" + _CHAT_PERSONA_GUIDANCE[persona]
