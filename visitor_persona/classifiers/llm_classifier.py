"""
LLM persona classifier used to disambiguate low-confidence sessions.

Sends the session's behavior to an OpenAI-compatible chat completion
endpoint (OpenRouter or Groq) and parses a {persona, confidence, mood}
JSON object out of the reply.
"""

import asyncio
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from openai import AsyncOpenAI, OpenAIError

from visitor_persona.models.aggregated_behavior import AggregatedBehavior
from visitor_persona.models.persona import MoodType, PersonaType
from visitor_persona.utils.config import Settings
from visitor_persona.utils.constants import (
    GROQ_BASE_URL,
    LLM_MAX_TOKENS,
    LLM_TEMPERATURE,
    LLM_TIMEOUT_SECONDS,
    OPENROUTER_BASE_URL,
)
from visitor_persona.utils.prompts import (
    CLASSIFICATION_SYSTEM_PROMPT,
    classification_prompt,
)
from visitor_persona.utils.vector_math import clamp


logger = logging.getLogger(__name__)

_OBJECT_START = re.compile(r"\{")


class LLMClassificationError(Exception):
    """Raised when the LLM call fails or its reply cannot be used."""


@dataclass(frozen=True)
class LLMVerdict:
    """Persona, confidence and mood as answered by the LLM."""

    persona: PersonaType
    confidence: float
    mood: MoodType


class LLMPersonaClassifier:
    """
    Single-shot LLM classifier for visitor personas.

    There is no retry: one failed attempt raises LLMClassificationError and
    the caller falls back to the heuristic result.

    Example usage:
        llm = LLMPersonaClassifier(client, model="llama-3.3-70b-versatile")
        verdict = await llm.classify(behavior)
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        timeout: float = LLM_TIMEOUT_SECONDS,
    ) -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional['LLMPersonaClassifier']:
        """
        Build a classifier for the configured provider.

        OpenRouter is preferred for classification; Groq is used when only
        its key is set.

        Returns:
            Configured classifier, or None when no provider key is set
        """
        if settings.openrouter_api_key:
            client = AsyncOpenAI(
                api_key=settings.openrouter_api_key,
                base_url=OPENROUTER_BASE_URL,
                timeout=settings.llm_timeout_seconds,
                max_retries=0,
                default_headers={
                    'HTTP-Referer': settings.site_url,
                    'X-Title': 'Adaptive Developer Portfolio',
                },
            )
            model = settings.openrouter_model
            provider = 'openrouter'
        elif settings.groq_api_key:
            client = AsyncOpenAI(
                api_key=settings.groq_api_key,
                base_url=GROQ_BASE_URL,
                timeout=settings.llm_timeout_seconds,
                max_retries=0,
            )
            model = settings.groq_model
            provider = 'groq'
        else:
            logger.info("No LLM provider configured; disambiguation disabled")
            return None

        logger.info("LLM disambiguation via %s (model=%s)", provider, model)
        return cls(
            client,
            model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout=settings.llm_timeout_seconds,
        )

    async def classify(self, behavior: AggregatedBehavior) -> LLMVerdict:
        """
        Ask the LLM to classify a session.

        Args:
            behavior: Aggregated behavior for the session

        Returns:
            Parsed and validated LLMVerdict

        Raises:
            LLMClassificationError: On network error, timeout or an
                unusable reply
        """
        messages = [
            {'role': 'system', 'content': CLASSIFICATION_SYSTEM_PROMPT},
            {'role': 'user', 'content': classification_prompt(behavior)},
        ]

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise LLMClassificationError(
                f"LLM call timed out after {self.timeout}s"
            ) from e
        except (OpenAIError, httpx.HTTPError) as e:
            raise LLMClassificationError(f"LLM call failed: {e}") from e

        content = ''
        if response.choices:
            content = response.choices[0].message.content or ''
        return parse_verdict(content)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Find the first JSON object embedded in free text.

    Tries to decode at every '{' in order, so prose before or after the
    object (or a markdown fence around it) is tolerated.

    Returns:
        The first decodable object, or None
    """
    decoder = json.JSONDecoder()
    for match in _OBJECT_START.finditer(text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None


def parse_verdict(content: str) -> LLMVerdict:
    """
    Parse and validate an LLM classification reply.

    Args:
        content: Raw reply text

    Returns:
        LLMVerdict with confidence clamped into 0-1

    Raises:
        LLMClassificationError: If no object is found or a field is invalid
    """
    parsed = extract_json_object(content)
    if parsed is None:
        raise LLMClassificationError(f"No JSON object in LLM reply: {content!r}")

    try:
        persona = PersonaType(str(parsed['persona']).strip().lower())
        mood = MoodType(str(parsed['mood']).strip().lower())
        confidence = float(parsed['confidence'])
    except (KeyError, TypeError, ValueError) as e:
        raise LLMClassificationError(f"Malformed LLM classification: {parsed}") from e

    if math.isnan(confidence):
        raise LLMClassificationError(f"Malformed LLM confidence: {parsed}")

    return LLMVerdict(persona=persona, confidence=clamp(confidence), mood=mood)
