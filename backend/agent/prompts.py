"""Prompt templates for the Arco gardening assistant."""

from collections.abc import Iterable, Mapping
from typing import Any

DEFAULT_LANGUAGE = "en"

# Recent turns kept in the prompt; older ones are dropped silently
CONTEXT_WINDOW = 5

SYSTEM_PROMPT = """You are Arco, a knowledgeable and friendly virtual cultivation assistant.
Your role is to help users with gardening, plant care, and cultivation questions.

Key guidelines:
- Provide accurate, practical advice based on best gardening practices
- Consider the user's climate, season, and location when relevant
- Suggest organic and sustainable methods when possible
- Be encouraging and supportive, especially for beginners
- Keep responses concise but informative (2-3 paragraphs max)
- If you're unsure about something, acknowledge it and suggest consulting local experts
- Focus on plant health, growth optimization, and problem-solving
- Include specific actionable steps when giving advice"""

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
}

SUGGESTIONS_PROMPT_TEMPLATE = """Based on this gardening advice: "{excerpt}..."

Generate 3 short follow-up questions a user might ask (in {language}).
Format: Return only the questions, one per line, no numbering or bullets."""


def language_name(code: str | None) -> str:
    """English name for a language code, "English" when unknown."""
    return LANGUAGE_NAMES.get(code or DEFAULT_LANGUAGE, LANGUAGE_NAMES[DEFAULT_LANGUAGE])


def _field(message: Any, name: str) -> str:
    # Accepts pydantic models and plain dicts alike
    if isinstance(message, Mapping):
        return message.get(name) or ""
    return getattr(message, name, "") or ""


def build_conversation_history(context: Iterable[Any] | None) -> str:
    """Render the last CONTEXT_WINDOW turns as "User: ..." / "Assistant: ..." lines.

    Args:
        context: Chronological turns with `role` and `content`.

    Returns:
        Newline-joined transcript, or "" when there is no context.
    """
    if not context:
        return ""

    recent = list(context)[-CONTEXT_WINDOW:]
    lines = []
    for message in recent:
        role = "User" if _field(message, "role") == "user" else "Assistant"
        lines.append(f"{role}: {_field(message, 'content')}")
    return "\n".join(lines)


def compose(user_message: str, context: Iterable[Any] | None = None,
            language: str | None = DEFAULT_LANGUAGE) -> str:
    """Build the full prompt sent to the model for one chat turn.

    Args:
        user_message: The current question.
        context: Prior turns; only the most recent CONTEXT_WINDOW are used.
        language: Target response language code.

    Returns:
        Persona block, optional language directive, optional transcript,
        then the "User: ...\\nAssistant:" generation cue.
    """
    prompt = SYSTEM_PROMPT + "\n\n"

    if (language or DEFAULT_LANGUAGE) != DEFAULT_LANGUAGE:
        prompt += f"Please respond in {language_name(language)}.\n\n"

    history = build_conversation_history(context)
    if history:
        prompt += "Previous conversation:\n" + history + "\n\n"

    prompt += f"User: {user_message}\nAssistant:"
    return prompt


def build_suggestions_prompt(answer: str, language: str | None = DEFAULT_LANGUAGE) -> str:
    """Prompt asking for three follow-up questions about an answer."""
    return SUGGESTIONS_PROMPT_TEMPLATE.format(excerpt=answer[:200], language=language_name(language))
