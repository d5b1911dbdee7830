"""Chat orchestration for the gardening assistant.

One chat turn is two sequential model calls: the answer itself, then a
best-effort request for follow-up questions. Only the first can fail the turn.
"""

import math

import structlog

from backend.agent.prompts import build_suggestions_prompt, compose
from backend.api.schemas import ChatOptions, ChatResult
from backend.core.errors import GatewayError, GenerationError, classify
from backend.core.llm_adapter import GeminiAdapter

logger = structlog.get_logger(__name__)

MAX_SUGGESTIONS = 3


def estimate_tokens(text: str) -> int:
    """Rough token estimate: ~4 chars per token, rounded up."""
    return math.ceil(len(text) / 4)


def parse_suggestions(raw: str | None) -> list[str]:
    """One suggestion per non-blank line, trimmed, at most MAX_SUGGESTIONS."""
    if not raw:
        return []
    lines = [line.strip() for line in raw.splitlines()]
    return [line for line in lines if line][:MAX_SUGGESTIONS]


class AssistantService:
    """Drives the Gemini calls for a chat turn."""

    def __init__(self, llm: GeminiAdapter, top_p: float = 0.9, top_k: int = 40):
        self.llm = llm
        self.top_p = top_p
        self.top_k = top_k

    def respond(self, message: str, options: ChatOptions | None = None) -> ChatResult:
        """Answer a user message.

        Args:
            message: Current user question.
            options: Language, prior turns and decoding parameters.

        Returns:
            ChatResult with the stripped answer, estimated token usage and
            up to three follow-up suggestions.

        Raises:
            GatewayError: Classified vendor failure, or GenerationError if the
                model returned no text.
        """
        options = options or ChatOptions()
        prompt = compose(message, options.context, options.language)

        try:
            text = self.llm.generate(
                prompt,
                temperature=options.temperature,
                top_p=self.top_p,
                top_k=self.top_k,
                max_output_tokens=options.max_tokens,
            )
        except GatewayError:
            raise
        except Exception as e:
            logger.error("assistant.generate_failed", error=str(e), error_type=type(e).__name__)
            raise classify(e, vendor="Gemini") from e

        if not text or not text.strip():
            logger.error("assistant.empty_response", language=options.language)
            raise GenerationError("No response generated from Gemini")

        tokens_used = estimate_tokens(prompt + text)
        suggestions = self.suggest(text, options.language)

        logger.info("assistant.responded", language=options.language,
                    tokens_used=tokens_used, suggestions=len(suggestions))
        return ChatResult(text=text.strip(), tokens_used=tokens_used, suggestions=suggestions)

    def suggest(self, answer: str, language: str = "en") -> list[str]:
        """Ask the model for follow-up questions. Never raises; [] on any failure."""
        try:
            raw = self.llm.generate(
                build_suggestions_prompt(answer, language),
                temperature=0.8,
                max_output_tokens=150,
            )
        except Exception as e:
            logger.warning("assistant.suggestions_failed", error=str(e))
            return []
        return parse_suggestions(raw)
