"""Gemini adapter.

Thin wrapper over the google-genai SDK: one text-in/text-out call with an
explicit generation config. Errors from the SDK propagate unchanged so the
caller can classify them; only safety blocks are translated here because
the SDK reports them as an empty response rather than an exception.
"""

import structlog
from google import genai
from google.genai import types

from backend.core.errors import ContentBlockedError

logger = structlog.get_logger(__name__)


def _block_reason(response) -> str | None:
    """Name of the safety block on a response, if any."""
    feedback = getattr(response, "prompt_feedback", None)
    if feedback is not None and getattr(feedback, "block_reason", None):
        return str(feedback.block_reason)

    for candidate in getattr(response, "candidates", None) or []:
        reason = getattr(candidate, "finish_reason", None)
        name = getattr(reason, "name", None) or str(reason or "")
        if "SAFETY" in name or "PROHIBITED" in name:
            return name
    return None


class GeminiAdapter:
    """Wraps a google-genai client bound to one model."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash",
                 timeout: float = 30.0, client: genai.Client | None = None):
        self.api_key = api_key
        self.model_name = model
        self.timeout = timeout
        self.client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def is_healthy(self) -> bool:
        """True when an API key is configured."""
        return bool(self.api_key)

    def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        top_p: float | None = None,
        top_k: int | None = None,
    ) -> str:
        """Run a single generation call.

        Args:
            prompt: Full prompt text.
            temperature: Sampling temperature.
            max_output_tokens: Output-token cap.
            top_p: Nucleus sampling mass, or None for the model default.
            top_k: Top-k sampling size, or None for the model default.

        Returns:
            Generated text, "" if the model produced nothing.

        Raises:
            ContentBlockedError: If the prompt or answer was blocked for safety.
            google.genai.errors.APIError, httpx.HTTPError: Vendor failures, unclassified.
        """
        config = types.GenerateContentConfig(
            temperature=temperature,
            top_p=top_p,
            top_k=top_k,
            max_output_tokens=max_output_tokens,
        )
        logger.debug("llm.invoke", model=self.model_name, prompt_len=len(prompt))

        response = self.client.models.generate_content(
            model=self.model_name,
            contents=prompt,
            config=config,
        )

        text = response.text or ""
        if not text.strip():
            reason = _block_reason(response)
            if reason:
                logger.warning("llm.blocked", reason=reason)
                raise ContentBlockedError(detail=f"SAFETY: {reason}")

        logger.debug("llm.ok", model=self.model_name, response_len=len(text))
        return text
