"""Contract tests for the Gemini adapter (mocked SDK client, no real API calls)."""

from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from backend.core.errors import ContentBlockedError
from backend.core.llm_adapter import GeminiAdapter


@pytest.fixture
def client(mocker):
    return mocker.MagicMock()


@pytest.fixture
def adapter(client):
    return GeminiAdapter(api_key="test-gemini-key", model="test-model", client=client)


def _response(text=None, block_reason=None, finish_reason=None):
    feedback = SimpleNamespace(block_reason=block_reason) if block_reason else None
    candidates = [SimpleNamespace(finish_reason=finish_reason)] if finish_reason else []
    return SimpleNamespace(text=text, prompt_feedback=feedback, candidates=candidates)


class TestGeminiAdapterInit:

    def test_loads_settings(self, adapter):
        assert adapter.api_key == "test-gemini-key"
        assert adapter.model_name == "test-model"
        assert adapter.is_healthy()

    def test_empty_key_unhealthy(self, client):
        assert not GeminiAdapter(api_key="", client=client).is_healthy()


class TestGenerate:

    def test_returns_text(self, adapter, client):
        client.models.generate_content.return_value = _response("Water deeply once a week.")
        assert adapter.generate("prompt") == "Water deeply once a week."

    def test_passes_generation_config(self, adapter, client):
        client.models.generate_content.return_value = _response("ok")
        adapter.generate("the prompt", temperature=0.3, max_output_tokens=512, top_p=0.9, top_k=40)

        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["contents"] == "the prompt"
        config = kwargs["config"]
        assert config.temperature == 0.3
        assert config.max_output_tokens == 512
        assert config.top_p == 0.9
        assert config.top_k == 40

    def test_empty_response_returns_empty_string(self, adapter, client):
        client.models.generate_content.return_value = _response(None)
        assert adapter.generate("prompt") == ""

    def test_blocked_prompt_raises(self, adapter, client):
        client.models.generate_content.return_value = _response(None, block_reason="SAFETY")
        with pytest.raises(ContentBlockedError) as exc:
            adapter.generate("prompt")
        assert exc.value.status_code == 400

    def test_safety_finish_reason_raises(self, adapter, client):
        reason = SimpleNamespace(name="SAFETY")
        client.models.generate_content.return_value = _response("", finish_reason=reason)
        with pytest.raises(ContentBlockedError):
            adapter.generate("prompt")

    def test_sdk_errors_propagate(self, adapter, client):
        client.models.generate_content.side_effect = genai_errors.ServerError(
            503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}}
        )
        with pytest.raises(genai_errors.ServerError):
            adapter.generate("prompt")
