"""Contract tests for the Plant.id client (httpx mock transport, no network)."""

import json

import httpx
import pytest

from backend.api.schemas import DiagnosisOptions
from backend.core.errors import (
    AuthError,
    BadRequestError,
    GatewayTimeoutError,
    RateLimitError,
    UpstreamContractError,
    UpstreamError,
)
from backend.core.plant_id import PlantIdClient

API_URL = "https://plant.test/v3/identification"


@pytest.fixture
def captured():
    return []


def _client(handler, captured) -> PlantIdClient:
    def recording(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return handler(request)

    http = httpx.Client(transport=httpx.MockTransport(recording))
    return PlantIdClient(api_key="test-plant-key", api_url=API_URL, http_client=http)


class TestIdentify:

    def test_success(self, plant_id_body, captured):
        client = _client(lambda r: httpx.Response(200, json=plant_id_body), captured)
        result = client.identify(b"jpeg-bytes", DiagnosisOptions(latitude=49.2, longitude=16.6))

        assert result.is_plant is True
        assert result.suggestions[0].name == "Monstera deliciosa"

        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == API_URL
        assert request.headers["Api-Key"] == "test-plant-key"
        body = json.loads(request.content)
        assert body["images"][0].startswith("data:image/jpeg;base64,")
        assert body["health"] == "all"
        assert body["latitude"] == 49.2
        assert body["longitude"] == 16.6

    def test_default_options(self, plant_id_body, captured):
        client = _client(lambda r: httpx.Response(200, json=plant_id_body), captured)
        client.identify(b"jpeg-bytes")
        body = json.loads(captured[0].content)
        assert body["plant_details"] == ["common_names", "url"]
        assert "latitude" not in body

    @pytest.mark.parametrize("status, error_cls", [
        (401, AuthError),
        (429, RateLimitError),
        (400, BadRequestError),
        (503, UpstreamError),
    ])
    def test_http_errors_classified(self, status, error_cls, captured):
        client = _client(
            lambda r: httpx.Response(status, json={"error": {"message": "vendor says no"}}), captured
        )
        with pytest.raises(error_cls) as exc:
            client.identify(b"x")
        assert exc.value.status_code == status

    def test_timeout(self, captured):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(GatewayTimeoutError) as exc:
            _client(handler, captured).identify(b"x")
        assert exc.value.status_code == 504

    def test_missing_result_is_contract_error(self, captured):
        client = _client(lambda r: httpx.Response(200, json={"status": "COMPLETED"}), captured)
        with pytest.raises(UpstreamContractError) as exc:
            client.identify(b"x")
        assert exc.value.status_code == 500

    def test_non_json_body_is_contract_error(self, captured):
        client = _client(lambda r: httpx.Response(200, text="<html>oops</html>"), captured)
        with pytest.raises(UpstreamContractError):
            client.identify(b"x")

    def test_mistyped_result_is_contract_error(self, plant_id_body, captured):
        plant_id_body["result"]["is_plant"]["probability"] = "very likely"
        client = _client(lambda r: httpx.Response(200, json=plant_id_body), captured)
        with pytest.raises(UpstreamContractError) as exc:
            client.identify(b"x")
        assert exc.value.status_code == 500


class TestModifiers:

    def test_passes_body_through(self, captured):
        modifiers = {"modifiers": ["crops_fast", "similar_images"], "extra": {"nested": [1, 2]}}
        client = _client(lambda r: httpx.Response(200, json=modifiers), captured)

        assert client.list_modifiers() == modifiers
        request = captured[0]
        assert request.method == "GET"
        assert str(request.url) == f"{API_URL}/modifiers"
        assert request.headers["Api-Key"] == "test-plant-key"

    def test_vendor_failure_classified(self, captured):
        client = _client(lambda r: httpx.Response(500, json={"error": {"message": "down"}}), captured)
        with pytest.raises(UpstreamError) as exc:
            client.list_modifiers()
        assert exc.value.status_code == 500

    def test_bad_key(self, captured):
        client = _client(lambda r: httpx.Response(401, text="unauthorized"), captured)
        with pytest.raises(AuthError):
            client.list_modifiers()


def test_health_reflects_key():
    assert PlantIdClient(api_key="k", http_client=httpx.Client()).is_healthy()
    assert not PlantIdClient(api_key="", http_client=httpx.Client()).is_healthy()
