"""Plant.id identification client.

Builds the identification request, submits it over httpx and reshapes the
vendor result into DiagnosisResult. Absent vendor fields come back as None
or empty lists so the response shape never changes.
"""

import base64
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from backend.api.schemas import (
    DiagnosisOptions,
    DiagnosisResult,
    DiseaseDetails,
    DiseaseSuggestion,
    HealthAssessment,
    PlantDetails,
    PlantSuggestion,
    SimilarImage,
)
from backend.core.errors import GatewayError, UpstreamContractError, classify
from backend.core.image_processor import NormalizedImage

logger = structlog.get_logger(__name__)

MAX_PLANT_SUGGESTIONS = 5
MAX_DISEASE_SUGGESTIONS = 3

VENDOR = "Plant.id"


def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _value(field: Any) -> Any:
    """Unwrap the vendor's {"value": ...} envelope used for text/image details."""
    if isinstance(field, dict):
        return field.get("value")
    return field


def _similar_images(raw: Any) -> list[SimilarImage]:
    return [
        SimilarImage(id=img.get("id"), url=img.get("url"), similarity=img.get("similarity"))
        for img in _list(raw)
        if isinstance(img, dict)
    ]


def _plant_suggestion(raw: dict) -> PlantSuggestion:
    details = _dict(raw.get("details"))
    return PlantSuggestion(
        id=raw.get("id"),
        name=raw.get("name"),
        plant_details=PlantDetails(
            scientific_name=details.get("scientific_name") or raw.get("name"),
            common_names=_list(details.get("common_names")),
            url=details.get("url"),
            description=_value(details.get("description")),
            synonyms=_list(details.get("synonyms")),
            image=_value(details.get("image")),
        ),
        probability=raw.get("probability"),
        confirmed=bool(raw.get("confirmed", False)),
        similar_images=_similar_images(raw.get("similar_images")),
    )


def _disease_suggestion(raw: dict) -> DiseaseSuggestion:
    details = _dict(raw.get("disease_details"))
    return DiseaseSuggestion(
        id=raw.get("id"),
        name=raw.get("name"),
        probability=raw.get("probability"),
        disease_details=DiseaseDetails(
            description=details.get("description"),
            treatment=details.get("treatment"),
            cause=details.get("cause"),
            url=details.get("url"),
        ),
        similar_images=_similar_images(raw.get("similar_images")),
    )


def normalize_identification(result: dict) -> DiagnosisResult:
    """Reshape the vendor's `result` object into a DiagnosisResult.

    Args:
        result: The `result` member of a Plant.id identification response.

    Returns:
        DiagnosisResult with at most 5 plant and 3 disease suggestions,
        in vendor order.

    Raises:
        UpstreamContractError: If `result.is_plant` is missing or a vendor field
            has the wrong type.
    """
    is_plant = result.get("is_plant")
    if not isinstance(is_plant, dict) or "binary" not in is_plant:
        raise UpstreamContractError(f"Invalid response from {VENDOR} API",
                                    detail="result.is_plant missing")

    classification = _dict(result.get("classification"))
    try:
        suggestions = [
            _plant_suggestion(s)
            for s in _list(classification.get("suggestions"))[:MAX_PLANT_SUGGESTIONS]
            if isinstance(s, dict)
        ]

        health_assessment = None
        raw_health = result.get("health_assessment")
        if isinstance(raw_health, dict):
            is_healthy = _dict(raw_health.get("is_healthy"))
            health_assessment = HealthAssessment(
                is_healthy=is_healthy.get("binary"),
                is_healthy_probability=is_healthy.get("probability"),
                diseases=[
                    _disease_suggestion(d)
                    for d in _list(raw_health.get("diseases"))[:MAX_DISEASE_SUGGESTIONS]
                    if isinstance(d, dict)
                ],
            )

        return DiagnosisResult(
            is_plant=bool(is_plant.get("binary")),
            is_plant_probability=is_plant.get("probability"),
            suggestions=suggestions,
            health_assessment=health_assessment,
            version=classification.get("version"),
            custom_id=result.get("custom_id"),
        )
    except ValidationError as e:
        raise UpstreamContractError(f"Invalid response from {VENDOR} API", detail=str(e)) from e


def build_payload(image: NormalizedImage | bytes, options: DiagnosisOptions) -> dict:
    """Identification request body: base64 data URL plus options."""
    data = image.data if isinstance(image, NormalizedImage) else image
    encoded = base64.b64encode(data).decode("ascii")

    payload = {
        "images": [f"data:image/jpeg;base64,{encoded}"],
        "plant_details": list(options.plant_details),
        "plant_language": options.plant_language,
        "similar_images": options.similar_images,
    }
    if options.has_location:
        payload["latitude"] = options.latitude
        payload["longitude"] = options.longitude
    payload["health"] = "all"
    return payload


class PlantIdClient:
    """Synchronous Plant.id client sharing one httpx connection pool."""

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.plant.id/v3/identification",
        timeout: float = 30.0,
        modifiers_timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.modifiers_timeout = modifiers_timeout
        self._http = http_client or httpx.Client()

    def is_healthy(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        self._http.close()

    def identify(self, image: NormalizedImage | bytes,
                 options: DiagnosisOptions | None = None) -> DiagnosisResult:
        """Submit an image for identification and health assessment.

        Args:
            image: Normalised image (or already-encoded JPEG bytes).
            options: Detail fields, language, similar-images flag, location.

        Returns:
            Normalised DiagnosisResult.

        Raises:
            GatewayError: Classified vendor failure; UpstreamContractError if
                the vendor answered 2xx without a usable result.
        """
        options = options or DiagnosisOptions()
        payload = build_payload(image, options)

        logger.info("plant_id.request", details=options.plant_details,
                    language=options.plant_language, location=options.has_location)

        try:
            response = self._http.post(
                self.api_url,
                json=payload,
                headers={"Api-Key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = self._extract_result(response)
            diagnosis = normalize_identification(result)
        except GatewayError:
            raise
        except Exception as e:
            logger.error("plant_id.identify_failed", error=str(e), error_type=type(e).__name__)
            raise classify(e, vendor=VENDOR) from e

        logger.info("plant_id.ok", is_plant=diagnosis.is_plant,
                    suggestions=len(diagnosis.suggestions))
        return diagnosis

    def list_modifiers(self) -> Any:
        """Fetch the vendor's available modifiers, passed through unchanged."""
        try:
            response = self._http.get(
                f"{self.api_url}/modifiers",
                headers={"Api-Key": self.api_key},
                timeout=self.modifiers_timeout,
            )
            response.raise_for_status()
            return response.json()
        except ValueError as e:
            logger.error("plant_id.modifiers_failed", error=str(e))
            raise UpstreamContractError(f"Invalid response from {VENDOR} API", detail=str(e)) from e
        except Exception as e:
            logger.error("plant_id.modifiers_failed", error=str(e))
            raise classify(e, vendor=VENDOR) from e

    @staticmethod
    def _extract_result(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamContractError(f"Invalid response from {VENDOR} API",
                                        detail=f"non-JSON body: {e}") from e

        result = body.get("result") if isinstance(body, dict) else None
        if not isinstance(result, dict):
            raise UpstreamContractError(f"Invalid response from {VENDOR} API",
                                        detail="missing result")
        return result
