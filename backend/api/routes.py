"""FastAPI endpoints for the Arco API.

POST /api/assistant/chat - answer a gardening question
GET /api/assistant/starters - canned conversation starters
GET /api/assistant/languages - supported response languages
POST /api/diagnosis/analyze - identify a plant photo and assess its health
GET /api/diagnosis/modifiers - vendor identification modifiers
GET /health - component health check
"""

import time
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, File, Form, HTTPException, Query, Request, UploadFile

from backend.agent.assistant import AssistantService
from backend.api.schemas import (
    ChatMetadata,
    ChatOptions,
    ChatRequest,
    ChatResponseData,
    DiagnosisMetadata,
    DiagnosisOptions,
    DiagnosisResponseData,
    Location,
    StartersData,
)
from backend.core.image_processor import ImageProcessor
from backend.core.plant_id import PlantIdClient
from backend.data.catalog import SUPPORTED_LANGUAGES, get_starters

logger = structlog.get_logger(__name__)

router = APIRouter()

DEFAULT_PLANT_DETAILS = ["common_names", "url"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _split_details(values: list[str] | None) -> list[str]:
    """Accept repeated form fields and/or comma-separated values."""
    fields = []
    for value in values or []:
        fields.extend(part.strip() for part in value.split(",") if part.strip())
    return fields or list(DEFAULT_PLANT_DETAILS)


@router.post("/api/assistant/chat")
def chat(request: ChatRequest, req: Request):
    """Answer one chat turn: compose -> Gemini -> follow-up suggestions."""
    start = time.monotonic()
    assistant: AssistantService = req.app.state.assistant
    settings = req.app.state.settings

    logger.info("chat.request", language=request.language, msg_len=len(request.message),
                context_len=len(request.context))

    options = ChatOptions(
        language=request.language,
        context=request.context,
        temperature=0.7,
        max_tokens=settings.gemini_max_tokens,
    )
    result = assistant.respond(request.message, options)

    data = ChatResponseData(
        message=result.text,
        metadata=ChatMetadata(
            timestamp=_now_iso(),
            language=options.language,
            tokens_used=result.tokens_used,
        ),
        suggestions=result.suggestions or None,
    )

    latency_ms = int((time.monotonic() - start) * 1000)
    logger.info("chat.response", latency_ms=latency_ms, tokens_used=result.tokens_used)
    return {"success": True, "data": data.model_dump(exclude_none=True)}


@router.get("/api/assistant/starters")
def starters(language: str = Query("en", max_length=5)):
    """Canned conversation starters, English when the language has none."""
    data = StartersData(language=language, starters=get_starters(language))
    return {"success": True, "data": data.model_dump()}


@router.get("/api/assistant/languages")
def languages():
    return {"success": True, "data": [lang.model_dump() for lang in SUPPORTED_LANGUAGES]}


@router.post("/api/diagnosis/analyze")
def analyze_plant(
    req: Request,
    image: UploadFile | None = File(None),
    latitude: float | None = Form(None, ge=-90, le=90),
    longitude: float | None = Form(None, ge=-180, le=180),
    similar_images: bool = Form(False),
    plant_details: list[str] | None = Form(None),
    plant_language: str = Form("en", min_length=2, max_length=5),
):
    """Normalise the uploaded photo and run identification + health assessment."""
    start = time.monotonic()
    processor: ImageProcessor = req.app.state.image_processor
    plant_id: PlantIdClient = req.app.state.plant_id
    settings = req.app.state.settings

    if image is None:
        raise HTTPException(status_code=400, detail="No image file provided")

    raw = image.file.read(settings.max_upload_bytes + 1)
    if len(raw) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Image file is too large")
    if not processor.validate(raw):
        raise HTTPException(status_code=400, detail="Unsupported image format. Use JPEG, PNG or WEBP")

    logger.info("diagnosis.request", filename=image.filename, size=len(raw))

    normalized = processor.process(raw)
    options = DiagnosisOptions(
        latitude=latitude,
        longitude=longitude,
        similar_images=similar_images,
        plant_details=_split_details(plant_details),
        plant_language=plant_language,
    )
    diagnosis = plant_id.identify(normalized, options)

    health = diagnosis.health_assessment
    metadata = DiagnosisMetadata(
        date=_now_iso(),
        version=diagnosis.version,
        custom_id=diagnosis.custom_id,
        location=(
            Location(latitude=options.latitude, longitude=options.longitude)
            if options.has_location else None
        ),
    )
    data = DiagnosisResponseData(
        is_plant=diagnosis.is_plant,
        is_plant_probability=diagnosis.is_plant_probability,
        suggestions=diagnosis.suggestions,
        health_assessment=health,
        disease_suggestions=health.diseases if health else [],
        metadata=metadata,
    )

    latency_ms = int((time.monotonic() - start) * 1000)
    logger.info("diagnosis.response", is_plant=diagnosis.is_plant, latency_ms=latency_ms)
    return {"success": True, "data": data.model_dump()}


@router.get("/api/diagnosis/modifiers")
def modifiers(req: Request):
    plant_id: PlantIdClient = req.app.state.plant_id
    return {"success": True, "data": plant_id.list_modifiers()}


@router.get("/health")
def health(req: Request):
    """Check health of all backend components."""
    components = {
        "gemini": "ok" if req.app.state.llm_adapter.is_healthy() else "error",
        "plant_id": "ok" if req.app.state.plant_id.is_healthy() else "error",
    }

    errors = [k for k, v in components.items() if v == "error"]
    if not errors:
        status = "healthy"
    elif len(errors) == len(components):
        status = "unhealthy"
    else:
        status = "degraded"

    return {"status": status, "components": components}


@router.get("/")
@router.head("/")
def root_health():
    """Basic root health check for deployment platforms like Render."""
    return {"status": "ok", "service": "arco-api"}
