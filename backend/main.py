"""FastAPI application entry point.

Startup sequence: load settings → configure logging → build Gemini adapter,
assistant, image processor and Plant.id client. A missing API key aborts startup.
"""

import os
import time
from contextlib import asynccontextmanager

import structlog
from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from backend.agent.assistant import AssistantService
from backend.api.routes import router
from backend.config import Settings
from backend.core.errors import GatewayError
from backend.core.image_processor import ImageProcessor
from backend.core.llm_adapter import GeminiAdapter
from backend.core.log_config import configure_logging
from backend.core.plant_id import PlantIdClient

# .env from the working directory, before create_app() reads CORS_ORIGINS
load_dotenv(find_dotenv(usecwd=True))

logger = structlog.get_logger(__name__)

RATE_LIMIT_WINDOW_SECONDS = 60


def init_services(app: FastAPI, settings: Settings) -> None:
    """Attach settings and vendor services to app.state."""
    app.state.settings = settings

    llm_adapter = GeminiAdapter(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        timeout=settings.gemini_timeout,
    )
    app.state.llm_adapter = llm_adapter
    app.state.assistant = AssistantService(llm_adapter)
    logger.info("startup.gemini_initialized", model=settings.gemini_model)

    app.state.image_processor = ImageProcessor(
        max_width=settings.image_max_width,
        max_height=settings.image_max_height,
        quality=settings.image_quality,
        min_quality=settings.image_min_quality,
        max_bytes=settings.image_max_bytes,
    )

    app.state.plant_id = PlantIdClient(
        api_key=settings.plant_id_api_key,
        api_url=settings.plant_id_api_url,
        timeout=settings.plant_id_timeout,
        modifiers_timeout=settings.plant_id_modifiers_timeout,
    )
    logger.info("startup.plant_id_initialized", url=settings.plant_id_api_url)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_json)
    logger.info("startup.begin")

    app.state.rate_limit = settings.rate_limit_per_min
    init_services(app, settings)

    logger.info("startup.complete")
    yield
    app.state.plant_id.close()
    logger.info("shutdown.complete")


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Arco API",
        description="Gardening assistant and plant diagnosis gateway",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Rate limiter: per-client request throttling on /api routes.
    # Registered before CORS so CORS wraps it and 429s carry CORS headers.
    rate_buckets: dict[str, list[float]] = {}
    app.state.rate_buckets = rate_buckets
    last_sweep = time.monotonic()

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        nonlocal last_sweep
        limit = getattr(request.app.state, "rate_limit", 0)
        if not limit or not request.url.path.startswith("/api/"):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        now = time.monotonic()

        # Drop clients with no request inside the window
        if now - last_sweep >= RATE_LIMIT_WINDOW_SECONDS:
            idle = [k for k, stamps in rate_buckets.items()
                    if not stamps or now - stamps[-1] >= RATE_LIMIT_WINDOW_SECONDS]
            for key in idle:
                del rate_buckets[key]
            last_sweep = now

        # Prune timestamps older than the window
        window = [t for t in rate_buckets.get(client, ()) if now - t < RATE_LIMIT_WINDOW_SECONDS]

        if len(window) >= limit:
            rate_buckets[client] = window
            logger.warning("rate_limit.exceeded", client=client)
            return _error_response(429, "Too many requests. Please wait a moment.")

        window.append(now)
        rate_buckets[client] = window
        return await call_next(request)

    # Comma-separated CORS_ORIGINS, "*" when unset
    origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        logger.error("request.failed", path=request.url.path, kind=exc.kind,
                     status=exc.status_code, detail=exc.detail)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning("request.rejected", path=request.url.path, status=exc.status_code,
                       detail=exc.detail)
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = first.get("msg", "Invalid request")
        logger.warning("request.invalid", path=request.url.path, errors=len(errors))
        return _error_response(400, f"{location}: {message}" if location else message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("request.unhandled", path=request.url.path, error=str(exc),
                     error_type=type(exc).__name__)
        return _error_response(500, "Internal server error")

    app.include_router(router)
    return app


app = create_app()
