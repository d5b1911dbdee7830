"""Error taxonomy shared by the Gemini and Plant.id integrations.

Every vendor failure is classified once into a GatewayError subclass that
carries a stable HTTP status and a user-facing message. The raw vendor
message is kept on `detail` for the logs only.
"""

import httpx
import structlog
from google.genai import errors as genai_errors

logger = structlog.get_logger(__name__)


class GatewayError(Exception):
    """Base class for all classified errors.

    Attributes:
        status_code: HTTP status the API layer responds with.
        message: Human-readable message safe to return to the caller.
        detail: Original vendor/exception message, for operators.
    """
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, status_code: int | None = None,
                 detail: str | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class ImageProcessingError(GatewayError):
    """Uploaded image could not be decoded or re-encoded."""
    status_code = 400
    default_message = "Failed to process image"


class AuthError(GatewayError):
    status_code = 401
    default_message = "Invalid API key"


class RateLimitError(GatewayError):
    status_code = 429
    default_message = "API quota exceeded"


class BadRequestError(GatewayError):
    status_code = 400
    default_message = "Invalid request"


class ContentBlockedError(GatewayError):
    status_code = 400
    default_message = "Content was blocked for safety reasons"


class GatewayTimeoutError(GatewayError):
    status_code = 504
    default_message = "Upstream request timeout"


class UpstreamError(GatewayError):
    """Vendor answered with a non-2xx status we have no special handling for."""
    status_code = 502
    default_message = "Upstream API error"


class UpstreamContractError(GatewayError):
    """Vendor answered 2xx but the body is not what we expect."""
    status_code = 500
    default_message = "Invalid response from upstream API"


class GenerationError(GatewayError):
    status_code = 500
    default_message = "No response generated"


class InternalError(GatewayError):
    status_code = 500
    default_message = "Internal server error"


# Message substrings checked when no HTTP status is available (first match wins)
_MESSAGE_SIGNALS = [
    ("API key", AuthError, "Invalid {vendor} API key"),
    ("quota", RateLimitError, None),
    ("SAFETY", ContentBlockedError, None),
]


def _response_status(exc: Exception) -> int | None:
    """HTTP status carried by the exception, if the vendor answered at all."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    if isinstance(exc, genai_errors.APIError):
        code = getattr(exc, "code", None)
        return code if isinstance(code, int) else None
    return None


def vendor_message(exc: Exception, vendor: str) -> str:
    """Extract the vendor's own error message from a failed response.

    Tries `{"error": {"message": ...}}`, then top-level `message`/`detail`/`error`
    strings, then the raw text body. Falls back to "<vendor> API error".
    """
    if isinstance(exc, genai_errors.APIError):
        return getattr(exc, "message", None) or str(exc) or f"{vendor} API error"

    if not isinstance(exc, httpx.HTTPStatusError):
        return str(exc) or f"{vendor} API error"

    response = exc.response
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:500] if text else f"{vendor} API error"

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        for key in ("message", "detail", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    elif isinstance(body, str) and body:
        return body
    return f"{vendor} API error"


def classify(exc: Exception, vendor: str = "Upstream") -> GatewayError:
    """Map any raised exception into the gateway error taxonomy.

    Args:
        exc: The exception caught around a vendor call.
        vendor: Vendor name used in user-facing messages ("Gemini", "Plant.id").

    Returns:
        A GatewayError instance ready to be raised.
    """
    if isinstance(exc, GatewayError):
        return exc

    status = _response_status(exc)
    if status is not None:
        message = vendor_message(exc, vendor)
        if status == 401:
            return AuthError(f"Invalid {vendor} API key", detail=message)
        if status == 429:
            return RateLimitError(f"{vendor} API rate limit exceeded", detail=message)
        if status == 400:
            return BadRequestError(f"Invalid request: {message}", detail=message)
        return UpstreamError(message, status_code=status, detail=message)

    if isinstance(exc, (httpx.TimeoutException, httpx.ConnectError)):
        return GatewayTimeoutError(f"{vendor} API request timeout", detail=str(exc))

    text = str(exc)
    for signal, error_cls, template in _MESSAGE_SIGNALS:
        if signal in text:
            message = template.format(vendor=vendor) if template else None
            return error_cls(message, detail=text)

    logger.debug("errors.unclassified", vendor=vendor, error_type=type(exc).__name__)
    return InternalError(detail=text)
