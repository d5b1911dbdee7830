"""Image normalisation before upload to the vision vendor.

Downscales to a bounded box (aspect preserved, never enlarged) and re-encodes
as progressive JPEG, stepping quality down until the payload fits the size
ceiling or the quality floor is reached.
"""

import io
from dataclasses import dataclass

import structlog
from PIL import Image, UnidentifiedImageError

from backend.core.errors import ImageProcessingError

logger = structlog.get_logger(__name__)

SUPPORTED_FORMATS = frozenset({"JPEG", "PNG", "WEBP"})

# Pillow raises any of these on truncated, corrupt or hostile input
_DECODE_ERRORS = (UnidentifiedImageError, OSError, ValueError, SyntaxError, Image.DecompressionBombError)


@dataclass(frozen=True)
class NormalizedImage:
    """Encoded JPEG ready to be sent to the vision vendor."""
    data: bytes
    width: int
    height: int
    quality: int
    original_width: int
    original_height: int
    original_format: str | None
    format: str = "JPEG"

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def mime_type(self) -> str:
        return "image/jpeg"


@dataclass(frozen=True)
class ImageMetadata:
    width: int
    height: int
    format: str | None
    size: int
    mode: str
    has_alpha: bool
    orientation: int | None = None
    dpi: tuple[float, float] | None = None


def _decode(raw: bytes) -> Image.Image:
    """Fully decode raw bytes into a Pillow image."""
    if not raw:
        raise ImageProcessingError(detail="empty image payload")
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except _DECODE_ERRORS as e:
        logger.error("image.decode_failed", error=str(e))
        raise ImageProcessingError(detail=str(e)) from e
    return image


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Largest size inside max_width x max_height with the same aspect ratio.

    Images already inside the box are returned unchanged.
    """
    scale = min(max_width / width, max_height / height, 1.0)
    if scale >= 1.0:
        return width, height
    return max(1, round(width * scale)), max(1, round(height * scale))


def _to_rgb(image: Image.Image) -> Image.Image:
    """Flatten alpha/palette/CMYK images onto white so they encode as JPEG."""
    if image.mode == "RGB":
        return image
    if image.mode in ("RGBA", "LA", "P", "PA"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality, progressive=True, optimize=True)
    return buffer.getvalue()


class ImageProcessor:
    """Resizes and compresses uploads under configurable bounds."""

    def __init__(
        self,
        max_width: int = 1024,
        max_height: int = 1024,
        quality: int = 85,
        min_quality: int = 50,
        quality_step: int = 10,
        max_bytes: int = 1024 * 1024,
    ):
        self.max_width = max_width
        self.max_height = max_height
        self.quality = quality
        self.min_quality = min_quality
        self.quality_step = quality_step
        self.max_bytes = max_bytes

    def process(self, raw: bytes) -> NormalizedImage:
        """Normalise an uploaded image.

        Args:
            raw: Encoded image bytes as uploaded.

        Returns:
            NormalizedImage within the dimension bounds. The size ceiling is
            best-effort: if the floor quality still exceeds it, that encode
            is returned.

        Raises:
            ImageProcessingError: If the input cannot be decoded or encoded.
        """
        source = _decode(raw)
        original_width, original_height = source.size
        original_format = source.format
        logger.info("image.processing", width=original_width, height=original_height,
                    format=original_format)

        width, height = fit_within(original_width, original_height,
                                   self.max_width, self.max_height)

        try:
            prepared = _to_rgb(source)
            if (width, height) != prepared.size:
                prepared = prepared.resize((width, height), Image.Resampling.LANCZOS)

            quality = self.quality
            encoded = _encode_jpeg(prepared, quality)
            # Each pass re-encodes the decoded source, never the previous output
            while len(encoded) > self.max_bytes and quality > self.min_quality:
                quality = max(self.min_quality, quality - self.quality_step)
                encoded = _encode_jpeg(prepared, quality)
        except _DECODE_ERRORS as e:
            logger.error("image.encode_failed", error=str(e))
            raise ImageProcessingError(detail=str(e)) from e

        logger.info("image.processed", width=width, height=height,
                    size_kb=round(len(encoded) / 1024, 2), quality=quality)

        return NormalizedImage(
            data=encoded,
            width=width,
            height=height,
            quality=quality,
            original_width=original_width,
            original_height=original_height,
            original_format=original_format,
        )

    def validate(self, raw: bytes) -> bool:
        """True if the bytes decode as a supported upload format."""
        try:
            with Image.open(io.BytesIO(raw)) as image:
                image.verify()
                return image.format in SUPPORTED_FORMATS
        except _DECODE_ERRORS:
            return False

    def metadata(self, raw: bytes) -> ImageMetadata:
        """Describe an image without re-encoding it.

        Raises:
            ImageProcessingError: If the input cannot be decoded.
        """
        image = _decode(raw)
        orientation = image.getexif().get(0x0112)
        dpi = image.info.get("dpi")
        return ImageMetadata(
            width=image.width,
            height=image.height,
            format=image.format,
            size=len(raw),
            mode=image.mode,
            has_alpha=image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info,
            orientation=orientation,
            dpi=tuple(float(d) for d in dpi) if dpi else None,
        )
