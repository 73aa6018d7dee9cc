"""Size-bounded JPEG preview generation."""

from __future__ import annotations

import io
import logging
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from .errors import DecodeFailure, InvalidDimensions, SizeBudgetExceeded
from .models import QualityBudget

logger = logging.getLogger(__name__)

PREVIEW_MIME_TYPE = "image/jpeg"

_JPEG_MODES = {"RGB", "L", "CMYK"}


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes into a fully loaded Pillow image."""
    if not data:
        raise DecodeFailure("Empty image payload")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.copy()
    except (
        UnidentifiedImageError,
        OSError,
        EOFError,
        SyntaxError,
        ValueError,
        Image.DecompressionBombError,
    ) as exc:
        raise DecodeFailure(f"Unable to decode image: {exc}") from exc


def _scaled(image: Image.Image, scale: float) -> Image.Image:
    width, height = image.size
    new_size = (int(width * scale), int(height * scale))
    if new_size[0] < 1 or new_size[1] < 1:
        raise InvalidDimensions(
            f"Scaling {width}x{height} by {scale} yields {new_size[0]}x{new_size[1]}"
        )
    return image.resize(new_size, Image.Resampling.BILINEAR)


def _jpeg_ready(image: Image.Image) -> Image.Image:
    if image.mode in _JPEG_MODES:
        return image
    if image.mode in ("RGBA", "LA", "P", "PA"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def _encode(image: Image.Image, quality: int) -> bytes:
    out = io.BytesIO()
    image.save(out, format="JPEG", quality=quality)
    return out.getvalue()


def generate_preview(
    source: Union[Image.Image, bytes],
    max_bytes: int,
    initial_scale: float,
    initial_quality: int,
    quality_step: int,
    log: Optional[logging.Logger] = None,
) -> bytes:
    """Scale ``source`` and re-encode it as JPEG until it fits ``max_bytes``.

    Every attempt encodes the same scaled bitmap; only the quality changes.
    Quality drops by ``quality_step`` per attempt and bottoms out at 1, so the
    loop runs at most ``ceil(initial_quality / quality_step) + 1`` times.
    """
    log = log or logger
    if max_bytes <= 0:
        raise ValueError("max_bytes must be positive")
    if initial_scale <= 0:
        raise ValueError("initial_scale must be positive")
    if not 1 <= initial_quality <= 100:
        raise ValueError("initial_quality must be within 1..100")
    if quality_step < 1:
        raise ValueError("quality_step must be at least 1")

    image = decode_image(source) if isinstance(source, (bytes, bytearray)) else source
    if not isinstance(image, Image.Image):
        raise DecodeFailure(f"Unsupported preview source: {type(source).__name__}")

    working = _jpeg_ready(_scaled(image, initial_scale))
    budget = QualityBudget(quality=initial_quality, max_bytes=max_bytes)

    while True:
        encoded = _encode(working, budget.quality)
        budget.candidate_size = len(encoded)
        if budget.satisfied:
            log.debug(
                "Preview %sx%s encoded at quality %s (%s bytes)",
                working.width,
                working.height,
                budget.quality,
                budget.candidate_size,
            )
            return encoded
        log.debug(
            "Preview at quality %s is %s bytes, over budget of %s",
            budget.quality,
            budget.candidate_size,
            max_bytes,
        )
        if not budget.lower(quality_step):
            raise SizeBudgetExceeded(
                f"Preview is {budget.candidate_size} bytes at quality 1, budget is {max_bytes}"
            )
