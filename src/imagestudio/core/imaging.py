"""Reference image normalisation and output size selection."""

from __future__ import annotations

import io
import logging

from PIL import Image, UnidentifiedImageError

from .validation import ValidationError

logger = logging.getLogger(__name__)

# Sizes accepted by the image API.  4:5 has no exact match, so it uses the
# closest portrait size and is cropped downstream if needed.
ASPECT_RATIO_SIZES: dict[str, str] = {
    "9:16": "1024x1536",
    "16:9": "1536x1024",
    "1:1": "1024x1024",
    "4:5": "1024x1536",
}

FALLBACK_SIZE = "auto"


def size_for_aspect_ratio(aspect_ratio: str | None) -> str:
    """Return the output size for *aspect_ratio*, or ``"auto"`` if unknown."""
    return ASPECT_RATIO_SIZES.get(str(aspect_ratio or ""), FALLBACK_SIZE)


def to_png(data: bytes, filename: str = "") -> bytes:
    """Convert image bytes of any Pillow-readable format to PNG.

    Args:
        data: Raw uploaded bytes.
        filename: Used only in error messages.

    Returns:
        PNG-encoded bytes.

    Raises:
        ValidationError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            if image.mode not in ("RGB", "RGBA", "L", "LA"):
                has_alpha = image.mode in ("P", "PA") or "transparency" in image.info
                image = image.convert("RGBA" if has_alpha else "RGB")
            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Cannot read image {filename or '(unnamed)'}: {e}") from e

    logger.debug(f"Normalised {filename or '(unnamed)'} to PNG ({len(data)} -> {buffer.tell()} bytes)")
    return buffer.getvalue()
