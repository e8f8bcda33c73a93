from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import List, Sequence, Tuple

from PIL import Image

from .models import ScaleEntry


logger = logging.getLogger(__name__)

# Output codec name → (Pillow format, payload file extension)
IMAGE_FORMATS = {
    "webp": ("WEBP", "webp"),
    "png": ("PNG", "png"),
    "jpeg": ("JPEG", "jpg"),
    "jpg": ("JPEG", "jpg"),
}
LOSSLESS_QUALITY = 100


class ImageDecodeError(Exception):
    pass


class ImageEncodeError(Exception):
    pass


def format_extension(image_format: str) -> str:
    try:
        return IMAGE_FORMATS[image_format.lower()][1]
    except KeyError as exc:
        raise ValueError(f"Unsupported image format: {image_format}") from exc


def decode_image(path: Path, target_width: int | None = None) -> Image.Image:
    """Decode ``path``, letting the codec decode at reduced size when it can.

    Only some codecs (JPEG) honour the draft hint; for the rest the full
    image is decoded and resampled afterwards.
    """
    try:
        with Image.open(path) as image:
            if target_width and image.width > target_width:
                target_height = max(1, image.height * target_width // image.width)
                if image.draft(image.mode, (target_width, target_height)) is not None:
                    logger.debug("Scaled decode of %s to %s", path, image.size)
            image.load()
            decoded = image.copy()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Failed to decode image {path}: {exc}") from exc

    if decoded.mode not in ("RGB", "RGBA"):
        decoded = decoded.convert("RGBA")
    return decoded


def scale_to_width(image: Image.Image, width: int) -> Image.Image:
    if image.width == width:
        return image.copy()
    height = max(1, round(image.height * width / image.width))
    return image.resize((width, height), Image.Resampling.LANCZOS)


def encode_image(image: Image.Image, image_format: str, quality: int) -> bytes:
    try:
        pil_format = IMAGE_FORMATS[image_format.lower()][0]
    except KeyError as exc:
        raise ImageEncodeError(f"Unsupported image format: {image_format}") from exc

    options = {"quality": quality}
    if pil_format == "WEBP":
        options["lossless"] = quality >= LOSSLESS_QUALITY
    elif pil_format == "JPEG" and image.mode == "RGBA":
        image = image.convert("RGB")

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=pil_format, **options)
    except (OSError, ValueError, KeyError) as exc:
        raise ImageEncodeError(f"Failed to encode {pil_format} image: {exc}") from exc
    return buffer.getvalue()


def encode_scales(
    path: Path,
    entries: Sequence[ScaleEntry],
    base_size: int,
    image_format: str,
) -> List[Tuple[ScaleEntry, bytes]]:
    """Encode ``path`` once per scale entry at ``factor * base_size`` pixels wide.

    Raises ``ImageDecodeError`` when the source cannot be decoded and
    ``ImageEncodeError`` when re-encoding fails.
    """
    if not entries:
        return []
    largest = max(entry.pixel_size(base_size) for entry in entries)
    image = decode_image(path, largest)

    encoded: List[Tuple[ScaleEntry, bytes]] = []
    for entry in entries:
        width = entry.pixel_size(base_size)
        payload = encode_image(scale_to_width(image, width), image_format, entry.quality)
        logger.debug(
            "Encoded %s → scale=%d width=%d quality=%d bytes=%d",
            path.name,
            entry.factor,
            width,
            entry.quality,
            len(payload),
        )
        encoded.append((entry, payload))
    return encoded
