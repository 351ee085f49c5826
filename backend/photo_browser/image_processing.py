"""
Photo Browser API — Image Validation & Resizing
=================================================

What:  Checks an uploaded file and renders the two JPEG renditions stored
       for every photo.
How:   Pillow. `process_image()` is CPU-bound and synchronous; callers run
       it with `run_in_threadpool` so the event loop stays free.

Renditions:
    main       fits within 800×800, aspect ratio kept, never upscaled, q=90
    thumbnail  center-cropped to exactly 150×150 (cover), q=80

Both are plain RGB JPEGs: alpha channels and palettes are flattened.
"""

import logging
import os
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from photo_browser.config import settings
from photo_browser.exceptions import BadRequestError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}

MAIN_MAX_SIZE = (800, 800)
MAIN_QUALITY = 90
THUMBNAIL_SIZE = (150, 150)
THUMBNAIL_QUALITY = 80

TYPE_ERROR = "Only image files are allowed (jpeg, jpg, png, gif, webp)"


@dataclass(frozen=True)
class ProcessedImage:
    main: bytes
    thumbnail: bytes


def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    content: bytes,
    max_size: Optional[int] = None,
) -> None:
    """
    Reject a file before any decoding happens.

    Both the extension and the declared MIME type must be allowed image
    types; the body must be non-empty and at most `max_size` bytes.
    """
    limit = max_size if max_size is not None else settings.max_upload_size

    if not filename:
        raise BadRequestError("Image file is required")

    extension = os.path.splitext(filename)[1].lower()
    mime = (content_type or "").split(";")[0].strip().lower()
    if extension not in ALLOWED_EXTENSIONS or mime not in ALLOWED_MIME_TYPES:
        raise BadRequestError(TYPE_ERROR, context={"extension": extension, "content_type": mime})

    if not content:
        raise BadRequestError("Uploaded file is empty")
    if len(content) > limit:
        raise BadRequestError(
            f"File too large. Maximum size is {limit // (1024 * 1024)}MB",
            context={"size": len(content), "limit": limit},
        )


def _to_rgb(image: Image.Image) -> Image.Image:
    # Always a new image: the decoded source is closed right after
    if image.mode == "RGB":
        return image.copy()
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def process_image(content: bytes) -> ProcessedImage:
    """
    Decode `content` and render the main image and thumbnail.

    Raises:
        BadRequestError: content is not a decodable image
    """
    try:
        with Image.open(BytesIO(content)) as source:
            source.load()
            image = _to_rgb(source)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise BadRequestError("Invalid image file", context={"reason": str(exc)})

    main = image.copy()
    # thumbnail() only ever shrinks
    main.thumbnail(MAIN_MAX_SIZE, Image.Resampling.LANCZOS)

    thumb = ImageOps.fit(image, THUMBNAIL_SIZE, Image.Resampling.LANCZOS, centering=(0.5, 0.5))

    logger.debug(
        "Processed image %dx%d → main %dx%d, thumbnail %dx%d",
        image.width, image.height, main.width, main.height, thumb.width, thumb.height,
    )
    return ProcessedImage(
        main=_encode_jpeg(main, MAIN_QUALITY),
        thumbnail=_encode_jpeg(thumb, THUMBNAIL_QUALITY),
    )
