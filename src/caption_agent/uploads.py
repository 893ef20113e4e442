"""Reading uploaded images into memory before generation.

This is the caller-side check on uploads: the agent itself trusts the MIME
types it is given.
"""

import asyncio
import mimetypes
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from caption_agent.exceptions import ValidationError
from caption_agent.logging import log_debug
from caption_agent.models import ImageInput

_LOGGER_NAME = "caption_agent.uploads"


class Upload(Protocol):
    """Anything shaped like a Starlette ``UploadFile``."""

    content_type: str | None

    async def read(self) -> bytes: ...


def _check_image(content: bytes, mime_type: str | None, name: str) -> ImageInput:
    if not mime_type or not mime_type.startswith("image/"):
        raise ValidationError(f"{name} is not an image (content type: {mime_type})")
    if not content:
        raise ValidationError(f"{name} is empty")
    return ImageInput(content=content, mime_type=mime_type)


async def read_uploads_async(uploads: Sequence[Upload]) -> list[ImageInput]:
    """Read all uploads concurrently, keeping their original order."""
    if not uploads:
        raise ValidationError("At least one image is required")

    contents = await asyncio.gather(*(upload.read() for upload in uploads))
    images = [
        _check_image(content, upload.content_type, f"Upload #{index + 1}")
        for index, (upload, content) in enumerate(zip(uploads, contents))
    ]
    log_debug(
        "Read uploads",
        context={"num_images": len(images), "sizes": [len(i.content) for i in images]},
        logger_name=_LOGGER_NAME,
    )
    return images


def load_image_files(paths: Sequence[str | Path]) -> list[ImageInput]:
    """Load images from disk, guessing each MIME type from its extension."""
    if not paths:
        raise ValidationError("At least one image is required")

    images = []
    for path in map(Path, paths):
        mime_type, _ = mimetypes.guess_type(path.name)
        images.append(_check_image(path.read_bytes(), mime_type, str(path)))
    return images
