"""Turning a model reply into a CaptionOutput."""

import json
import re

from pydantic import ValidationError as PydanticValidationError

from caption_agent.logging import log_error
from caption_agent.models import CaptionOutput, fallback_output

_LOGGER_NAME = "caption_agent.parsing"
_FENCE_RE = re.compile(r"```json|```")


def strip_code_fences(text: str) -> str:
    """Remove every ```json / ``` marker and surrounding whitespace."""
    return _FENCE_RE.sub("", text).strip()


def parse_caption_output(raw_text: str, request_id: str | None = None) -> CaptionOutput:
    """Parse and validate a model reply.

    Any reply that is not JSON, is nested too deeply to decode, or does not
    match :class:`CaptionOutput` yields :func:`fallback_output` instead of an
    exception.
    """
    cleaned = strip_code_fences(raw_text)
    try:
        return CaptionOutput.model_validate(json.loads(cleaned))
    except (ValueError, RecursionError, PydanticValidationError) as ex:
        log_error(
            "Caption reply failed validation, returning fallback",
            context={
                "request_id": request_id,
                "error_type": type(ex).__name__,
                "error": str(ex),
                "reply": cleaned,
            },
            logger_name=_LOGGER_NAME,
            redact=True,
        )
        return fallback_output()
