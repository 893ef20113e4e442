"""Gemini generation client using google-genai.

One multimodal request per caption: the prompt text followed by every image
as an inline data part.
"""

import traceback
from typing import Any, Literal, cast, overload

import httpx
from google.genai.client import AsyncClient, Client
from google.genai.errors import APIError
from google.genai.types import (
    Blob,
    Content,
    GenerateContentResponse,
    HttpOptions,
    Part,
)

from caption_agent.exceptions import (
    CaptionAgentException,
    ConfigurationError,
    ContentModerationError,
    GenerationFailedError,
    HTTPConnectionError,
    HTTPError,
    TimeoutError,
    ValidationError,
)
from caption_agent.logging import ServiceLogger, log_error
from caption_agent.models import DEFAULT_MODEL, ImageInput

AnyDict = dict[str, Any]

_LOGGER_NAME = "caption_agent.gemini"
_SERVICE = "gemini"


def build_contents(prompt: str, images: list[ImageInput]) -> list[Content]:
    """Build the single user turn: prompt first, then images in input order."""
    parts = [Part(text=prompt)]
    parts.extend(
        Part(inline_data=Blob(data=image.content, mime_type=image.mime_type))
        for image in images
    )
    return [Content(role="user", parts=parts)]


def extract_text(response: GenerateContentResponse | None) -> str:
    """First text part of the first candidate, or ``""`` if there is none."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return ""
    return getattr(parts[0], "text", None) or ""


class GeminiCaptionClient:
    """Thin wrapper around ``google.genai.Client`` for caption requests."""

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client: Client | None = None

    @overload
    def _get_client(self, client_type: Literal["async"]) -> AsyncClient: ...

    @overload
    def _get_client(self, client_type: Literal["sync"]) -> Client: ...

    def _get_client(
        self, client_type: Literal["sync", "async"]
    ) -> Client | AsyncClient:
        """Create the google-genai client on first use.

        Raises:
            ConfigurationError: If no API key is configured
        """
        if not self.api_key:
            raise ConfigurationError(
                "Missing API key for the generation service. "
                "Set GOOGLE_GENERATIVE_AI_API_KEY or pass api_key in CaptionConfig.",
                service=_SERVICE,
                model=self.model,
            )

        if self._client is None:
            if self.timeout is None:
                self._client = Client(api_key=self.api_key)
            else:
                # HttpOptions.timeout is in milliseconds
                self._client = Client(
                    api_key=self.api_key,
                    http_options=HttpOptions(timeout=int(self.timeout * 1000)),
                )

        if client_type == "async":
            return self._client.aio
        return self._client

    def _handle_error(self, request_id: str, ex: Exception) -> CaptionAgentException:
        """Map google-genai and transport errors onto our exception types."""
        if isinstance(ex, CaptionAgentException):
            return ex

        if isinstance(ex, httpx.TimeoutException):
            return TimeoutError(
                f"Request timed out: {ex}",
                service=_SERVICE,
                model=self.model,
                request_id=request_id,
                raw_response={"error": str(ex)},
                timeout_seconds=self.timeout,
            )

        if isinstance(ex, httpx.NetworkError):
            return HTTPConnectionError(
                f"Connection error: {ex}",
                service=_SERVICE,
                model=self.model,
                request_id=request_id,
                raw_response={"error": str(ex)},
            )

        if isinstance(ex, APIError):
            error_code = ex.code
            error_message: str = ex.message or str(ex)
            raw_response: AnyDict = {
                "status_code": error_code,
                "message": error_message,
                "error_details": cast(AnyDict, ex.details or {}),
                "error_type": ex.status,
            }

            if error_code in (400, 422):
                return ValidationError(
                    error_message,
                    service=_SERVICE,
                    model=self.model,
                    request_id=request_id,
                    raw_response=raw_response,
                )

            if error_code == 403:
                return ContentModerationError(
                    error_message,
                    service=_SERVICE,
                    model=self.model,
                    request_id=request_id,
                    raw_response=raw_response,
                )

            return HTTPError(
                error_message,
                service=_SERVICE,
                model=self.model,
                request_id=request_id,
                raw_response=raw_response,
                status_code=error_code,
            )

        log_error(
            f"Gemini unknown error: {ex}",
            context={
                "service": _SERVICE,
                "model": self.model,
                "request_id": request_id,
                "error_type": type(ex).__name__,
            },
            logger_name=_LOGGER_NAME,
            exc_info=True,
        )
        return GenerationFailedError(
            f"Error while generating caption: {ex}",
            service=_SERVICE,
            model=self.model,
            request_id=request_id,
            raw_response={
                "error": str(ex),
                "error_type": type(ex).__name__,
                "traceback": traceback.format_exc(),
            },
        )

    def generate_text(self, contents: list[Content], request_id: str) -> str:
        """Send ``contents`` in one ``generate_content`` call and return the reply text."""
        client = self._get_client("sync")
        logger = ServiceLogger(_SERVICE, self.model, _LOGGER_NAME, request_id)
        logger.debug("Starting generate_content call", {"num_parts": _num_parts(contents)})

        try:
            response = client.models.generate_content(
                model=self.model, contents=contents
            )
        except Exception as ex:
            raise self._handle_error(request_id, ex) from ex

        text = extract_text(response)
        logger.debug("Received model reply", {"reply": text}, redact=True)
        return text

    async def generate_text_async(self, contents: list[Content], request_id: str) -> str:
        """Async variant of :meth:`generate_text`."""
        client = self._get_client("async")
        logger = ServiceLogger(_SERVICE, self.model, _LOGGER_NAME, request_id)
        logger.debug("Starting generate_content call", {"num_parts": _num_parts(contents)})

        try:
            response = await client.models.generate_content(
                model=self.model, contents=contents
            )
        except Exception as ex:
            raise self._handle_error(request_id, ex) from ex

        text = extract_text(response)
        logger.debug("Received model reply", {"reply": text}, redact=True)
        return text


def _num_parts(contents: list[Content]) -> int:
    return sum(len(content.parts or []) for content in contents)
