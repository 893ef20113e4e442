"""Data models for caption generation."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

CaptionLength = Literal["Short", "Medium", "Long"]

FALLBACK_CAPTION = "Error generating caption."

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_CONTEXT_BASE_URL = "https://platform-backend.getalchemystai.com"


class ImageInput(BaseModel):
    """An uploaded image: raw bytes plus its declared MIME type."""

    content: bytes = Field(repr=False, description="Raw image bytes")
    mime_type: str = Field(description="Declared MIME type, e.g. 'image/jpeg'")


class GenerationRequest(BaseModel):
    """Request for generating a caption."""

    images: list[ImageInput] = Field(
        min_length=1, description="Images to caption, in upload order"
    )
    language: str = Field(default="English", description="Caption language")
    topic: str = Field(default="general", description="Topic or vibe of the post")
    length: CaptionLength = Field(default="Medium", description="Caption length tier")
    user_description: str = Field(
        default="", description="Free-text context supplied by the user"
    )


class CaptionOutput(BaseModel):
    """Caption, hashtags and optional translation.

    Also the schema a model reply has to satisfy. Unknown fields in the reply
    are dropped; wrong types are rejected rather than coerced.
    """

    model_config = ConfigDict(extra="ignore")

    caption: str = Field(min_length=1, description="The caption text")
    hashtags: list[str] = Field(description="Hashtags in model order")
    translation: str | None = Field(
        default=None, description="Translation, when the caption is not in English"
    )

    @property
    def share_text(self) -> str:
        """Caption and hashtags as a single block ready to paste into a post."""
        return f"{self.caption}\n\n{' '.join(self.hashtags)}"

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict; ``translation`` is omitted when absent."""
        return self.model_dump(exclude_none=True)


def fallback_output() -> CaptionOutput:
    """The placeholder returned when a model reply cannot be used."""
    return CaptionOutput(caption=FALLBACK_CAPTION, hashtags=[])


class ContextSearchResult(BaseModel):
    """Outcome of a context lookup.

    ``text`` is always usable: on failure it is empty and ``error`` says why.
    """

    ok: bool
    text: str = ""
    num_contexts: int = 0
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> ContextSearchResult:
        return cls(ok=False, text="", error=error)


class ContextSearchConfig(BaseModel):
    """Configuration for the context search service."""

    api_key: str | None = Field(default=None, description="Context search API key")
    base_url: str = Field(default=DEFAULT_CONTEXT_BASE_URL)
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    similarity_threshold: float = Field(default=0.8)
    minimum_similarity_threshold: float = Field(default=0.5)
    scope: str = Field(default="internal")


class CaptionConfig(BaseModel):
    """Configuration for caption generation."""

    api_key: str | None = Field(default=None, description="Gemini API key")
    model: str = Field(default=DEFAULT_MODEL, description="Model identifier")
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Generation request timeout in seconds (SDK default when unset)",
    )
    context: ContextSearchConfig = Field(default_factory=ContextSearchConfig)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CaptionConfig:
        """Resolve both secrets from the process environment.

        Reads ``GOOGLE_GENERATIVE_AI_API_KEY`` and ``ALCHEMYST_AI_API_KEY``,
        plus the optional ``CAPTION_AGENT_MODEL`` and ``ALCHEMYST_BASE_URL``.
        Missing keys are left as ``None``; generation reports them when it runs.
        """
        env = os.environ if environ is None else environ
        context_kwargs: dict[str, Any] = {
            "api_key": env.get("ALCHEMYST_AI_API_KEY") or None
        }
        if env.get("ALCHEMYST_BASE_URL"):
            context_kwargs["base_url"] = env["ALCHEMYST_BASE_URL"]
        return cls(
            api_key=env.get("GOOGLE_GENERATIVE_AI_API_KEY") or None,
            model=env.get("CAPTION_AGENT_MODEL") or DEFAULT_MODEL,
            context=ContextSearchConfig(**context_kwargs),
        )
