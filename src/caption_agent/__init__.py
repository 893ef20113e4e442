"""Caption Agent - Instagram captions and hashtags for uploaded photos."""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("caption-agent")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

from .agent import CaptionAgent
from .api import generate_caption, generate_caption_async
from .context import ContextRetriever
from .exceptions import (
    CaptionAgentException,
    ConfigurationError,
    ContentModerationError,
    GenerationFailedError,
    HTTPConnectionError,
    HTTPError,
    TimeoutError,
    ValidationError,
)
from .gemini import GeminiCaptionClient
from .models import (
    CaptionConfig,
    CaptionLength,
    CaptionOutput,
    ContextSearchConfig,
    ContextSearchResult,
    GenerationRequest,
    ImageInput,
    fallback_output,
)
from .uploads import load_image_files, read_uploads_async

__all__ = [
    # API functions
    "generate_caption",
    "generate_caption_async",
    "read_uploads_async",
    "load_image_files",
    # Clients
    "CaptionAgent",
    "ContextRetriever",
    "GeminiCaptionClient",
    # Models
    "CaptionConfig",
    "ContextSearchConfig",
    "ContextSearchResult",
    "GenerationRequest",
    "ImageInput",
    "CaptionOutput",
    "CaptionLength",
    "fallback_output",
    # Exceptions
    "CaptionAgentException",
    "ConfigurationError",
    "ValidationError",
    "ContentModerationError",
    "HTTPError",
    "HTTPConnectionError",
    "TimeoutError",
    "GenerationFailedError",
]
