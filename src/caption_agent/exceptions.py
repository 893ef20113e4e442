import functools
import inspect
import traceback
from collections.abc import Callable
from typing import Any, TypeVar, cast

from pydantic import ValidationError as PydanticValidationError

from caption_agent.logging import log_error

AnyDict = dict[str, Any]

F = TypeVar("F", bound=Callable[..., Any])


class CaptionAgentException(Exception):
    """Base class for all exceptions raised by caption-agent.

    Carries structured context (service, model, request ID, raw service
    response) to make debugging straightforward. Catch this class to handle
    any package error, or catch subclasses for more granular handling.

    Attributes:
        message: Human-readable error description.
        service: Outbound service identifier (e.g. ``"gemini"``).
        model: Model name at the time of the error.
        request_id: Caption request ID.
        raw_response: Unmodified service response payload, if available.
    """

    message: str
    service: str | None
    model: str | None
    request_id: str | None
    raw_response: AnyDict | None

    def __init__(
        self,
        message: str,
        service: str | None = None,
        model: str | None = None,
        request_id: str | None = None,
        raw_response: AnyDict | None = None,
    ):
        self.message = message
        self.service = service
        self.model = model
        self.request_id = request_id
        self.raw_response = raw_response
        super().__init__(message)


class ConfigurationError(CaptionAgentException):
    """Raised when the deployment is missing something it cannot run without.

    A missing generation API key is the typical case. Unlike a bad model
    reply, this is never masked by the fallback caption.
    """

    pass


class ValidationError(CaptionAgentException):
    """Raised when input fails validation.

    Covers rejected uploads and 400/422 responses from the generation service.
    """

    pass


class ContentModerationError(CaptionAgentException):
    """Raised when the generation service refuses the input on policy grounds (403)."""

    pass


class HTTPError(CaptionAgentException):
    """Raised on an unexpected HTTP error response from an outbound service.

    Attributes:
        status_code: HTTP status code returned by the service, if available.
    """

    status_code: int | None

    def __init__(
        self,
        message: str,
        service: str | None = None,
        model: str | None = None,
        request_id: str | None = None,
        raw_response: AnyDict | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, service, model, request_id, raw_response)
        self.status_code = status_code


class GenerationFailedError(CaptionAgentException):
    """Raised when the generation call fails for a reason we do not classify."""

    pass


class HTTPConnectionError(CaptionAgentException):
    """Raised on a network-level failure before the service responds."""

    pass


class TimeoutError(CaptionAgentException):
    """Raised when an outbound request exceeds its timeout.

    Attributes:
        timeout_seconds: The timeout value that was exceeded, in seconds.
    """

    timeout_seconds: float | None

    def __init__(
        self,
        message: str,
        service: str | None = None,
        model: str | None = None,
        request_id: str | None = None,
        raw_response: AnyDict | None = None,
        timeout_seconds: float | None = None,
    ):
        super().__init__(message, service, model, request_id, raw_response)
        self.timeout_seconds = timeout_seconds


def _wrap_unknown(ex: Exception, func_name: str) -> CaptionAgentException:
    log_error(
        f"Unknown error while generating caption: {ex}",
        context={"entrypoint": func_name, "error_type": type(ex).__name__},
        logger_name="caption_agent.exceptions",
        exc_info=True,
    )
    return CaptionAgentException(
        f"Unknown error while generating caption: {ex}",
        raw_response={
            "error": str(ex),
            "error_type": type(ex).__name__,
            "traceback": traceback.format_exc(),
        },
    )


def handle_generation_errors(func: F) -> F:
    """Decorator that wraps unhandled exceptions in ``CaptionAgentException``.

    Works with both sync and async functions automatically.

    Behaviour:
    - ``CaptionAgentException`` subclasses propagate unchanged.
    - ``PydanticValidationError`` propagates unchanged.
    - Any other exception is logged and wrapped, with the traceback kept in
      ``raw_response``.
    """
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except (PydanticValidationError, CaptionAgentException):
                raise
            except Exception as ex:
                raise _wrap_unknown(ex, func.__name__) from ex

        return cast(F, async_wrapper)

    @functools.wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (PydanticValidationError, CaptionAgentException):
            raise
        except Exception as ex:
            raise _wrap_unknown(ex, func.__name__) from ex

    return cast(F, sync_wrapper)
