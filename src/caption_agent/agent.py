"""Caption orchestration.

Per request the agent runs a fixed pipeline::

    ContextFetch -> PromptBuild -> ModelInvoke -> ResponseClean -> Parse/Validate

and ends in either a validated :class:`CaptionOutput` or the fallback output.
There is exactly one call to the generation service and no retry.
"""

import uuid

from caption_agent.context import ContextRetriever
from caption_agent.exceptions import ConfigurationError, handle_generation_errors
from caption_agent.gemini import GeminiCaptionClient, build_contents
from caption_agent.logging import ServiceLogger
from caption_agent.models import (
    CaptionConfig,
    CaptionLength,
    CaptionOutput,
    GenerationRequest,
    ImageInput,
)
from caption_agent.parsing import parse_caption_output
from caption_agent.prompts import build_context_query, build_prompt

_LOGGER_NAME = "caption_agent.agent"


class CaptionAgent:
    """Generates Instagram captions for uploaded images.

    Both outbound clients are built from ``config`` unless given explicitly,
    which is how tests substitute fakes.
    """

    def __init__(
        self,
        config: CaptionConfig,
        retriever: ContextRetriever | None = None,
        generator: GeminiCaptionClient | None = None,
    ) -> None:
        self.config = config
        self.retriever = retriever or ContextRetriever(config.context)
        self.generator = generator or GeminiCaptionClient(
            config.api_key, config.model, config.timeout
        )
        self.logger = ServiceLogger("gemini", config.model, _LOGGER_NAME)

    def _start(self, request: GenerationRequest) -> ServiceLogger:
        # Fail before anything goes over the wire
        if not self.config.api_key:
            raise ConfigurationError(
                "Missing API key for the generation service. "
                "Set GOOGLE_GENERATIVE_AI_API_KEY or pass api_key in CaptionConfig.",
                service="gemini",
                model=self.config.model,
            )

        request_id = f"caption-{uuid.uuid4()}"
        logger = self.logger.with_request_id(request_id)
        logger.info(
            "Starting caption generation",
            {
                "num_images": len(request.images),
                "language": request.language,
                "topic": request.topic,
                "length": request.length,
            },
        )
        return logger

    def _build_prompt(
        self, request: GenerationRequest, context: str, logger: ServiceLogger
    ) -> str:
        logger.debug("Building prompt", {"has_context": bool(context)})
        return build_prompt(
            language=request.language,
            topic=request.topic,
            length=request.length,
            user_description=request.user_description,
            context=context,
        )

    def _finish(self, raw_text: str, logger: ServiceLogger) -> CaptionOutput:
        output = parse_caption_output(raw_text, request_id=logger.request_id)
        logger.info(
            "Caption generation finished",
            {
                "num_hashtags": len(output.hashtags),
                "has_translation": output.translation is not None,
            },
        )
        return output

    @handle_generation_errors
    def generate(self, request: GenerationRequest) -> CaptionOutput:
        """Generate a caption for ``request``.

        Raises:
            ConfigurationError: If the generation API key is missing
            CaptionAgentException: If the generation service call fails
        """
        logger = self._start(request)
        context = self.retriever.search_context(build_context_query(request.topic))
        prompt = self._build_prompt(request, context, logger)
        contents = build_contents(prompt, request.images)
        raw_text = self.generator.generate_text(
            contents, request_id=logger.request_id or ""
        )
        return self._finish(raw_text, logger)

    @handle_generation_errors
    async def generate_async(self, request: GenerationRequest) -> CaptionOutput:
        """Async variant of :meth:`generate`."""
        logger = self._start(request)
        context = await self.retriever.search_context_async(
            build_context_query(request.topic)
        )
        prompt = self._build_prompt(request, context, logger)
        contents = build_contents(prompt, request.images)
        raw_text = await self.generator.generate_text_async(
            contents, request_id=logger.request_id or ""
        )
        return self._finish(raw_text, logger)

    def generate_caption(
        self,
        images: list[ImageInput],
        language: str,
        topic: str = "general",
        length: CaptionLength = "Medium",
        user_description: str = "",
    ) -> CaptionOutput:
        """Generate a caption from loose parameters; see :meth:`generate`."""
        return self.generate(
            GenerationRequest(
                images=images,
                language=language,
                topic=topic,
                length=length,
                user_description=user_description,
            )
        )

    async def generate_caption_async(
        self,
        images: list[ImageInput],
        language: str,
        topic: str = "general",
        length: CaptionLength = "Medium",
        user_description: str = "",
    ) -> CaptionOutput:
        return await self.generate_async(
            GenerationRequest(
                images=images,
                language=language,
                topic=topic,
                length=length,
                user_description=user_description,
            )
        )
