"""Caption generation API."""

from __future__ import annotations

from caption_agent.agent import CaptionAgent
from caption_agent.logging import log_debug
from caption_agent.models import CaptionConfig, CaptionOutput, GenerationRequest

# One agent per distinct config, so its HTTP clients are reused across calls
_AGENT_INSTANCES: dict[str, CaptionAgent] = {}


def get_agent(config: CaptionConfig) -> CaptionAgent:
    """Get or create the agent for the given config.

    Args:
        config: Service configuration (both API keys, model)

    Returns:
        The cached :class:`CaptionAgent` for an equal config
    """
    key = config.model_dump_json()
    if key not in _AGENT_INSTANCES:
        log_debug(
            "Creating caption agent",
            context={"model": config.model, "num_agents": len(_AGENT_INSTANCES) + 1},
            logger_name="caption_agent.api",
        )
        _AGENT_INSTANCES[key] = CaptionAgent(config)
    return _AGENT_INSTANCES[key]


def generate_caption(request: GenerationRequest, config: CaptionConfig) -> CaptionOutput:
    """Generate a caption for the given request.

    Args:
        request: The caption generation request
        config: Service configuration (both API keys, model)

    Returns:
        CaptionOutput with caption, hashtags and optional translation. A reply
        the model got wrong comes back as the fallback output, not an error.

    Raises:
        ConfigurationError: If the generation API key is missing
        CaptionAgentException: If the generation service call fails
    """
    return get_agent(config).generate(request)


async def generate_caption_async(
    request: GenerationRequest, config: CaptionConfig
) -> CaptionOutput:
    """Async variant of :func:`generate_caption`."""
    return await get_agent(config).generate_async(request)
