"""Unit tests for caption-agent data models."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from caption_agent.models import (
    CaptionConfig,
    CaptionOutput,
    ContextSearchConfig,
    ContextSearchResult,
    GenerationRequest,
    ImageInput,
    fallback_output,
)


def test_generation_request_defaults(jpeg_image):
    """GenerationRequest fills in topic, length and description defaults."""
    request = GenerationRequest(images=[jpeg_image])

    assert request.language == "English"
    assert request.topic == "general"
    assert request.length == "Medium"
    assert request.user_description == ""


def test_generation_request_requires_an_image():
    """A request without images is rejected."""
    with pytest.raises(PydanticValidationError):
        GenerationRequest(images=[], language="English")


def test_generation_request_rejects_unknown_length(jpeg_image):
    """Only Short, Medium and Long are valid lengths."""
    with pytest.raises(PydanticValidationError):
        GenerationRequest(images=[jpeg_image], language="English", length="Epic")


def test_generation_request_preserves_image_order(jpeg_image, png_image):
    """Images keep the order they were given in."""
    request = GenerationRequest(images=[png_image, jpeg_image, png_image])

    assert [i.mime_type for i in request.images] == [
        "image/png",
        "image/jpeg",
        "image/png",
    ]


def test_image_input_repr_hides_bytes():
    """Image bytes are kept out of the repr."""
    image = ImageInput(content=b"x" * 1000, mime_type="image/jpeg")

    assert "xxxx" not in repr(image)


def test_caption_output_drops_extra_fields():
    """Unknown fields in a reply are dropped."""
    output = CaptionOutput.model_validate(
        {"caption": "Hi", "hashtags": ["#a"], "mood": "sunny"}
    )

    assert output.to_dict() == {"caption": "Hi", "hashtags": ["#a"]}


def test_caption_output_keeps_duplicate_hashtags_in_order():
    """Hashtags are neither reordered nor deduplicated."""
    output = CaptionOutput(caption="Hi", hashtags=["#b", "#a", "#b"])

    assert output.hashtags == ["#b", "#a", "#b"]


@pytest.mark.parametrize(
    "payload",
    [
        {"hashtags": ["#a"]},
        {"caption": "Hi"},
        {"caption": "", "hashtags": []},
        {"caption": 42, "hashtags": ["#a"]},
        {"caption": "Hi", "hashtags": "#a #b"},
        {"caption": "Hi", "hashtags": [1, 2]},
        {"caption": "Hi", "hashtags": ["#a"], "translation": ["nope"]},
    ],
)
def test_caption_output_rejects_invalid_payloads(payload):
    """Missing or mistyped required fields fail validation."""
    with pytest.raises(PydanticValidationError):
        CaptionOutput.model_validate(payload)


def test_caption_output_to_dict_includes_translation():
    """Translation is included when present."""
    output = CaptionOutput(caption="Hola", hashtags=["#sol"], translation="Hello")

    assert output.to_dict() == {
        "caption": "Hola",
        "hashtags": ["#sol"],
        "translation": "Hello",
    }


def test_caption_output_share_text():
    """share_text puts hashtags under the caption after a blank line."""
    output = CaptionOutput(caption="Chasing sunsets.", hashtags=["#travel", "#sun"])

    assert output.share_text == "Chasing sunsets.\n\n#travel #sun"


def test_fallback_output_shape():
    """Fallback output is exactly the error caption with no hashtags."""
    assert fallback_output().to_dict() == {
        "caption": "Error generating caption.",
        "hashtags": [],
    }
    assert fallback_output().translation is None


def test_context_search_result_failure():
    """A failed lookup carries empty text and an error."""
    result = ContextSearchResult.failure("boom")

    assert result.ok is False
    assert result.text == ""
    assert result.error == "boom"


def test_caption_config_defaults():
    """CaptionConfig defaults to gemini-2.5-flash and no keys."""
    config = CaptionConfig()

    assert config.api_key is None
    assert config.model == "gemini-2.5-flash"
    assert config.timeout is None
    assert config.context.api_key is None
    assert config.context.similarity_threshold == 0.8
    assert config.context.minimum_similarity_threshold == 0.5
    assert config.context.scope == "internal"


def test_caption_config_from_env():
    """from_env resolves both keys and optional overrides."""
    config = CaptionConfig.from_env(
        {
            "GOOGLE_GENERATIVE_AI_API_KEY": "g-key",
            "ALCHEMYST_AI_API_KEY": "a-key",
            "CAPTION_AGENT_MODEL": "gemini-2.5-pro",
            "ALCHEMYST_BASE_URL": "https://context.example.com",
        }
    )

    assert config.api_key == "g-key"
    assert config.model == "gemini-2.5-pro"
    assert config.context == ContextSearchConfig(
        api_key="a-key", base_url="https://context.example.com"
    )


def test_caption_config_from_env_missing_keys():
    """Missing or empty keys become None instead of raising."""
    config = CaptionConfig.from_env({"GOOGLE_GENERATIVE_AI_API_KEY": ""})

    assert config.api_key is None
    assert config.context.api_key is None
    assert config.model == "gemini-2.5-flash"


def test_caption_config_from_process_environment(monkeypatch):
    """Without an explicit mapping, from_env reads os.environ."""
    monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "env-key")
    monkeypatch.delenv("ALCHEMYST_AI_API_KEY", raising=False)

    config = CaptionConfig.from_env()

    assert config.api_key == "env-key"
    assert config.context.api_key is None
