"""Shared pytest configuration and fixtures for all tests."""

import os
import warnings

import pytest

from caption_agent import api
from caption_agent.models import (
    CaptionConfig,
    ContextSearchConfig,
    GenerationRequest,
    ImageInput,
)

# Smallest byte sequences that still look like the formats they claim to be
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-jpeg-body\xff\xd9"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png-body"


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--e2e",
        action="store_true",
        default=False,
        help="Run only e2e tests (default: run only unit tests)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers",
        "unit: Unit tests that use mocks and don't make real API calls",
    )
    config.addinivalue_line(
        "markers",
        "e2e: End-to-end tests that make real API calls",
    )


def pytest_collection_modifyitems(config, items):
    """Mark tests by directory and skip the other half of the suite."""
    gemini_key_available = bool(os.getenv("GOOGLE_GENERATIVE_AI_API_KEY"))
    run_e2e = config.getoption("--e2e")

    for item in items:
        if "/e2e/" in item.nodeid:
            item.add_marker(pytest.mark.e2e)
        elif "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)

        if not run_e2e and "e2e" in item.keywords:
            item.add_marker(
                pytest.mark.skip(
                    reason="E2E tests skipped by default. Use --e2e to run them."
                )
            )

        if run_e2e and "unit" in item.keywords:
            item.add_marker(
                pytest.mark.skip(reason="Unit tests skipped when --e2e flag is used.")
            )

        if run_e2e and "e2e" in item.keywords and not gemini_key_available:
            item.add_marker(
                pytest.mark.skip(
                    reason="GOOGLE_GENERATIVE_AI_API_KEY environment variable not set"
                )
            )


@pytest.fixture(autouse=True)
def suppress_warnings():
    """Suppress specific warnings during tests."""
    warnings.filterwarnings("ignore", category=DeprecationWarning)
    warnings.filterwarnings("ignore", category=PendingDeprecationWarning)


@pytest.fixture
def jpeg_image():
    """A single JPEG upload."""
    return ImageInput(content=JPEG_BYTES, mime_type="image/jpeg")


@pytest.fixture
def png_image():
    """A single PNG upload."""
    return ImageInput(content=PNG_BYTES, mime_type="image/png")


@pytest.fixture
def caption_request(jpeg_image):
    """A basic caption request with one image."""
    return GenerationRequest(
        images=[jpeg_image],
        language="Spanish",
        topic="travel",
        length="Short",
        user_description="",
    )


@pytest.fixture
def caption_config():
    """A config with both keys present."""
    return CaptionConfig(
        api_key="test-gemini-key",
        model="gemini-2.5-flash",
        context=ContextSearchConfig(
            api_key="test-context-key",
            base_url="https://context.example.com",
        ),
    )


@pytest.fixture(autouse=True)
def clear_agent_cache():
    """Start every test without cached agents from earlier tests."""
    api._AGENT_INSTANCES.clear()
    yield
    api._AGENT_INSTANCES.clear()
