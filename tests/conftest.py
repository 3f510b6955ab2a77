"""Shared fixtures for aplus-studio tests."""

from __future__ import annotations

import io
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import errors as genai_errors
from google.genai import types
from PIL import Image

from aplus_studio.config.settings import clear_settings_cache
from aplus_studio.models import GenerationJob, ReferenceImage

_SETTINGS_VARS = (
    "APLUS_LOG_LEVEL",
    "APLUS_PACING_SECONDS",
    "APLUS_HISTORY_LIMIT",
    "APLUS_STORAGE_QUOTA_BYTES",
    "APLUS_RESEARCH_MODEL",
    "APLUS_PLANNING_MODEL",
    "APLUS_IMAGE_MODEL",
    "APLUS_FALLBACK_IMAGE_MODEL",
    "APLUS_IMAGE_SIZE",
    "APLUS_ASPECT_RATIO",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temp data dir with a dummy key and no stray .env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("APLUS_DATA_DIR", str(tmp_path / "data"))
    for var in _SETTINGS_VARS:
        monkeypatch.delenv(var, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


def _png(color: str = "white") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _png()


@pytest.fixture
def product_image() -> ReferenceImage:
    return ReferenceImage(data=_png("blue"), mime_type="image/png")


@pytest.fixture
def style_image() -> ReferenceImage:
    return ReferenceImage(data=_png("green"), mime_type="image/png")


@pytest.fixture
def sample_plan() -> list[GenerationJob]:
    return [
        GenerationJob(
            category="Hero",
            visual_prompt='The exact product from the reference image. Render the text: "GLOW"',
            layout_type="SPLASH",
        ),
        GenerationJob(
            category="Ingredients",
            visual_prompt='Product with floating citrus. Render the text: "VITAMIN C"',
            layout_type="INFOGRAPHIC",
        ),
        GenerationJob(
            category="Texture",
            visual_prompt='Macro shot of the serum. Render the text: "SILKY"',
            layout_type="MACRO",
        ),
    ]


@pytest.fixture
def image_response() -> Callable[..., types.GenerateContentResponse]:
    """Factory for a model response holding one inline image."""

    def make(
        data: bytes = b"generated-image", mime_type: str = "image/png"
    ) -> types.GenerateContentResponse:
        return types.GenerateContentResponse(
            candidates=[
                types.Candidate(
                    content=types.Content(
                        role="model",
                        parts=[types.Part.from_bytes(data=data, mime_type=mime_type)],
                    )
                )
            ]
        )

    return make


@pytest.fixture
def text_response() -> Callable[[str], types.GenerateContentResponse]:
    """Factory for a model response holding only text."""

    def make(text: str) -> types.GenerateContentResponse:
        return types.GenerateContentResponse(
            candidates=[
                types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]))
            ]
        )

    return make


@pytest.fixture
def quota_error() -> genai_errors.ClientError:
    return genai_errors.ClientError(
        429,
        {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}},
    )


@pytest.fixture
def bad_request_error() -> genai_errors.ClientError:
    return genai_errors.ClientError(
        400,
        {"error": {"code": 400, "message": "Invalid image", "status": "INVALID_ARGUMENT"}},
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """Gemini client double; configure `client.models.generate_content`."""
    return MagicMock()


@pytest.fixture
def fake_generator() -> MagicMock:
    generator = MagicMock()
    generator.generate = AsyncMock(return_value=(b"generated-image", "image/png"))
    generator.generate_from_parts = AsyncMock(return_value=(b"studio-image", "image/png"))
    return generator
