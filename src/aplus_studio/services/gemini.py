"""Thin helpers around the google-genai SDK.

All Gemini `generate_content` calls go through `generate_content` here so the
blocking SDK call runs off the event loop in one place.
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from aplus_studio.config.logging import get_logger
from aplus_studio.config.settings import get_settings
from aplus_studio.exceptions import ConfigurationError
from aplus_studio.models.images import ReferenceImage

logger = get_logger(__name__)
QUOTA_STATUS = "RESOURCE_EXHAUSTED"


def create_client(api_key: str | None = None) -> genai.Client:
    """Create a Gemini client from the given key or the configured one."""
    key = api_key if api_key is not None else get_settings().gemini_api_key
    if not key:
        raise ConfigurationError(
            "GEMINI_API_KEY not configured", "Set it in the environment or a .env file"
        )
    return genai.Client(api_key=key, vertexai=False)


def image_part(image: ReferenceImage) -> types.Part:
    return types.Part.from_bytes(data=image.data, mime_type=image.mime_type)


def image_parts(images: Iterable[ReferenceImage]) -> list[types.Part]:
    return [image_part(img) for img in images]


async def generate_content(client: genai.Client, model: str, contents: Any, config: Any) -> Any:
    """Run `client.models.generate_content` in a worker thread."""
    return await asyncio.to_thread(
        client.models.generate_content, model=model, contents=contents, config=config
    )


def is_quota_exhausted(exc: BaseException) -> bool:
    """Check if a Gemini API error signals quota exhaustion.

    Only the structured error fields count: HTTP 429, or a RESOURCE_EXHAUSTED
    status under any code. Message text and non-API exceptions never do.
    """
    if not isinstance(exc, genai_errors.APIError):
        return False
    if exc.code == 429:
        return True
    return (exc.status or "").upper() == QUOTA_STATUS


def response_parts(response: Any) -> list[Any]:
    """Content parts of the first candidate, or an empty list."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])
