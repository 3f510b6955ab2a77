"""Image generation with refusal detection and a quota fallback tier.

The primary (higher quality) image model is tried first. If that call fails
with a quota-exhaustion signal, the same request is sent once to the
secondary model with a quality hint appended. Nothing is cached: identical
prompts are always re-sent.
"""

from __future__ import annotations

from typing import Any, Sequence

from google import genai
from google.genai import types

from aplus_studio.config.logging import get_logger
from aplus_studio.exceptions import (
    GenerationFailedError,
    GenerationRefusedError,
    QuotaExceededError,
)
from aplus_studio.models.images import ReferenceImage
from aplus_studio.utils.image_codec import DEFAULT_MIME

from .gemini import (
    create_client,
    generate_content,
    image_parts,
    is_quota_exhausted,
    response_parts,
)

logger = get_logger(__name__)

FIDELITY_RULES = """
CRITICAL GENERATION RULES:
1. **Text Rendering**: You are required to render specific text onto the image. The spelling must be perfect. The font should be clean, modern, and legible.
2. **Product Fidelity (VERY IMPORTANT)**:
   - The main product(s) in the image MUST be identical to the reference image(s) provided.
   - Do NOT alter logos, brand text, labels, or container shapes.
   - If multiple products are provided, ensure all relevant ones described in the prompt are present.
3. **A+ Quality**: Commercial studio quality lighting.
4. **Consistency**: Ensure liquid colors and textures match the reference."""

QUALITY_HINT = (
    "\n\nQUALITY NOTE: Prioritize sharp product detail, exact label reproduction "
    "and crisp, correctly spelled text."
)


def build_generation_prompt(prompt: str) -> str:
    """Wrap a job prompt with the fixed fidelity rules."""
    return f"{prompt.strip()}\n{FIDELITY_RULES}"


def extract_image(response: Any) -> tuple[bytes, str]:
    """Return the first inline image in a response as (bytes, mime type).

    Raises:
        GenerationRefusedError: If only text came back.
        GenerationFailedError: If the response holds neither image nor text.
    """
    parts = response_parts(response)
    if not parts:
        raise GenerationFailedError("No content generated")
    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            return inline.data, inline.mime_type or DEFAULT_MIME
    text = next((p.text for p in parts if getattr(p, "text", None)), None)
    if text:
        logger.warning("Model refused to generate image, returned text: %s", text[:200])
        raise GenerationRefusedError(text.strip())
    raise GenerationFailedError("Model did not return an image.")


class AssetGenerator:
    """Generates one marketing image per call."""

    def __init__(
        self,
        client: genai.Client | None = None,
        model: str | None = None,
        fallback_model: str | None = None,
        image_size: str | None = None,
        aspect_ratio: str | None = None,
    ):
        self._client = client
        self._model = model
        self._fallback_model = fallback_model
        self._image_size = image_size
        self._aspect_ratio = aspect_ratio

    def _get_client(self) -> genai.Client:
        """Lazily create Gemini client."""
        if self._client is None:
            self._client = create_client()
        return self._client

    def _resolve_defaults(self) -> None:
        if None in (self._model, self._fallback_model, self._image_size, self._aspect_ratio):
            from aplus_studio.config.settings import get_settings

            settings = get_settings()
            self._model = self._model or settings.aplus_image_model
            self._fallback_model = self._fallback_model or settings.aplus_fallback_image_model
            self._image_size = self._image_size or settings.aplus_image_size
            self._aspect_ratio = self._aspect_ratio or settings.aplus_aspect_ratio

    @property
    def model(self) -> str:
        self._resolve_defaults()
        return self._model  # type: ignore[return-value]

    @property
    def fallback_model(self) -> str:
        self._resolve_defaults()
        return self._fallback_model  # type: ignore[return-value]

    def _config(self) -> types.GenerateContentConfig:
        self._resolve_defaults()
        return types.GenerateContentConfig(
            image_config=types.ImageConfig(
                image_size=self._image_size, aspect_ratio=self._aspect_ratio
            )
        )

    async def generate(self, images: Sequence[ReferenceImage], prompt: str) -> tuple[bytes, str]:
        """Generate an image from the product images and a job prompt.

        Returns:
            The image bytes and their mime type.
        """
        return await self.generate_from_parts(image_parts(images), prompt)

    async def generate_from_parts(self, parts: Sequence[Any], prompt: str) -> tuple[bytes, str]:
        """Generate an image from pre-built reference parts (Studio mode).

        Raises:
            GenerationRefusedError: The model answered with text only.
            GenerationFailedError: Any other failure, including a failed fallback.
        """
        full_prompt = build_generation_prompt(prompt)
        client = self._get_client()
        try:
            response = await generate_content(
                client, self.model, [*parts, full_prompt], self._config()
            )
        except Exception as e:
            if not is_quota_exhausted(e):
                logger.error("Image generation failed: %s", e)
                raise GenerationFailedError(f"Image generation failed: {e}", e) from e
            logger.warning(
                "Quota exhausted on %s, falling back to %s", self.model, self.fallback_model
            )
            return await self._generate_fallback(client, parts, full_prompt)
        return extract_image(response)

    async def _generate_fallback(
        self, client: genai.Client, parts: Sequence[Any], full_prompt: str
    ) -> tuple[bytes, str]:
        try:
            response = await generate_content(
                client, self.fallback_model, [*parts, full_prompt + QUALITY_HINT], self._config()
            )
        except Exception as e:
            logger.error("Fallback image generation failed: %s", e)
            reason: Exception = e
            if is_quota_exhausted(e):
                reason = QuotaExceededError("All image model tiers are out of quota", str(e))
            raise GenerationFailedError(f"Image generation failed: {reason}", reason) from e
        return extract_image(response)
