"""Prompt and reference-part construction for Studio single shots."""

from __future__ import annotations

from typing import Any, Sequence

from google.genai import types

from aplus_studio.models.images import ReferenceImage
from aplus_studio.models.prompt_text import render_text_request
from aplus_studio.models.studio import (
    SCIENTIFIC_TRUST_OPTIONS,
    SHOT_DIRECTIONS,
    StudioShotConfig,
    StudioShotType,
)

from .gemini import image_part, image_parts

STYLE_REFERENCE_LABEL = (
    "STYLE REFERENCE (use ONLY for mood, lighting and color palette; "
    "do NOT copy any product from this image):"
)


def shot_category(shot_type: StudioShotType) -> str:
    return SHOT_DIRECTIONS[shot_type][0]


def build_studio_prompt(
    config: StudioShotConfig,
    shot_type: StudioShotType,
    text: str = "",
    guidelines: str = "",
    trust_option: str | None = None,
) -> str:
    """Compose the Studio prompt from the scene settings."""
    label, direction = SHOT_DIRECTIONS[shot_type]
    lines = [
        f"Create a professional Amazon A+ '{label}' marketing image.",
        f"SHOT: {direction}",
        f"THEME: {config.theme}.",
        f"LIGHTING: {config.lighting}.",
        f"COMPOSITION: {config.composition}.",
        f"BACKGROUND: {config.background}.",
    ]
    if config.elements:
        lines.append(f"PROPS & ELEMENTS: {', '.join(config.elements)}.")
    if shot_type is StudioShotType.SCIENTIFIC and trust_option:
        lines.append(f"TRUST CUE: {SCIENTIFIC_TRUST_OPTIONS[trust_option]}.")
    if config.custom_instructions.strip():
        lines.append(f"EXTRA DETAILS: {config.custom_instructions.strip()}")
    if config.reference_image is not None:
        lines.append(
            "Match the mood and lighting of the provided style reference image "
            "without copying its products."
        )
    if config.match_brand_vibe:
        source = "style reference image" if config.reference_image is not None else "product"
        lines.append(
            f"BRAND VIBE MATCH: Extract the dominant color palette from the {source} "
            "and apply it to the scene, props and background."
        )
    if text.strip():
        lines.append(render_text_request(text.strip()))
    if guidelines.strip():
        lines.append(
            "BRAND GUIDELINES (MANDATORY - these override all other style defaults):\n"
            + guidelines.strip()
        )
    return "\n".join(lines)


def build_reference_parts(
    images: Sequence[ReferenceImage], style_reference: ReferenceImage | None = None
) -> list[Any]:
    """Product image parts, then the labelled style reference if any."""
    parts: list[Any] = image_parts(images)
    if style_reference is not None:
        parts.append(types.Part.from_text(text=STYLE_REFERENCE_LABEL))
        parts.append(image_part(style_reference))
    return parts
