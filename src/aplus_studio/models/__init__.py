"""Data models."""

from .asset import GeneratedAsset, new_asset_id
from .brief import BrandVibe, StrategyBrief
from .images import ReferenceImage, ReferenceImageSet
from .plan import GenerationJob, LayoutType
from .prompt_text import TextRequest, parse_text_requests, render_text_request, replace_text
from .studio import StudioShotConfig, StudioShotRequest, StudioShotType

__all__ = [
    "BrandVibe",
    "GeneratedAsset",
    "GenerationJob",
    "LayoutType",
    "ReferenceImage",
    "ReferenceImageSet",
    "StrategyBrief",
    "StudioShotConfig",
    "StudioShotRequest",
    "StudioShotType",
    "TextRequest",
    "new_asset_id",
    "parse_text_requests",
    "render_text_request",
    "replace_text",
]
