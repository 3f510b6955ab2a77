"""Strategy brief for an Express run."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class BrandVibe(str, Enum):
    """Tone of the generated set."""

    CLEAN_CLINICAL = "Clean & Clinical"
    NATURAL_ORGANIC = "Natural & Organic"
    LUXURY_MINIMAL = "Luxury & Minimal"
    BOLD_HIGH_CONTRAST = "Bold & High Contrast"


VIBE_DESCRIPTIONS: dict[BrandVibe, str] = {
    BrandVibe.CLEAN_CLINICAL: "Dermatological, white space.",
    BrandVibe.NATURAL_ORGANIC: "Botanicals, soft light.",
    BrandVibe.LUXURY_MINIMAL: "High end, moody.",
    BrandVibe.BOLD_HIGH_CONTRAST: "Gen-Z, vibrant colors.",
}


class StrategyBrief(BaseModel):
    """Immutable snapshot of the user's strategy settings for one planning call."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
    category: str = Field(min_length=1, description="Product category, e.g. 'Vitamin C Serum'")
    vibe: BrandVibe = BrandVibe.CLEAN_CLINICAL
    notes: str = Field(default="", description="Freeform extra details")
    brand_guidelines: str = Field(default="", description="Brand rules; override style defaults")
    trend_summary: str = Field(default="", description="Filled in once research completes")

    @field_validator("category", mode="before")
    @classmethod
    def _strip_category(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    def with_trends(self, trend_summary: str) -> "StrategyBrief":
        return self.model_copy(update={"trend_summary": trend_summary})

    def with_guidelines(self, guidelines: str) -> "StrategyBrief":
        return self.model_copy(update={"brand_guidelines": guidelines})
