"""Generation plan produced by the planner."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from aplus_studio.config.logging import get_logger

from .prompt_text import TextRequest, parse_text_requests

logger = get_logger(__name__)


class LayoutType(str, Enum):
    SPLASH = "SPLASH"
    FLATLAY = "FLATLAY"
    NEGATIVE_SPACE = "NEGATIVE_SPACE"
    MACRO = "MACRO"
    LIFESTYLE = "LIFESTYLE"
    INFOGRAPHIC = "INFOGRAPHIC"
    BENEFIT_MAP = "BENEFIT_MAP"
    INGREDIENT_LIST = "INGREDIENT_LIST"


def coerce_layout(value: object) -> LayoutType | None:
    """Map a raw tag to LayoutType, tolerating case, spaces and unknown tags."""
    if value is None or isinstance(value, LayoutType):
        return value
    tag = str(value).strip().upper().replace(" ", "_").replace("-", "_")
    try:
        return LayoutType(tag)
    except ValueError:
        logger.debug("Unknown layout tag %r, dropping it", value)
        return None


class GenerationJob(BaseModel):
    """One planned image: category label, visual prompt and layout tag."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
    category: str = Field(min_length=1)
    visual_prompt: str = Field(min_length=1)
    layout_type: LayoutType | None = None
    text_requests: list[TextRequest] = Field(default_factory=list, exclude=True)

    @field_validator("layout_type", mode="before")
    @classmethod
    def _coerce_layout(cls, v: object) -> LayoutType | None:
        return coerce_layout(v)

    @model_validator(mode="after")
    def _index_text_requests(self) -> "GenerationJob":
        if not self.text_requests:
            self.text_requests = parse_text_requests(self.visual_prompt)
        return self
