"""Studio (single-shot) authoring mode configuration."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .images import ReferenceImage

STUDIO_THEMES = ["Minimalist", "Botanical", "High-Tech", "Luxury Gold", "Neon Pop", "Clinical"]
STUDIO_LIGHTING = ["Soft Daylight", "Studio Flash", "Moody Shadow", "Golden Hour", "Neon Rim Light"]
STUDIO_COMPOSITIONS = ["Centered", "Rule of Thirds", "Low Angle", "Top Down (Flatlay)", "Close Up"]
STUDIO_ELEMENTS = [
    "Water Splash",
    "Marble Stone",
    "Tropical Leaves",
    "Lab Glassware",
    "Silk Fabric",
    "Wooden Podium",
    "Mirrors",
    "Floating Bubbles",
]
STUDIO_BACKGROUNDS = [
    "Solid Color",
    "Gradient",
    "Bathroom Counter",
    "Kitchen Counter",
    "Nature/Outdoors",
    "Abstract 3D",
    "Lab Setting",
]


class StudioShotType(str, Enum):
    HERO = "HERO"
    TEXTURE = "TEXTURE"
    INGREDIENTS = "INGREDIENTS"
    HOW_TO = "HOW_TO"
    SIZE = "SIZE"
    RANGE = "RANGE"
    BEFORE_AFTER = "BEFORE_AFTER"
    SCIENTIFIC = "SCIENTIFIC"


# (category label, shot direction)
SHOT_DIRECTIONS: dict[StudioShotType, tuple[str, str]] = {
    StudioShotType.HERO: (
        "Hero Shot",
        "A striking hero shot of the exact product from the reference image, "
        "centered as the undisputed focal point.",
    ),
    StudioShotType.TEXTURE: (
        "Texture Zoom",
        "An extreme macro close-up of the product's texture (cream swirl, gel drop or "
        "liquid pour) beside the exact product from the reference image.",
    ),
    StudioShotType.INGREDIENTS: (
        "Ingredient Map",
        "The exact product from the reference image surrounded by its key raw "
        "ingredients floating naturally around it.",
    ),
    StudioShotType.HOW_TO: (
        "How To Use",
        "A clean step-by-step usage visual showing how the product is applied, "
        "split into clearly separated numbered panels.",
    ),
    StudioShotType.SIZE: (
        "Size Reference",
        "The exact product from the reference image held in a hand or next to a common "
        "object so its real-world size is obvious.",
    ),
    StudioShotType.RANGE: (
        "Product Range",
        "All provided products arranged together as a cohesive collection, evenly lit.",
    ),
    StudioShotType.BEFORE_AFTER: (
        "Before & After",
        "A split-screen comparison: the problem on the left, the visible result on the "
        "right, with the exact product from the reference image in the middle.",
    ),
    StudioShotType.SCIENTIFIC: (
        "Scientific Trust",
        "A clean laboratory-grade scene conveying clinical credibility with the exact "
        "product from the reference image in focus.",
    ),
}

SCIENTIFIC_TRUST_OPTIONS: dict[str, str] = {
    "CLINICAL_LAB": "Clinical lab setting with microscopes and glassware",
    "MOLECULAR": "Floating 3D DNA strands and molecules",
    "DERMATOLOGIST": "Dermatologist seal and stethoscope",
    "PURE_NATURE": "Pure nature: mortar and pestle with fresh botanicals",
}


def _check_option(value: str, options: list[str], name: str) -> str:
    if value not in options:
        raise ValueError(f"Unknown {name} {value!r}; expected one of {options}")
    return value


class StudioShotConfig(BaseModel):
    """Scene settings for one Studio shot.

    Immutable: every edit produces a new config (`model_copy(update=...)`).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
    theme: str = "Minimalist"
    lighting: str = "Soft Daylight"
    composition: str = "Centered"
    elements: tuple[str, ...] = ()
    background: str = "Solid Color"
    reference_image: ReferenceImage | None = None
    custom_instructions: str = ""
    match_brand_vibe: bool = False

    @field_validator("theme")
    @classmethod
    def _theme(cls, v: str) -> str:
        return _check_option(v, STUDIO_THEMES, "theme")

    @field_validator("lighting")
    @classmethod
    def _lighting(cls, v: str) -> str:
        return _check_option(v, STUDIO_LIGHTING, "lighting")

    @field_validator("composition")
    @classmethod
    def _composition(cls, v: str) -> str:
        return _check_option(v, STUDIO_COMPOSITIONS, "composition")

    @field_validator("background")
    @classmethod
    def _background(cls, v: str) -> str:
        return _check_option(v, STUDIO_BACKGROUNDS, "background")

    @field_validator("elements")
    @classmethod
    def _elements(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for el in v:
            _check_option(el, STUDIO_ELEMENTS, "element")
        return tuple(dict.fromkeys(v))

    def toggle_element(self, element: str) -> "StudioShotConfig":
        """Return a new config with `element` added or removed."""
        _check_option(element, STUDIO_ELEMENTS, "element")
        if element in self.elements:
            elements = tuple(e for e in self.elements if e != element)
        else:
            elements = (*self.elements, element)
        return self.model_copy(update={"elements": elements})

    def with_reference_image(self, image: ReferenceImage | None) -> "StudioShotConfig":
        return self.model_copy(update={"reference_image": image})


class StudioShotRequest(BaseModel):
    """Everything needed to run one Studio shot."""

    config: StudioShotConfig = Field(default_factory=StudioShotConfig)
    shot_type: StudioShotType = StudioShotType.HERO
    text: str = ""
    trust_option: str | None = None

    @field_validator("trust_option")
    @classmethod
    def _trust(cls, v: str | None) -> str | None:
        if v is not None and v not in SCIENTIFIC_TRUST_OPTIONS:
            raise ValueError(f"Unknown trust option {v!r}")
        return v
