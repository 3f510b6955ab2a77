"""Generated marketing images."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from aplus_studio.utils.image_codec import decode_data_uri

from .images import ReferenceImage
from .plan import LayoutType, coerce_layout
from .prompt_text import TextRequest, parse_text_requests


def new_asset_id() -> str:
    return f"img-{uuid4().hex}"


class GeneratedAsset(BaseModel):
    """A generated image plus the prompt that produced it.

    `id` is assigned once and kept across regenerations so gallery and history
    entries stay addressable by the same key.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
    id: str = Field(default_factory=new_asset_id)
    image_data: str = Field(description="Image as a data URI")
    prompt: str
    category: str
    layout_type: LayoutType | None = None
    is_regenerating: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    text_requests: list[TextRequest] = Field(default_factory=list)
    style_reference: str | None = Field(
        default=None, description="Studio style image as a data URI, reused on regeneration"
    )

    @field_validator("layout_type", mode="before")
    @classmethod
    def _coerce_layout(cls, v: object) -> LayoutType | None:
        return coerce_layout(v)

    @classmethod
    def create(
        cls,
        image_data: str,
        prompt: str,
        category: str,
        layout_type: LayoutType | None = None,
        text_requests: list[TextRequest] | None = None,
        style_reference: str | None = None,
    ) -> "GeneratedAsset":
        """Factory assigning a fresh id and parsing text requests if not given."""
        if text_requests is None:
            text_requests = parse_text_requests(prompt)
        return cls(
            image_data=image_data,
            prompt=prompt,
            category=category,
            layout_type=layout_type,
            text_requests=text_requests,
            style_reference=style_reference,
        )

    def image_bytes(self) -> tuple[bytes, str]:
        """Decode the stored data URI into (bytes, mime type)."""
        return decode_data_uri(self.image_data)

    def style_reference_image(self) -> ReferenceImage | None:
        if self.style_reference is None:
            return None
        return ReferenceImage.from_data_uri(self.style_reference)

    def set_prompt(self, prompt: str, text_requests: list[TextRequest] | None = None) -> None:
        self.prompt = prompt
        self.text_requests = (
            text_requests if text_requests is not None else parse_text_requests(prompt)
        )
