"""Structured view of the on-image text requests embedded in a prompt.

Prompts ask for on-image text with the literal marker
`Render the text: "<literal>"`. The prompt is scanned once into a list of
`TextRequest` tokens carrying their source span; edits splice the prompt at
that span and shift the following spans instead of re-scanning the string.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

TEXT_MARKER_PREFIX = "Render the text:"
TEXT_MARKER_RE = re.compile(r'Render the text:\s*"([^"]+)"', re.IGNORECASE)


class TextRequest(BaseModel):
    """One on-image text request located in a prompt string."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
    literal_text: str
    source_span: tuple[int, int]


def render_text_request(literal: str) -> str:
    """Serialize a literal to the marker syntax."""
    # A double quote would terminate the marker early
    safe = literal.replace('"', "'")
    return f'{TEXT_MARKER_PREFIX} "{safe}"'


def parse_text_requests(prompt: str) -> list[TextRequest]:
    """Scan a prompt for all text-render markers, in order."""
    return [
        TextRequest(literal_text=m.group(1), source_span=(m.start(), m.end()))
        for m in TEXT_MARKER_RE.finditer(prompt)
    ]


def replace_text(
    prompt: str, requests: list[TextRequest], index: int, new_text: str
) -> tuple[str, list[TextRequest]]:
    """Replace the literal of the `index`-th text request.

    Returns:
        The new prompt and the updated request list.

    Raises:
        IndexError: If `index` does not address an existing request.
    """
    if not 0 <= index < len(requests):
        raise IndexError(f"Text request {index} out of range ({len(requests)} present)")
    start, end = requests[index].source_span
    marker = render_text_request(new_text)
    new_prompt = prompt[:start] + marker + prompt[end:]
    delta = len(marker) - (end - start)
    updated: list[TextRequest] = []
    for i, req in enumerate(requests):
        if i < index:
            updated.append(req)
        elif i == index:
            literal = new_text.replace('"', "'")
            updated.append(
                TextRequest(literal_text=literal, source_span=(start, start + len(marker)))
            )
        else:
            s, e = req.source_span
            updated.append(req.model_copy(update={"source_span": (s + delta, e + delta)}))
    return new_prompt, updated
