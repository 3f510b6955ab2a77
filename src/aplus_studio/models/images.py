"""Reference images supplied by the user."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from aplus_studio.utils.image_codec import (
    decode_data_uri,
    encode_data_uri,
    read_image_file,
    sniff_mime_type,
)


@dataclass(frozen=True)
class ReferenceImage:
    """Single image payload (bytes + encoding)."""

    data: bytes
    mime_type: str = "image/png"

    @classmethod
    def from_bytes(cls, data: bytes) -> "ReferenceImage":
        return cls(data=data, mime_type=sniff_mime_type(data))

    @classmethod
    def from_path(cls, path: Path) -> "ReferenceImage":
        data, mime = read_image_file(path)
        return cls(data=data, mime_type=mime)

    @classmethod
    def from_data_uri(cls, uri: str) -> "ReferenceImage":
        data, mime = decode_data_uri(uri)
        return cls(data=data, mime_type=mime)

    def to_data_uri(self) -> str:
        return encode_data_uri(self.data, self.mime_type)

    def __repr__(self) -> str:
        return f"ReferenceImage(mime_type={self.mime_type!r}, size={len(self.data)})"


class ReferenceImageSet:
    """Ordered, mutable set of product images owned by the session.

    Insertion order is meaningful (images are shown as "Image 1", "Image 2"...).
    Runs work on a `snapshot()` so edits made mid-run do not leak into it.
    """

    def __init__(self, images: Iterable[ReferenceImage] = ()):
        self._images: list[ReferenceImage] = list(images)

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[ReferenceImage]:
        return iter(self._images)

    def __getitem__(self, index: int) -> ReferenceImage:
        return self._images[index]

    @property
    def is_bundle(self) -> bool:
        """More than one product image."""
        return len(self._images) > 1

    def add(self, image: ReferenceImage) -> int:
        """Append an image and return its 1-based label."""
        self._images.append(image)
        return len(self._images)

    def extend(self, images: Iterable[ReferenceImage]) -> None:
        self._images.extend(images)

    def remove(self, index: int) -> ReferenceImage:
        """Remove the image at 0-based `index`."""
        return self._images.pop(index)

    def clear(self) -> None:
        self._images.clear()

    def labels(self) -> list[str]:
        return [f"Image {i + 1}" for i in range(len(self._images))]

    def snapshot(self) -> tuple[ReferenceImage, ...]:
        return tuple(self._images)
