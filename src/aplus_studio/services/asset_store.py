"""Gallery and history of generated assets.

Every change is a single event. The session gallery and the persisted history
are independent projections of the same event stream: each keeps its own copy
of every asset and applies events by id, ignoring ids it does not hold.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, Sequence, Union

from tenacity import RetryCallState, retry, retry_if_exception_type

from aplus_studio.config.logging import get_logger
from aplus_studio.exceptions import StorageCapacityError, StorageError
from aplus_studio.models.asset import GeneratedAsset
from aplus_studio.models.prompt_text import TextRequest, parse_text_requests

logger = get_logger(__name__)


@dataclass(frozen=True)
class AssetPublished:
    asset: GeneratedAsset


@dataclass(frozen=True)
class RegenerateStarted:
    asset_id: str
    prompt: str | None = None
    text_requests: tuple[TextRequest, ...] = ()


@dataclass(frozen=True)
class RegenerateCompleted:
    asset_id: str
    image_data: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class RegenerateFailed:
    asset_id: str


@dataclass(frozen=True)
class PromptUpdated:
    asset_id: str
    prompt: str
    text_requests: tuple[TextRequest, ...] = ()


AssetEvent = Union[
    AssetPublished, RegenerateStarted, RegenerateCompleted, RegenerateFailed, PromptUpdated
]


class Projection:
    """Ordered, id-addressable view over asset events."""

    def __init__(self) -> None:
        self._items: list[GeneratedAsset] = []

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, asset_id: object) -> bool:
        return isinstance(asset_id, str) and self.find(asset_id) is not None

    @property
    def items(self) -> list[GeneratedAsset]:
        return [a.model_copy(deep=True) for a in self._items]

    def find(self, asset_id: str) -> GeneratedAsset | None:
        return next((a for a in self._items if a.id == asset_id), None)

    def clear(self) -> None:
        self._items.clear()

    def _insert(self, asset: GeneratedAsset) -> None:
        self._items.append(asset)

    def apply(self, event: AssetEvent) -> bool:
        """Apply one event; returns True if this projection changed."""
        if isinstance(event, AssetPublished):
            self._insert(event.asset.model_copy(deep=True))
            return True
        target = self.find(event.asset_id)
        if target is None:
            return False
        if isinstance(event, RegenerateStarted):
            target.is_regenerating = True
            if event.prompt is not None:
                target.set_prompt(event.prompt, list(event.text_requests))
        elif isinstance(event, RegenerateCompleted):
            target.is_regenerating = False
            target.image_data = event.image_data
            target.created_at = event.created_at
        elif isinstance(event, RegenerateFailed):
            target.is_regenerating = False
        elif isinstance(event, PromptUpdated):
            target.set_prompt(event.prompt, list(event.text_requests))
        return True


class GalleryProjection(Projection):
    """Current-session results, in generation order."""


class HistoryProjection(Projection):
    """Most-recent-first record of past results, bounded in size."""

    def __init__(self, limit: int):
        super().__init__()
        self.limit = limit

    def _insert(self, asset: GeneratedAsset) -> None:
        self._items.insert(0, asset)
        del self._items[self.limit :]

    def seed(self, assets: Sequence[GeneratedAsset]) -> None:
        """Replace contents with previously persisted entries."""
        self._items = [a.model_copy(update={"is_regenerating": False}) for a in assets]
        del self._items[self.limit :]

    def trim_oldest(self) -> GeneratedAsset | None:
        return self._items.pop() if self._items else None


class HistorySink(Protocol):
    def save_history(self, assets: Sequence[GeneratedAsset]) -> None: ...


def _history_exhausted(retry_state: RetryCallState) -> bool:
    store: AssetStore = retry_state.args[0]
    return len(store.history) == 0


def _drop_oldest(retry_state: RetryCallState) -> None:
    store: AssetStore = retry_state.args[0]
    dropped = store.history.trim_oldest()
    logger.warning(
        "History storage full, dropped oldest entry %s (%d left)",
        dropped.id if dropped else "-",
        len(store.history),
    )


class AssetStore:
    """Event-driven store holding the gallery and the history."""

    def __init__(self, history_limit: int | None = None, sink: HistorySink | None = None):
        if history_limit is None:
            from aplus_studio.config.settings import get_settings

            history_limit = get_settings().aplus_history_limit
        self.gallery = GalleryProjection()
        self.history = HistoryProjection(history_limit)
        self._sink = sink
        # Batch runs and regenerations emit from different worker threads
        self._lock = threading.RLock()

    def load_history(self, assets: Sequence[GeneratedAsset]) -> None:
        """Seed history from storage. Regenerating flags are reset."""
        with self._lock:
            self.history.seed(assets)
        logger.debug("Loaded %d history entries", len(self.history))

    def emit(self, event: AssetEvent) -> None:
        with self._lock:
            self.gallery.apply(event)
            if self.history.apply(event):
                self._persist()

    def publish(self, asset: GeneratedAsset) -> None:
        self.emit(AssetPublished(asset))

    def begin_regenerate(self, asset_id: str, new_prompt: str | None = None) -> None:
        requests = tuple(parse_text_requests(new_prompt)) if new_prompt is not None else ()
        self.emit(RegenerateStarted(asset_id, new_prompt, requests))

    def complete_regenerate(self, asset_id: str, image_data: str) -> None:
        self.emit(RegenerateCompleted(asset_id, image_data))

    def fail_regenerate(self, asset_id: str) -> None:
        self.emit(RegenerateFailed(asset_id))

    def update_prompt(
        self, asset_id: str, prompt: str, text_requests: Sequence[TextRequest] | None = None
    ) -> None:
        if text_requests is None:
            text_requests = parse_text_requests(prompt)
        self.emit(PromptUpdated(asset_id, prompt, tuple(text_requests)))

    def clear_history(self) -> None:
        with self._lock:
            self.history.clear()
            self._persist()

    def reset_gallery(self) -> None:
        with self._lock:
            self.gallery.clear()

    def get(self, asset_id: str) -> GeneratedAsset | None:
        """Look up an asset, gallery first, then history. Returns a copy."""
        with self._lock:
            found = self.gallery.find(asset_id) or self.history.find(asset_id)
            return found.model_copy(deep=True) if found else None

    def is_regenerating(self, asset_id: str) -> bool:
        with self._lock:
            return any(
                a is not None and a.is_regenerating
                for a in (self.gallery.find(asset_id), self.history.find(asset_id))
            )

    def _persist(self) -> None:
        if self._sink is None:
            return
        try:
            self._save_history()
        except StorageCapacityError as e:
            logger.warning("History could not be persisted even when empty: %s", e)
        except StorageError as e:
            logger.warning("Failed to persist history: %s", e)

    @retry(
        retry=retry_if_exception_type(StorageCapacityError),
        stop=_history_exhausted,
        before_sleep=_drop_oldest,
        reraise=True,
    )
    def _save_history(self) -> None:
        assert self._sink is not None
        self._sink.save_history(self.history.items)
