"""Persisted studio state: brand guidelines and the asset history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from aplus_studio.config.constants import StorageKeys
from aplus_studio.config.logging import get_logger
from aplus_studio.exceptions import StorageError
from aplus_studio.models.asset import GeneratedAsset
from aplus_studio.storage.kv_store import KeyValueStore

logger = get_logger(__name__)
_HISTORY_ADAPTER = TypeAdapter(list[GeneratedAsset])


@dataclass
class AppState:
    """Explicit load-at-start / save-on-change state.

    Reads happen once in `load()`. Guidelines are saved on every change and
    failures are logged. History saves propagate storage errors so the
    caller can trim and retry.
    """

    store: KeyValueStore
    guidelines: str = ""
    history: list[GeneratedAsset] = field(default_factory=list)

    def load(self) -> "AppState":
        self.guidelines = self._load_guidelines()
        self.history = self._load_history()
        logger.debug(
            "Loaded state: %d chars of guidelines, %d history entries",
            len(self.guidelines),
            len(self.history),
        )
        return self

    def _load_guidelines(self) -> str:
        try:
            raw = self.store.get(StorageKeys.GUIDELINES)
        except StorageError as e:
            logger.warning("Failed to load brand guidelines: %s", e)
            return ""
        return raw.decode("utf-8") if raw else ""

    def _load_history(self) -> list[GeneratedAsset]:
        try:
            raw = self.store.get(StorageKeys.HISTORY)
        except StorageError as e:
            logger.warning("Failed to load history: %s", e)
            return []
        if not raw:
            return []
        try:
            assets = _HISTORY_ADAPTER.validate_json(raw)
        except PydanticValidationError as e:
            logger.warning("Discarding unreadable history: %s", e.error_count())
            return []
        # A regeneration cannot survive a restart.
        for a in assets:
            a.is_regenerating = False
        return assets

    def save_guidelines(self, text: str) -> None:
        self.guidelines = text
        try:
            if text:
                self.store.set(StorageKeys.GUIDELINES, text.encode("utf-8"))
            else:
                self.store.remove(StorageKeys.GUIDELINES)
        except StorageError as e:
            logger.warning("Failed to persist brand guidelines: %s", e)

    def save_history(self, assets: Sequence[GeneratedAsset]) -> None:
        """Persist the history.

        Raises:
            StorageCapacityError: If the serialized history does not fit.
            StorageError: On any other storage failure.
        """
        payload = _HISTORY_ADAPTER.dump_json(list(assets), by_alias=True)
        self.store.set(StorageKeys.HISTORY, payload)
        self.history = list(assets)
