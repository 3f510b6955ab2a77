"""Python bridge for a UI front end - thin facade over ContentStudio.

Every method returns a bridge response dict and never raises.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from aplus_studio.config.logging import get_logger
from aplus_studio.models.brief import BrandVibe, StrategyBrief
from aplus_studio.models.images import ReferenceImage
from aplus_studio.models.studio import StudioShotConfig, StudioShotRequest, StudioShotType

from .content_studio import ContentStudio
from .utils.bridge_types import bridge_call, bridge_error, bridge_ok

logger = get_logger(__name__)
# Dedicated executor so runs work even when called from inside an event loop.
# Two workers: a regeneration can proceed while an Express or Studio run is active.
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="aplus_run")


def _run_async(coro):
    """Run a coroutine to completion in a dedicated thread with its own loop."""

    def runner():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    return _executor.submit(runner).result()


def _dump(asset) -> dict[str, Any]:
    return asset.model_dump(by_alias=True, mode="json")


def _shot_config(data: dict[str, Any] | None) -> StudioShotConfig:
    data = dict(data or {})
    ref = data.pop("referenceImage", None) or data.pop("reference_image", None)
    config = StudioShotConfig.model_validate(data)
    if ref:
        config = config.with_reference_image(ReferenceImage.from_data_uri(ref))
    return config


class StudioBridge:
    """API exposed to the front end."""

    def __init__(self, studio: ContentStudio | None = None):
        self._studio = studio

    @property
    def studio(self) -> ContentStudio:
        if self._studio is None:
            self._studio = ContentStudio()
        return self._studio

    # ===========================================================================
    # Product images
    # ===========================================================================
    @bridge_call
    def add_images(self, images: list[str]) -> dict:
        """Add product images given as data URIs."""
        decoded = [ReferenceImage.from_data_uri(uri) for uri in images]
        self.studio.images.extend(decoded)
        return bridge_ok({"count": len(self.studio.images), "labels": self.studio.images.labels()})

    @bridge_call
    def remove_image(self, index: int) -> dict:
        if not 0 <= index < len(self.studio.images):
            return bridge_error(f"No image at position {index + 1}")
        self.studio.images.remove(index)
        return bridge_ok({"count": len(self.studio.images), "labels": self.studio.images.labels()})

    @bridge_call
    def clear_images(self) -> dict:
        self.studio.images.clear()
        return bridge_ok({"count": 0, "labels": []})

    # ===========================================================================
    # Generation
    # ===========================================================================
    @bridge_call
    def start_batch_run(
        self, category: str, vibe: str = BrandVibe.CLEAN_CLINICAL.value, notes: str = ""
    ) -> dict:
        brief = StrategyBrief(category=category, vibe=BrandVibe(vibe), notes=notes)
        result = _run_async(self.studio.start_batch_run(brief))
        return bridge_ok({**result.to_dict(), "gallery": [_dump(a) for a in result.assets]})

    @bridge_call
    def start_single_shot(
        self,
        config: dict[str, Any] | None = None,
        shot_type: str = StudioShotType.HERO.value,
        text: str = "",
        trust_option: str | None = None,
    ) -> dict:
        request = StudioShotRequest(
            config=_shot_config(config),
            shot_type=shot_type,
            text=text,
            trust_option=trust_option,
        )
        asset = _run_async(
            self.studio.start_single_shot(
                request.config, request.shot_type, request.text, request.trust_option
            )
        )
        return bridge_ok(_dump(asset))

    @bridge_call
    def regenerate(self, asset_id: str, new_prompt: str | None = None) -> dict:
        ok = _run_async(self.studio.regenerate(asset_id, new_prompt))
        if not ok:
            return bridge_error(self.studio.error_message or "Regeneration failed")
        return bridge_ok(_dump(self.studio.get_asset(asset_id)))

    @bridge_call
    def edit_text(self, asset_id: str, index: int, text: str) -> dict:
        return bridge_ok(_dump(self.studio.edit_text(asset_id, index, text)))

    @bridge_call
    def download(self, asset_id: str, dest_dir: str | None = None) -> dict:
        target = Path(dest_dir).expanduser() if dest_dir else Path.home() / "Downloads"
        path = self.studio.download(asset_id, target)
        return bridge_ok({"path": str(path)})

    # ===========================================================================
    # Gallery / history
    # ===========================================================================
    @bridge_call
    def get_gallery(self) -> dict:
        return bridge_ok([_dump(a) for a in self.studio.store.gallery.items])

    @bridge_call
    def get_history(self) -> dict:
        return bridge_ok([_dump(a) for a in self.studio.store.history.items])

    @bridge_call
    def clear_history(self) -> dict:
        self.studio.clear_history()
        return bridge_ok()

    # ===========================================================================
    # Brand guidelines
    # ===========================================================================
    @bridge_call
    def get_guidelines(self) -> dict:
        return bridge_ok({"guidelines": self.studio.guidelines})

    @bridge_call
    def save_guidelines(self, text: str) -> dict:
        self.studio.save_guidelines(text)
        return bridge_ok({"guidelines": self.studio.guidelines})

    # ===========================================================================
    # Status
    # ===========================================================================
    @bridge_call
    def get_status(self) -> dict:
        return bridge_ok(
            {
                **self.studio.progress.to_dict(),
                "trendSummary": self.studio.trend_summary,
                "imageCount": len(self.studio.images),
            }
        )

    @bridge_call
    def dismiss_error(self) -> dict:
        self.studio.dismiss_error()
        return bridge_ok()
