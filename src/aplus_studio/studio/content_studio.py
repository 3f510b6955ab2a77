"""Session orchestration for Express runs, Studio shots and regeneration."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from aplus_studio.config.logging import get_logger
from aplus_studio.exceptions import (
    AplusStudioError,
    AssetNotFoundError,
    RegenerationInProgressError,
    ValidationError,
)
from aplus_studio.models.asset import GeneratedAsset
from aplus_studio.models.brief import StrategyBrief
from aplus_studio.models.images import ReferenceImageSet
from aplus_studio.models.plan import GenerationJob
from aplus_studio.models.prompt_text import replace_text
from aplus_studio.models.studio import (
    SCIENTIFIC_TRUST_OPTIONS,
    StudioShotConfig,
    StudioShotType,
)
from aplus_studio.services.asset_generator import AssetGenerator
from aplus_studio.services.asset_store import AssetStore
from aplus_studio.services.job_sequencer import JobSequencer, RunResult
from aplus_studio.services.prompt_planner import PromptPlanner
from aplus_studio.services.studio_prompt import (
    build_reference_parts,
    build_studio_prompt,
    shot_category,
)
from aplus_studio.services.trend_researcher import TrendResearcher
from aplus_studio.storage.kv_store import FileKeyValueStore
from aplus_studio.studio.state import AppState
from aplus_studio.utils.file_utils import write_atomically
from aplus_studio.utils.image_codec import encode_data_uri, extension_for

logger = get_logger(__name__)
ProgressCallback = Callable[[int, int], None]


class GenerationStatus(str, Enum):
    IDLE = "IDLE"
    RESEARCHING = "RESEARCHING"
    ANALYZING = "ANALYZING"
    GENERATING = "GENERATING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"


_BUSY = {GenerationStatus.RESEARCHING, GenerationStatus.ANALYZING, GenerationStatus.GENERATING}


@dataclass
class StudioProgress:
    """Progress of the current run, for display."""

    status: GenerationStatus = GenerationStatus.IDLE
    current: int = 0
    total: int = 0
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "current": self.current,
            "total": self.total,
            "errorMessage": self.error_message,
        }


def _message(error: Exception) -> str:
    return error.message if isinstance(error, AplusStudioError) else str(error)


def download_filename(asset: GeneratedAsset) -> str:
    _, mime = asset.image_bytes()
    return f"aplus-content-{asset.id}{extension_for(mime)}"


class ContentStudio:
    """One user session: product images, the asset store and run status.

    Collaborators default to settings-driven instances and can be injected
    for tests.
    """

    def __init__(
        self,
        state: AppState | None = None,
        researcher: TrendResearcher | None = None,
        planner: PromptPlanner | None = None,
        generator: AssetGenerator | None = None,
        sequencer: JobSequencer | None = None,
        store: AssetStore | None = None,
    ):
        if state is None:
            from aplus_studio.config.settings import get_settings

            settings = get_settings()
            kv = FileKeyValueStore(
                settings.ensure_data_dir(), quota_bytes=settings.aplus_storage_quota_bytes
            )
            state = AppState(kv).load()
        self.state = state
        self.researcher = researcher or TrendResearcher()
        self.planner = planner or PromptPlanner()
        self.generator = generator or AssetGenerator()
        self.sequencer = sequencer or JobSequencer(self.generator)
        self.store = store or AssetStore(sink=state)
        self.store.load_history(state.history)
        self.images = ReferenceImageSet()
        self.progress = StudioProgress()
        self.trend_summary = ""
        self._run_lock = threading.Lock()

    # ===========================================================================
    # Status
    # ===========================================================================
    @property
    def status(self) -> GenerationStatus:
        return self.progress.status

    @property
    def error_message(self) -> str | None:
        return self.progress.error_message

    @property
    def is_busy(self) -> bool:
        return self.progress.status in _BUSY

    def _set_status(self, status: GenerationStatus) -> None:
        logger.debug("Status %s -> %s", self.progress.status.value, status.value)
        self.progress.status = status

    def _fail(self, error: Exception) -> None:
        self.progress.status = GenerationStatus.ERROR
        self.progress.error_message = _message(error)

    def dismiss_error(self) -> None:
        self.progress.error_message = None
        if self.progress.status is GenerationStatus.ERROR:
            self.progress.status = GenerationStatus.IDLE

    def _require_images(self) -> None:
        if not len(self.images):
            raise ValidationError("Please upload at least one product image.")
        if self.is_busy:
            raise ValidationError("A generation run is already in progress.")

    def _claim_run(self, status: GenerationStatus, total: int = 0) -> None:
        with self._run_lock:
            if self.is_busy:
                raise ValidationError("A generation run is already in progress.")
            self.progress = StudioProgress(total=total)
            self._set_status(status)

    def _tracker(self, on_progress: ProgressCallback | None) -> ProgressCallback:
        def track(current: int, total: int) -> None:
            self.progress.current = current
            self.progress.total = total
            if on_progress:
                on_progress(current, total)

        return track

    # ===========================================================================
    # Runs
    # ===========================================================================
    async def start_batch_run(
        self, brief: StrategyBrief, on_progress: ProgressCallback | None = None
    ) -> RunResult:
        """Research, plan and generate a full A+ set (Express mode).

        The session gallery is cleared first; each image is published to the
        store as soon as it is generated.

        Raises:
            ValidationError: No product images, or a run is already active.
            PlanningError: The plan could not be produced.
            AllGenerationsFailedError: Every job failed.
        """
        self._require_images()
        snapshot = self.images.snapshot()
        if not brief.brand_guidelines and self.state.guidelines:
            brief = brief.with_guidelines(self.state.guidelines)
        self._claim_run(GenerationStatus.RESEARCHING)
        self.store.reset_gallery()
        try:
            self.trend_summary = await self.researcher.research(brief.category)
            brief = brief.with_trends(self.trend_summary)

            self._set_status(GenerationStatus.ANALYZING)
            plan = await self.planner.plan(snapshot, brief)
            logger.info("Plan ready: %d jobs for %s", len(plan), brief.category)

            self._set_status(GenerationStatus.GENERATING)
            self.progress.total = len(plan)
            result = await self.sequencer.run(
                snapshot, plan, on_progress=self._tracker(on_progress), on_asset=self.store.publish
            )
        except Exception as e:
            logger.error("Express run failed: %s", _message(e))
            self._fail(e)
            raise
        self._set_status(GenerationStatus.COMPLETE)
        if result.errors:
            logger.warning("%d of %d jobs failed", result.failed, result.total)
        return result

    async def start_single_shot(
        self,
        config: StudioShotConfig,
        shot_type: StudioShotType,
        text: str = "",
        trust_option: str | None = None,
    ) -> GeneratedAsset:
        """Generate one Studio image from explicit scene settings.

        Raises:
            ValidationError: No product images, a run is already active, or an
                unknown trust option.
            AllGenerationsFailedError: The single job failed.
        """
        self._require_images()
        if trust_option is not None and trust_option not in SCIENTIFIC_TRUST_OPTIONS:
            raise ValidationError(f"Unknown trust option: {trust_option}")
        snapshot = self.images.snapshot()
        prompt = build_studio_prompt(config, shot_type, text, self.state.guidelines, trust_option)
        job = GenerationJob(category=shot_category(shot_type), visual_prompt=prompt)
        self._claim_run(GenerationStatus.GENERATING, total=1)
        try:
            result = await self.sequencer.run(
                snapshot,
                [job],
                on_progress=self._tracker(None),
                on_asset=self.store.publish,
                style_reference=config.reference_image,
            )
        except Exception as e:
            logger.error("Studio shot failed: %s", _message(e))
            self._fail(e)
            raise
        self._set_status(GenerationStatus.COMPLETE)
        return result.assets[0]

    async def regenerate(self, asset_id: str, new_prompt: str | None = None) -> bool:
        """Re-run generation for one asset, keeping its id.

        Generation failures are not raised: the flag is cleared, the previous
        image is kept, `error_message` is set and False is returned.

        Raises:
            AssetNotFoundError: No asset with this id.
            RegenerationInProgressError: The asset is already regenerating.
            ValidationError: No product images in the session.
        """
        asset = self.store.get(asset_id)
        if asset is None:
            raise AssetNotFoundError(f"Asset not found: {asset_id}")
        if self.store.is_regenerating(asset_id):
            raise RegenerationInProgressError(f"Asset is already regenerating: {asset_id}")
        if not len(self.images):
            raise ValidationError("Please upload at least one product image.")
        prompt = new_prompt if new_prompt is not None else asset.prompt
        style_reference = asset.style_reference_image()
        self.store.begin_regenerate(asset_id, new_prompt)
        succeeded = False
        try:
            if style_reference is not None:
                parts = build_reference_parts(self.images.snapshot(), style_reference)
                data, mime = await self.generator.generate_from_parts(parts, prompt)
            else:
                data, mime = await self.generator.generate(self.images.snapshot(), prompt)
            self.store.complete_regenerate(asset_id, encode_data_uri(data, mime))
            succeeded = True
        except Exception as e:
            logger.error("Regeneration of %s failed: %s", asset_id, e)
            self.progress.error_message = f"Regeneration failed: {_message(e)}"
            return False
        finally:
            # Cancellation and other BaseExceptions must not leave the flag set
            if not succeeded:
                self.store.fail_regenerate(asset_id)
        logger.info("Regenerated %s", asset_id)
        return True

    # ===========================================================================
    # Asset editing and export
    # ===========================================================================
    def get_asset(self, asset_id: str) -> GeneratedAsset:
        asset = self.store.get(asset_id)
        if asset is None:
            raise AssetNotFoundError(f"Asset not found: {asset_id}")
        return asset

    def edit_text(self, asset_id: str, index: int, text: str) -> GeneratedAsset:
        """Replace the `index`-th on-image text of an asset's prompt.

        The image itself is unchanged until the asset is regenerated.
        """
        asset = self.get_asset(asset_id)
        try:
            prompt, requests = replace_text(asset.prompt, asset.text_requests, index, text)
        except IndexError as e:
            raise ValidationError(str(e)) from e
        self.store.update_prompt(asset_id, prompt, requests)
        return self.get_asset(asset_id)

    def download(self, asset_id: str, dest_dir: Path) -> Path:
        """Write the asset image to `dest_dir/aplus-content-<id>.<ext>`."""
        asset = self.get_asset(asset_id)
        data, _ = asset.image_bytes()
        path = dest_dir / download_filename(asset)
        write_atomically(path, data)
        logger.info("Saved %s", path)
        return path

    # ===========================================================================
    # Persisted state
    # ===========================================================================
    @property
    def guidelines(self) -> str:
        return self.state.guidelines

    def save_guidelines(self, text: str) -> None:
        self.state.save_guidelines(text.strip())

    def clear_history(self) -> None:
        self.store.clear_history()
