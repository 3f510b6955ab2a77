"""Tests for ContentStudio orchestration."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from aplus_studio.exceptions import (
    AllGenerationsFailedError,
    AssetNotFoundError,
    GenerationFailedError,
    PlanningError,
    RegenerationInProgressError,
    ValidationError,
)
from aplus_studio.models import (
    GeneratedAsset,
    StrategyBrief,
    StudioShotConfig,
    StudioShotType,
)
from aplus_studio.services.asset_store import AssetStore
from aplus_studio.services.job_sequencer import JobSequencer
from aplus_studio.storage.kv_store import InMemoryKeyValueStore
from aplus_studio.studio.content_studio import ContentStudio, GenerationStatus
from aplus_studio.studio.state import AppState
from aplus_studio.utils.image_codec import encode_data_uri


@pytest.fixture
def studio(fake_generator, sample_plan, product_image) -> ContentStudio:
    state = AppState(InMemoryKeyValueStore())
    researcher = MagicMock()
    researcher.research = AsyncMock(return_value="- trend one")
    planner = MagicMock()
    planner.plan = AsyncMock(return_value=sample_plan)
    s = ContentStudio(
        state=state,
        researcher=researcher,
        planner=planner,
        generator=fake_generator,
        sequencer=JobSequencer(fake_generator, pacing_seconds=0),
        store=AssetStore(history_limit=20, sink=state),
    )
    s.images.add(product_image)
    return s


def _publish(studio: ContentStudio, prompt: str = 'Hero. Render the text: "OLD"') -> GeneratedAsset:
    asset = GeneratedAsset.create(encode_data_uri(b"original"), prompt, "Hero")
    studio.store.publish(asset)
    return asset


class TestBatchRun:
    """Tests for the Express run."""

    @pytest.mark.asyncio
    async def test_full_run(self, studio, sample_plan):
        result = await studio.start_batch_run(StrategyBrief(category="Serum"))

        assert result.succeeded == len(sample_plan)
        assert studio.status is GenerationStatus.COMPLETE
        assert [a.id for a in studio.store.gallery.items] == [a.id for a in result.assets]
        assert len(studio.store.history) == len(sample_plan)
        assert studio.trend_summary == "- trend one"

    @pytest.mark.asyncio
    async def test_status_transitions(self, studio, sample_plan):
        seen = []

        async def research(category):
            seen.append(studio.status)
            return "trends"

        async def plan(images, brief):
            seen.append(studio.status)
            return sample_plan

        studio.researcher.research = AsyncMock(side_effect=research)
        studio.planner.plan = AsyncMock(side_effect=plan)
        progress = []

        await studio.start_batch_run(
            StrategyBrief(category="Serum"), on_progress=lambda c, t: progress.append(studio.status)
        )

        assert seen == [GenerationStatus.RESEARCHING, GenerationStatus.ANALYZING]
        assert set(progress) == {GenerationStatus.GENERATING}
        assert studio.progress.current == studio.progress.total == len(sample_plan)

    @pytest.mark.asyncio
    async def test_brief_gets_trends_and_saved_guidelines(self, studio):
        studio.save_guidelines("Teal only.")
        await studio.start_batch_run(StrategyBrief(category="Serum"))
        images, brief = studio.planner.plan.call_args.args
        assert brief.trend_summary == "- trend one"
        assert brief.brand_guidelines == "Teal only."
        assert images == studio.images.snapshot()

    @pytest.mark.asyncio
    async def test_new_run_clears_gallery_keeps_history(self, studio, sample_plan):
        _publish(studio)
        await studio.start_batch_run(StrategyBrief(category="Serum"))
        assert len(studio.store.gallery) == len(sample_plan)
        assert len(studio.store.history) == len(sample_plan) + 1

    @pytest.mark.asyncio
    async def test_requires_images(self, studio):
        studio.images.clear()
        with pytest.raises(ValidationError):
            await studio.start_batch_run(StrategyBrief(category="Serum"))
        studio.researcher.research.assert_not_called()

    @pytest.mark.asyncio
    async def test_planning_error_sets_error_status(self, studio, fake_generator):
        studio.planner.plan = AsyncMock(
            side_effect=PlanningError("Failed to parse the AI strategy plan.")
        )
        with pytest.raises(PlanningError):
            await studio.start_batch_run(StrategyBrief(category="Serum"))
        assert studio.status is GenerationStatus.ERROR
        assert studio.error_message == "Failed to parse the AI strategy plan."
        fake_generator.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_all_failed_sets_error_status(self, studio, fake_generator):
        fake_generator.generate.side_effect = GenerationFailedError("boom")
        with pytest.raises(AllGenerationsFailedError):
            await studio.start_batch_run(StrategyBrief(category="Serum"))
        assert studio.status is GenerationStatus.ERROR
        assert studio.error_message == "All image generations failed"

    @pytest.mark.asyncio
    async def test_dismiss_error(self, studio):
        studio.planner.plan = AsyncMock(side_effect=PlanningError("nope"))
        with pytest.raises(PlanningError):
            await studio.start_batch_run(StrategyBrief(category="Serum"))
        studio.dismiss_error()
        assert studio.error_message is None
        assert studio.status is GenerationStatus.IDLE


class TestSingleShot:
    """Tests for Studio single shots."""

    @pytest.mark.asyncio
    async def test_single_shot_with_style_reference(self, studio, fake_generator, style_image):
        config = StudioShotConfig(theme="Botanical").with_reference_image(style_image)

        asset = await studio.start_single_shot(config, StudioShotType.TEXTURE, text="SILKY")

        assert asset.category == "Texture Zoom"
        assert [r.literal_text for r in asset.text_requests] == ["SILKY"]
        fake_generator.generate_from_parts.assert_awaited_once()
        assert studio.store.get(asset.id) is not None
        assert studio.status is GenerationStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_single_shot_without_style_uses_images(self, studio, fake_generator):
        await studio.start_single_shot(StudioShotConfig(), StudioShotType.HERO)
        fake_generator.generate.assert_awaited_once()
        fake_generator.generate_from_parts.assert_not_called()

    @pytest.mark.asyncio
    async def test_guidelines_in_prompt(self, studio, fake_generator):
        studio.save_guidelines("Never show hands.")
        await studio.start_single_shot(StudioShotConfig(), StudioShotType.HERO)
        prompt = fake_generator.generate.call_args.args[1]
        assert "Never show hands." in prompt

    @pytest.mark.asyncio
    async def test_unknown_trust_option(self, studio):
        with pytest.raises(ValidationError, match="trust option"):
            await studio.start_single_shot(
                StudioShotConfig(), StudioShotType.SCIENTIFIC, trust_option="ASTROLOGY"
            )

    @pytest.mark.asyncio
    async def test_failure_sets_error(self, studio, fake_generator):
        fake_generator.generate.side_effect = GenerationFailedError("boom")
        with pytest.raises(AllGenerationsFailedError):
            await studio.start_single_shot(StudioShotConfig(), StudioShotType.HERO)
        assert studio.status is GenerationStatus.ERROR


class TestRegenerate:
    """Regeneration keeps identity and never destroys the previous image."""

    @pytest.mark.asyncio
    async def test_success_preserves_id(self, studio, fake_generator, product_image):
        asset = _publish(studio)
        fake_generator.generate.return_value = (b"regenerated", "image/png")

        ok = await studio.regenerate(asset.id, 'Better. Render the text: "NEW"')

        assert ok is True
        for projection in (studio.store.gallery, studio.store.history):
            entry = projection.find(asset.id)
            assert entry.image_data == encode_data_uri(b"regenerated")
            assert entry.prompt == 'Better. Render the text: "NEW"'
            assert not entry.is_regenerating
        images, prompt = fake_generator.generate.call_args.args
        assert images == (product_image,)
        assert prompt == 'Better. Render the text: "NEW"'

    @pytest.mark.asyncio
    async def test_without_new_prompt_reuses_old(self, studio, fake_generator):
        asset = _publish(studio)
        await studio.regenerate(asset.id)
        assert fake_generator.generate.call_args.args[1] == asset.prompt
        assert studio.store.get(asset.id).prompt == asset.prompt

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_image(self, studio, fake_generator):
        asset = _publish(studio)
        fake_generator.generate.side_effect = GenerationFailedError("Image generation failed")

        ok = await studio.regenerate(asset.id, "different prompt")

        assert ok is False
        entry = studio.store.get(asset.id)
        assert entry.image_data == asset.image_data
        assert not entry.is_regenerating
        assert studio.error_message == "Regeneration failed: Image generation failed"

    @pytest.mark.asyncio
    async def test_unknown_id(self, studio):
        with pytest.raises(AssetNotFoundError):
            await studio.regenerate("img-missing")

    @pytest.mark.asyncio
    async def test_already_regenerating(self, studio, fake_generator):
        asset = _publish(studio)
        studio.store.begin_regenerate(asset.id)
        with pytest.raises(RegenerationInProgressError):
            await studio.regenerate(asset.id)
        fake_generator.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancelled_generation_clears_flag(self, studio, fake_generator):
        asset = _publish(studio)
        fake_generator.generate.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await studio.regenerate(asset.id, "different prompt")

        entry = studio.store.get(asset.id)
        assert not entry.is_regenerating
        assert entry.image_data == asset.image_data
        assert not studio.store.is_regenerating(asset.id)

    @pytest.mark.asyncio
    async def test_studio_asset_keeps_style_reference(
        self, studio, fake_generator, product_image, style_image
    ):
        asset = GeneratedAsset.create(
            encode_data_uri(b"original"),
            "Hero in gold",
            "Hero",
            style_reference=style_image.to_data_uri(),
        )
        studio.store.publish(asset)

        assert await studio.regenerate(asset.id, "Hero in silver") is True

        fake_generator.generate.assert_not_called()
        parts, prompt = fake_generator.generate_from_parts.call_args.args
        assert parts[0].inline_data.data == product_image.data
        assert parts[-1].inline_data.data == style_image.data
        assert prompt == "Hero in silver"
        entry = studio.store.get(asset.id)
        assert entry.image_data == encode_data_uri(b"studio-image")
        assert entry.style_reference == style_image.to_data_uri()

    @pytest.mark.asyncio
    async def test_regenerated_mime_type_is_kept(self, studio, fake_generator, tmp_path: Path):
        asset = _publish(studio)
        fake_generator.generate.return_value = (b"jpeg-bytes", "image/jpeg")

        await studio.regenerate(asset.id)

        assert studio.store.get(asset.id).image_data.startswith("data:image/jpeg;base64,")
        path = studio.download(asset.id, tmp_path / "out")
        assert path.name == f"aplus-content-{asset.id}.jpg"
        assert path.read_bytes() == b"jpeg-bytes"

    @pytest.mark.asyncio
    async def test_history_entry_can_be_regenerated(self, studio, fake_generator):
        asset = _publish(studio)
        studio.store.reset_gallery()
        assert await studio.regenerate(asset.id) is True
        assert studio.store.history.find(asset.id).image_data == encode_data_uri(
            *fake_generator.generate.return_value
        )


class TestEditAndDownload:
    """Tests for text edits and downloads."""

    def test_edit_text(self, studio):
        asset = _publish(studio, 'A. Render the text: "ONE" B. Render the text: "TWO"')

        updated = studio.edit_text(asset.id, 1, "THREE")

        assert updated.prompt == 'A. Render the text: "ONE" B. Render the text: "THREE"'
        assert [r.literal_text for r in updated.text_requests] == ["ONE", "THREE"]
        assert updated.image_data == asset.image_data
        assert studio.store.history.find(asset.id).prompt == updated.prompt

    def test_edit_text_bad_index(self, studio):
        asset = _publish(studio)
        with pytest.raises(ValidationError):
            studio.edit_text(asset.id, 5, "X")

    def test_edit_text_unknown_asset(self, studio):
        with pytest.raises(AssetNotFoundError):
            studio.edit_text("img-missing", 0, "X")

    def test_download(self, studio, tmp_path: Path):
        asset = _publish(studio)
        path = studio.download(asset.id, tmp_path / "out")
        assert path.name == f"aplus-content-{asset.id}.png"
        assert path.read_bytes() == b"original"


class TestPersistedState:
    """Tests for guidelines and history wiring."""

    def test_history_loaded_at_start(self, fake_generator):
        kv = InMemoryKeyValueStore()
        first = AppState(kv)
        entry = GeneratedAsset.create(encode_data_uri(b"x"), "p", "Hero")
        first.save_history([entry])

        studio = ContentStudio(
            state=AppState(kv).load(),
            researcher=MagicMock(),
            planner=MagicMock(),
            generator=fake_generator,
        )

        assert [a.id for a in studio.store.history.items] == [entry.id]
        assert len(studio.store.gallery) == 0

    def test_save_guidelines_strips(self, studio):
        studio.save_guidelines("  Teal only.  ")
        assert studio.guidelines == "Teal only."

    def test_clear_history(self, studio):
        _publish(studio)
        studio.clear_history()
        assert len(studio.store.history) == 0

    def test_defaults_from_settings(self, tmp_path):
        studio = ContentStudio()
        assert studio.sequencer.pacing_seconds == 1.5
        assert studio.store.history.limit == 20
        assert (tmp_path / "data").is_dir()
