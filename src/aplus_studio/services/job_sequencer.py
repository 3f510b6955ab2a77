"""Sequential, paced execution of a generation plan."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from aplus_studio.config.logging import get_logger
from aplus_studio.exceptions import (
    AllGenerationsFailedError,
    ConfigurationError,
    GenerationRefusedError,
)
from aplus_studio.models.asset import GeneratedAsset
from aplus_studio.models.images import ReferenceImage
from aplus_studio.models.plan import GenerationJob
from aplus_studio.utils.image_codec import encode_data_uri

from .asset_generator import AssetGenerator
from .studio_prompt import build_reference_parts

logger = get_logger(__name__)
ProgressCallback = Callable[[int, int], None]
AssetCallback = Callable[[GeneratedAsset], None]
SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class RunResult:
    """Outcome of one run over a plan."""

    total: int = 0
    assets: list[GeneratedAsset] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.assets)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "assetIds": [a.id for a in self.assets],
            "errors": self.errors,
        }


class JobSequencer:
    """Runs generation jobs one at a time, in plan order.

    A fixed pacing delay precedes every job but the first to stay under
    upstream per-caller rate limits. A failing job is recorded and skipped;
    only a run where every job failed is an error.
    """

    def __init__(
        self,
        generator: AssetGenerator,
        pacing_seconds: float | None = None,
        sleep_fn: SleepFn = asyncio.sleep,
    ):
        self._generator = generator
        if pacing_seconds is None:
            from aplus_studio.config.settings import get_settings

            pacing_seconds = get_settings().aplus_pacing_seconds
        self._pacing = pacing_seconds
        self._sleep = sleep_fn

    @property
    def pacing_seconds(self) -> float:
        return self._pacing

    async def run(
        self,
        images: Sequence[ReferenceImage],
        plan: Sequence[GenerationJob],
        on_progress: ProgressCallback | None = None,
        on_asset: AssetCallback | None = None,
        style_reference: ReferenceImage | None = None,
    ) -> RunResult:
        """Execute every job of the plan.

        Args:
            images: Product images, snapshotted when the run starts.
            plan: Jobs to execute, in order.
            on_progress: Called with (current, total) before each attempt, 1-based.
            on_asset: Called with each new asset as soon as it is generated.
            style_reference: Optional Studio style image sent after the products.
        Returns:
            RunResult with the generated assets and per-job errors.
        Raises:
            AllGenerationsFailedError: If the plan had jobs and none succeeded.
        """
        snapshot = tuple(images)
        jobs = list(plan)
        result = RunResult(total=len(jobs))
        parts = None
        style_ref_uri = None
        if style_reference is not None:
            parts = build_reference_parts(snapshot, style_reference)
            style_ref_uri = style_reference.to_data_uri()
        for i, job in enumerate(jobs):
            if i > 0 and self._pacing > 0:
                await self._sleep(self._pacing)
            if on_progress:
                on_progress(i + 1, len(jobs))
            try:
                if parts is not None:
                    data, mime = await self._generator.generate_from_parts(parts, job.visual_prompt)
                else:
                    data, mime = await self._generator.generate(snapshot, job.visual_prompt)
            except ConfigurationError:
                raise
            except GenerationRefusedError as e:
                result.errors.append(f"Job {i + 1} ({job.category}): {e.message}")
                logger.warning("Job %d/%d refused: %s", i + 1, len(jobs), e.reason[:200])
                continue
            except Exception as e:
                result.errors.append(f"Job {i + 1} ({job.category}): {e}")
                logger.error("Failed to generate image %d/%d: %s", i + 1, len(jobs), e)
                continue
            asset = GeneratedAsset.create(
                image_data=encode_data_uri(data, mime),
                prompt=job.visual_prompt,
                category=job.category,
                layout_type=job.layout_type,
                text_requests=list(job.text_requests),
                style_reference=style_ref_uri,
            )
            result.assets.append(asset)
            logger.info("Generated image %d/%d: %s", i + 1, len(jobs), asset.id)
            if on_asset:
                on_asset(asset)
        if jobs and not result.assets:
            raise AllGenerationsFailedError(result.errors)
        return result
