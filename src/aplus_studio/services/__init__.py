"""Generation services.

Keep imports lazy so lightweight modules (like `asset_store`) can be used
without importing the Gemini SDK.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

__all__ = [
    "AssetGenerator",
    "AssetStore",
    "JobSequencer",
    "PromptPlanner",
    "RunResult",
    "TrendResearcher",
]

if TYPE_CHECKING:
    from .asset_generator import AssetGenerator as AssetGenerator
    from .asset_store import AssetStore as AssetStore
    from .job_sequencer import JobSequencer as JobSequencer
    from .job_sequencer import RunResult as RunResult
    from .prompt_planner import PromptPlanner as PromptPlanner
    from .trend_researcher import TrendResearcher as TrendResearcher


def __getattr__(name: str):
    if name == "AssetGenerator":
        from .asset_generator import AssetGenerator

        return AssetGenerator
    if name == "AssetStore":
        from .asset_store import AssetStore

        return AssetStore
    if name in ("JobSequencer", "RunResult"):
        from . import job_sequencer

        return getattr(job_sequencer, name)
    if name == "PromptPlanner":
        from .prompt_planner import PromptPlanner

        return PromptPlanner
    if name == "TrendResearcher":
        from .trend_researcher import TrendResearcher

        return TrendResearcher
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
