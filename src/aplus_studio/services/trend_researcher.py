"""Market trend research grounded with Google Search.

Best effort: any failure yields a canned strategy so the pipeline never
blocks on research.
"""

from __future__ import annotations

from google import genai
from google.genai import types

from aplus_studio.config.logging import get_logger
from aplus_studio.exceptions import ResearchError

from .gemini import create_client, generate_content

logger = get_logger(__name__)
EMPTY_RESPONSE_FALLBACK = "Focus on clean, ingredient-forward imagery with clear benefits."
FAILURE_FALLBACK = "Focus on high-contrast, benefit-driven imagery with clear typography."


def build_research_prompt(category: str) -> str:
    return f"""Research the latest high-converting Amazon A+ content visual trends for "{category}" products.
Look for:
1. Common infographic styles (e.g. ingredient zooms, step-by-step).
2. Color palette trends.
3. Key selling points visually highlighted (e.g. "Dermatologist Tested", "Vegan").

Summarize the visual strategy in 3 bullet points."""


class TrendResearcher:
    """Summarizes current visual trends for a product category."""

    def __init__(self, client: genai.Client | None = None, model: str | None = None):
        self._client = client
        self._model = model

    def _get_client(self) -> genai.Client:
        """Lazily create Gemini client."""
        if self._client is None:
            self._client = create_client()
        return self._client

    @property
    def model(self) -> str:
        if self._model is None:
            from aplus_studio.config.settings import get_settings

            self._model = get_settings().aplus_research_model
        return self._model

    async def research(self, category: str) -> str:
        """Return a 3-bullet trend summary, or a fallback string on any failure."""
        try:
            return await self._search(category)
        except Exception as e:
            logger.warning("Market research failed, falling back to default strategy: %s", e)
            return FAILURE_FALLBACK

    async def _search(self, category: str) -> str:
        try:
            response = await generate_content(
                self._get_client(),
                self.model,
                build_research_prompt(category),
                types.GenerateContentConfig(tools=[types.Tool(google_search=types.GoogleSearch())]),
            )
        except Exception as e:
            raise ResearchError(f"Trend research failed for {category!r}", str(e)) from e
        text = (response.text or "").strip()
        if not text:
            logger.info("Research for %r returned no text, using default strategy", category)
            return EMPTY_RESPONSE_FALLBACK
        logger.info("Research for %r completed (%d chars)", category, len(text))
        return text
