"""Plans the set of marketing images for an Express run.

One call to the planning model turns the product images and the strategy
brief into an ordered list of `GenerationJob`s.
"""

from __future__ import annotations

import json
from typing import Sequence

from google import genai
from google.genai import types
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from aplus_studio.config.constants import Defaults
from aplus_studio.config.logging import get_logger
from aplus_studio.exceptions import PlanningError
from aplus_studio.models.brief import VIBE_DESCRIPTIONS, StrategyBrief
from aplus_studio.models.images import ReferenceImage
from aplus_studio.models.plan import GenerationJob, LayoutType

from .gemini import create_client, generate_content, image_parts

logger = get_logger(__name__)
_PLAN_ADAPTER = TypeAdapter(list[GenerationJob])

PLAN_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "category": types.Schema(type=types.Type.STRING),
            "visualPrompt": types.Schema(type=types.Type.STRING),
            "layoutType": types.Schema(type=types.Type.STRING),
        },
        required=["category", "visualPrompt", "layoutType"],
    ),
)


def extract_json_array(text: str) -> str:
    """Return the substring from the first `[` to the last `]`.

    Tolerates prose or markdown fences around the list.

    Raises:
        PlanningError: If there is no bracket pair.
    """
    first = text.find("[")
    last = text.rfind("]")
    if first == -1 or last == -1 or last < first:
        raise PlanningError("Failed to parse the AI strategy plan.", "No JSON array in response")
    return text[first : last + 1]


def parse_plan(text: str) -> list[GenerationJob]:
    """Decode the planner response into jobs.

    Raises:
        PlanningError: If the response does not hold a list of job records.
    """
    snippet = extract_json_array(text)
    try:
        return _PLAN_ADAPTER.validate_python(json.loads(snippet))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.error("Plan parse error. Raw text: %s", text[:500])
        raise PlanningError("Failed to parse the AI strategy plan.", str(e)) from e


def build_planning_prompt(brief: StrategyBrief, image_count: int) -> str:
    """Build the art-director instruction for the planning call."""
    is_bundle = image_count > 1
    bundle_line = f"YES (Contains {image_count} items)" if is_bundle else "NO"
    layouts = json.dumps([t.value for t in LayoutType])
    guidelines = ""
    if brief.brand_guidelines.strip():
        guidelines = f"""
BRAND GUIDELINES (MANDATORY - these override all other style defaults):
{brief.brand_guidelines.strip()}
"""
    if is_bundle:
        identity = "Since this is a bundle, analyze EACH product's container, color, and texture."
        consistency = "For 'Group Shots', ensure ALL analyzed products are present."
        archetypes = """1. **The "Ultimate Bundle Hero"**: Show ALL products arranged aesthetically together. Include a short slogan.
   Syntax: Render the text: "COMPLETE KIT"
2. **The "Routine Steps" (Infographic)**: Show the products in order of use (Step 1, Step 2).
   Syntax: Render the text: "STEP 1 & 2"
3. **The "Benefit Callout" (Infographic)**: Highlight why using these together is better (Synergy).
   Syntax: Render the text: "BETTER TOGETHER"
4. **The "Texture/Zoom"**: Show textures of BOTH/ALL products side-by-side or mixing.
   Syntax: Render the text: "TEXTURE\""""
    else:
        identity = "Analyze the liquid color, viscosity, and container."
        consistency = "If the product is a 'Transparent Blue Gel', every prompt must say so."
        archetypes = """1. **The "Market Leader Hero"**: Standard clear product shot styled to trends. Include a short slogan.
   Syntax: Render the text: "SLOGAN"
2. **The "Ingredient Map" (Infographic)**: Product + floating ingredients.
   Syntax: Render the text: "INGREDIENT NAME"
3. **The "Benefit Callout" (Infographic)**: Product with arrows pointing to features.
   Syntax: Render the text: "BENEFIT"
4. **The "Texture/Zoom"**: Macro shot of the texture.
   Syntax: Render the text: "TEXTURE\""""
    n = Defaults.PLAN_SIZE
    return f"""You are an expert Amazon A+ Content Strategist & Art Director.

INPUT CONTEXT:
Category: "{brief.category}"
Market Research on Trends: "{brief.trend_summary}"
User Notes: "{brief.notes}"
Desired Vibe: "{brief.vibe.value}" ({VIBE_DESCRIPTIONS[brief.vibe]})
Is Bundle/Combo: {bundle_line}
{guidelines}
Step 1: VISUAL IDENTITY LOCK
Analyze the uploaded product image(s) to strictly define physical properties.
{identity}

Step 2: EXECUTION
Create {n} distinct image prompts.

CRITICAL CONSISTENCY RULE:
You MUST enforce the visual identity defined in Step 1 across ALL {n} prompts.
{consistency}

PRODUCT FIDELITY RULE:
Do not write prompts that describe the bottle/container in a way that encourages redrawing.
Use phrases like "The exact product from the reference image".

STRICT TEXT RENDERING SYNTAX:
When asking for text on the image, you MUST use this exact format:
Render the text: "YOUR TEXT HERE"

REQUIRED ARCHETYPES (Adapt these based on the Market Research):
{archetypes}
5. **The "Lifestyle/Usage"**: Show usage context.
   Syntax: Render the text: "DAILY USE"
6. **The "Scientific Trust"**: Lab or clean setting.
   Syntax: Render the text: "CLINICALLY PROVEN"
7. **The "Comparison/Result"**: Visualizing the result (e.g. clear skin).
   Syntax: Render the text: "VISIBLE RESULTS"

OUTPUT FORMAT:
Return a raw JSON array of {n} objects, with no prose and no markdown.
Each object must have:
- "category": Short name.
- "visualPrompt": A highly detailed prompt.
- "layoutType": One of {layouts}."""


class PromptPlanner:
    """Turns product images and a strategy brief into a generation plan."""

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

            self._model = get_settings().aplus_planning_model
        return self._model

    async def plan(
        self, images: Sequence[ReferenceImage], brief: StrategyBrief
    ) -> list[GenerationJob]:
        """Ask the planning model for an ordered list of jobs.

        Raises:
            PlanningError: On a failed call, an empty response or an undecodable plan.
        """
        prompt = build_planning_prompt(brief, len(images))
        contents = [*image_parts(images), prompt]
        try:
            response = await generate_content(
                self._get_client(),
                self.model,
                contents,
                types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=PLAN_RESPONSE_SCHEMA,
                ),
            )
        except Exception as e:
            logger.error("Analysis failed: %s", e)
            raise PlanningError("Failed to analyze product context.", str(e)) from e
        text = response.text
        if not text:
            raise PlanningError(
                "Failed to analyze product context.", "No response from analysis model"
            )
        jobs = parse_plan(text)
        logger.info("Planned %d jobs for %r", len(jobs), brief.category)
        return jobs
