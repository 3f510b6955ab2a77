"""Tests for AssetGenerator: refusal detection and the quota fallback tier."""

import pytest
from google.genai import errors as genai_errors

from aplus_studio.exceptions import (
    GenerationFailedError,
    GenerationRefusedError,
    QuotaExceededError,
)
from aplus_studio.services.asset_generator import (
    FIDELITY_RULES,
    QUALITY_HINT,
    AssetGenerator,
    build_generation_prompt,
)


@pytest.fixture
def generator(mock_client) -> AssetGenerator:
    return AssetGenerator(
        client=mock_client,
        model="primary-image",
        fallback_model="fallback-image",
        image_size="1K",
        aspect_ratio="1:1",
    )


def test_generation_prompt_appends_fidelity_rules():
    prompt = build_generation_prompt("  Hero shot  ")
    assert prompt.startswith("Hero shot\n")
    assert prompt.endswith(FIDELITY_RULES)


def test_defaults_come_from_settings(mock_client):
    gen = AssetGenerator(client=mock_client)
    assert gen.model == "gemini-3-pro-image-preview"
    assert gen.fallback_model == "gemini-2.5-flash-image"


@pytest.mark.asyncio
async def test_returns_first_inline_image(generator, mock_client, image_response, product_image):
    mock_client.models.generate_content.return_value = image_response(b"png-bytes")

    data = await generator.generate([product_image], "Hero shot")

    assert data == (b"png-bytes", "image/png")
    kwargs = mock_client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "primary-image"
    assert kwargs["config"].image_config.image_size == "1K"
    assert kwargs["config"].image_config.aspect_ratio == "1:1"
    contents = kwargs["contents"]
    assert contents[0].inline_data.data == product_image.data
    assert contents[-1] == build_generation_prompt("Hero shot")


@pytest.mark.asyncio
async def test_text_only_response_is_refusal(generator, mock_client, text_response, product_image):
    mock_client.models.generate_content.return_value = text_response("I can't draw that.")

    with pytest.raises(GenerationRefusedError) as exc_info:
        await generator.generate([product_image], "Hero shot")

    assert exc_info.value.reason == "I can't draw that."
    assert mock_client.models.generate_content.call_count == 1


@pytest.mark.asyncio
async def test_empty_response_is_failure(generator, mock_client, product_image):
    from google.genai import types

    mock_client.models.generate_content.return_value = types.GenerateContentResponse(
        candidates=[]
    )
    with pytest.raises(GenerationFailedError, match="No content generated"):
        await generator.generate([product_image], "Hero shot")


@pytest.mark.asyncio
async def test_quota_falls_back_once(
    generator, mock_client, quota_error, image_response, product_image
):
    mock_client.models.generate_content.side_effect = [quota_error, image_response(b"fallback")]

    data = await generator.generate([product_image], "Hero shot")

    assert data == (b"fallback", "image/png")
    assert mock_client.models.generate_content.call_count == 2
    first, second = mock_client.models.generate_content.call_args_list
    assert first.kwargs["model"] == "primary-image"
    assert second.kwargs["model"] == "fallback-image"
    assert second.kwargs["contents"][0].inline_data.data == product_image.data
    assert second.kwargs["contents"][-1] == first.kwargs["contents"][-1] + QUALITY_HINT


@pytest.mark.asyncio
async def test_non_quota_error_does_not_fall_back(
    generator, mock_client, bad_request_error, product_image
):
    mock_client.models.generate_content.side_effect = bad_request_error

    with pytest.raises(GenerationFailedError) as exc_info:
        await generator.generate([product_image], "Hero shot")

    assert exc_info.value.cause is bad_request_error
    assert mock_client.models.generate_content.call_count == 1


@pytest.mark.asyncio
async def test_fallback_failure(generator, mock_client, quota_error, product_image):
    mock_client.models.generate_content.side_effect = [quota_error, quota_error]

    with pytest.raises(GenerationFailedError) as exc_info:
        await generator.generate([product_image], "Hero shot")

    assert isinstance(exc_info.value.cause, QuotaExceededError)
    assert mock_client.models.generate_content.call_count == 2


@pytest.mark.asyncio
async def test_refusal_on_fallback_stays_refusal(
    generator, mock_client, quota_error, text_response, product_image
):
    mock_client.models.generate_content.side_effect = [quota_error, text_response("No.")]

    with pytest.raises(GenerationRefusedError):
        await generator.generate([product_image], "Hero shot")


@pytest.mark.asyncio
async def test_generate_from_parts_keeps_part_order(
    generator, mock_client, image_response, product_image
):
    mock_client.models.generate_content.return_value = image_response()
    parts = ["part-a", "part-b"]

    await generator.generate_from_parts(parts, "Studio shot")

    contents = mock_client.models.generate_content.call_args.kwargs["contents"]
    assert contents[:2] == parts
    assert contents[2] == build_generation_prompt("Studio shot")


@pytest.mark.asyncio
async def test_keeps_returned_mime_type(generator, mock_client, image_response, product_image):
    mock_client.models.generate_content.return_value = image_response(b"jpeg-bytes", "image/jpeg")

    assert await generator.generate([product_image], "Hero shot") == (b"jpeg-bytes", "image/jpeg")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        genai_errors.ClientError(
            403,
            {
                "error": {
                    "code": 403,
                    "message": "Quota project not set for this API key",
                    "status": "PERMISSION_DENIED",
                }
            },
        ),
        ValueError("Request id 429a1 rejected: invalid image"),
    ],
)
async def test_quota_looking_text_does_not_fall_back(generator, mock_client, product_image, error):
    mock_client.models.generate_content.side_effect = error

    with pytest.raises(GenerationFailedError):
        await generator.generate([product_image], "Hero shot")

    assert mock_client.models.generate_content.call_count == 1
