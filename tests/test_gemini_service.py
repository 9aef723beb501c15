"""
Gemini 服务测试：提示词拼接、响应解析、SDK 调用参数
"""
import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from nano_banana.services.gemini_service import (
    GeminiConfigError,
    GeminiImageClient,
    InputImage,
    VARIATION_CLAUSE,
    build_variation_prompt,
    extract_first_image,
)


def _part(text=None, data=None):
    inline_data = SimpleNamespace(data=data, mime_type="image/png") if data is not None else None
    return SimpleNamespace(text=text, inline_data=inline_data)


def _response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


class TestBuildVariationPrompt:
    """提示词拼接"""

    def test_square_ratio_only_adds_variation_clause(self) -> None:
        prompt = build_variation_prompt("a cat wearing a hat", "1:1")
        assert prompt == "a cat wearing a hat" + VARIATION_CLAUSE
        assert "aspect ratio" not in prompt

    def test_wide_ratio_inserted_before_variation_clause(self) -> None:
        prompt = build_variation_prompt("a cat wearing a hat", "16:9")
        assert prompt == (
            "a cat wearing a hat in 16:9 aspect ratio. "
            "Create a unique variation with creative lighting and composition."
        )
        assert prompt.index("16:9") < prompt.index("Create a unique variation")

    def test_missing_ratio_treated_as_square(self) -> None:
        assert build_variation_prompt("a cat wearing a hat", None).endswith(VARIATION_CLAUSE)


class TestExtractFirstImage:
    """响应解析"""

    def test_first_image_part_wins(self) -> None:
        response = _response(_part(text="here you go"), _part(data=b"first"), _part(data=b"second"))
        assert extract_first_image(response) == b"first"

    def test_text_only_response(self) -> None:
        assert extract_first_image(_response(_part(text="sorry"))) is None

    def test_empty_parts(self) -> None:
        assert extract_first_image(_response()) is None

    def test_no_candidates(self) -> None:
        assert extract_first_image(SimpleNamespace(candidates=[])) is None
        assert extract_first_image(SimpleNamespace(candidates=None)) is None

    def test_candidate_without_content(self) -> None:
        response = SimpleNamespace(candidates=[SimpleNamespace(content=None)])
        assert extract_first_image(response) is None


class TestGeminiImageClient:
    """SDK 调用封装"""

    def test_missing_api_key_raises(self) -> None:
        client = GeminiImageClient(api_key="")
        with pytest.raises(GeminiConfigError):
            asyncio.run(client.generate_variation([InputImage(b"x", "image/png")], "prompt text"))

    def test_generate_variation_sends_images_then_text(self) -> None:
        client = GeminiImageClient(api_key="test-key", image_model="image-model")
        sdk = MagicMock()
        sdk.models.generate_content.return_value = _response(_part(data=b"generated"))
        client._client = sdk

        images = [InputImage(b"main", "image/jpeg"), InputImage(b"prop", "image/png")]
        result = asyncio.run(client.generate_variation(images, "make it shine"))

        assert result == b"generated"
        kwargs = sdk.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "image-model"
        parts = kwargs["contents"][0].parts
        assert [p.inline_data.data for p in parts[:2]] == [b"main", b"prop"]
        assert [p.inline_data.mime_type for p in parts[:2]] == ["image/jpeg", "image/png"]
        assert parts[2].text == "make it shine"
        modalities = [str(m).upper() for m in kwargs["config"].response_modalities]
        assert any("IMAGE" in m for m in modalities)

    def test_generate_variation_propagates_errors(self) -> None:
        client = GeminiImageClient(api_key="test-key")
        sdk = MagicMock()
        sdk.models.generate_content.side_effect = RuntimeError("quota exceeded")
        client._client = sdk

        with pytest.raises(RuntimeError, match="quota exceeded"):
            asyncio.run(client.generate_variation([InputImage(b"main", "image/jpeg")], "prompt text"))

    def test_analyze_image_returns_text(self) -> None:
        client = GeminiImageClient(api_key="test-key", vision_model="vision-model")
        sdk = MagicMock()
        sdk.models.generate_content.return_value = SimpleNamespace(text="A portrait in soft light")
        client._client = sdk

        assert asyncio.run(client.analyze_image(b"img", "image/png")) == "A portrait in soft light"
        assert sdk.models.generate_content.call_args.kwargs["model"] == "vision-model"

    def test_analyze_image_fallbacks(self) -> None:
        client = GeminiImageClient(api_key="test-key")
        sdk = MagicMock()
        sdk.models.generate_content.return_value = SimpleNamespace(text=None)
        client._client = sdk
        assert asyncio.run(client.analyze_image(b"img", "image/png")) == "Unable to analyze image"

        sdk.models.generate_content.side_effect = RuntimeError("boom")
        assert asyncio.run(client.analyze_image(b"img", "image/png")) == "Image analysis failed"
