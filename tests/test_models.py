"""
生成参数校验与状态推导测试
"""
import pytest
from pydantic import ValidationError

from nano_banana.models import (
    GenerationParams,
    ImageGeneration,
    ImageGenerationCreate,
    derive_status,
    validation_message,
)


class TestGenerationParams:
    """GenerationParams 校验"""

    def test_defaults(self) -> None:
        params = GenerationParams(prompt="a cat wearing a tiny hat")
        assert params.num_variations == 5
        assert params.aspect_ratio == "1:1"

    def test_prompt_is_trimmed(self) -> None:
        params = GenerationParams(prompt="   a cat wearing a hat   ")
        assert params.prompt == "a cat wearing a hat"

    def test_short_prompt_after_trim_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            GenerationParams(prompt="   short    ")
        assert validation_message(exc_info.value) == "Prompt must be at least 10 characters"

    def test_exactly_ten_characters_accepted(self) -> None:
        assert GenerationParams(prompt="0123456789").prompt == "0123456789"

    @pytest.mark.parametrize("value", [1, 10])
    def test_variation_bounds_accepted(self, value: int) -> None:
        assert GenerationParams(prompt="a cat wearing a hat", num_variations=value).num_variations == value

    @pytest.mark.parametrize("value", [0, 11])
    def test_variation_out_of_range_rejected(self, value: int) -> None:
        with pytest.raises(ValidationError) as exc_info:
            GenerationParams(prompt="a cat wearing a hat", num_variations=value)
        assert "between 1 and 10" in validation_message(exc_info.value)

    @pytest.mark.parametrize("ratio", ["1:1", "16:9", "9:16", "4:3"])
    def test_known_aspect_ratios(self, ratio: str) -> None:
        assert GenerationParams(prompt="a cat wearing a hat", aspect_ratio=ratio).aspect_ratio == ratio

    def test_unknown_aspect_ratio_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            GenerationParams(prompt="a cat wearing a hat", aspect_ratio="3:2")
        assert "Aspect ratio must be one of" in validation_message(exc_info.value)


def test_create_requires_main_photo() -> None:
    with pytest.raises(ValidationError) as exc_info:
        ImageGenerationCreate(prompt="a cat wearing a hat", main_photo_path="")
    assert validation_message(exc_info.value) == "Main photo is required"


def test_derive_status_follows_generated_images() -> None:
    generation = ImageGeneration(main_photo_path="main.png", prompt="a cat wearing a hat")
    assert generation.generated_images == []
    assert derive_status(generation) == "processing"

    generation.generated_images = ["generated_x_1_1.png"]
    assert derive_status(generation) == "completed"


def test_ids_are_unique() -> None:
    ids = {ImageGeneration(main_photo_path="m.png", prompt="a cat wearing a hat").id for _ in range(50)}
    assert len(ids) == 50


def test_created_at_is_timezone_aware() -> None:
    """created_at 带时区，数据库存储要求"""
    generation = ImageGeneration(main_photo_path="m.png", prompt="a cat wearing a hat")
    assert generation.created_at.tzinfo is not None
    assert generation.created_at.utcoffset().total_seconds() == 0
