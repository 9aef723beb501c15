"""
图片生成记录模型
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError, field_validator
from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

ASPECT_RATIOS = ("1:1", "16:9", "9:16", "4:3")
DEFAULT_ASPECT_RATIO = "1:1"
DEFAULT_NUM_VARIATIONS = 5
MIN_VARIATIONS = 1
MAX_VARIATIONS = 10
MIN_PROMPT_LENGTH = 10


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GenerationParams(SQLModel):
    """生成参数（提交时校验）"""

    prompt: str = Field(description="用户提示词，去除首尾空白后至少 10 个字符")
    num_variations: int = Field(default=DEFAULT_NUM_VARIATIONS, description="变体数量 1-10")
    aspect_ratio: str = Field(default=DEFAULT_ASPECT_RATIO, description="画面比例")

    @field_validator("prompt")
    @classmethod
    def _prompt_min_length(cls, value: str) -> str:
        value = (value or "").strip()
        if len(value) < MIN_PROMPT_LENGTH:
            raise ValueError(f"Prompt must be at least {MIN_PROMPT_LENGTH} characters")
        return value

    @field_validator("num_variations")
    @classmethod
    def _variations_in_range(cls, value: int) -> int:
        if not MIN_VARIATIONS <= value <= MAX_VARIATIONS:
            raise ValueError(
                f"Number of variations must be between {MIN_VARIATIONS} and {MAX_VARIATIONS}"
            )
        return value

    @field_validator("aspect_ratio")
    @classmethod
    def _known_aspect_ratio(cls, value: str) -> str:
        if value not in ASPECT_RATIOS:
            raise ValueError(f"Aspect ratio must be one of {', '.join(ASPECT_RATIOS)}")
        return value


class ImageGenerationCreate(GenerationParams):
    """创建生成记录所需字段"""

    main_photo_path: str = Field(description="主图路径")
    prop1_path: Optional[str] = Field(default=None, description="道具图1路径")
    prop2_path: Optional[str] = Field(default=None, description="道具图2路径")

    @field_validator("main_photo_path")
    @classmethod
    def _main_photo_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Main photo is required")
        return value


class ImageGeneration(SQLModel, table=True):
    """
    图片生成记录表

    generated_images 为空表示处理中，非空表示已完成
    """

    __tablename__ = "image_generations"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        description="生成ID",
    )

    # 上传文件
    main_photo_path: str = Field(description="主图路径")
    prop1_path: Optional[str] = Field(default=None, description="道具图1路径")
    prop2_path: Optional[str] = Field(default=None, description="道具图2路径")

    # 生成参数
    prompt: str = Field(description="用户提示词")
    num_variations: int = Field(default=DEFAULT_NUM_VARIATIONS, description="变体数量")
    aspect_ratio: str = Field(default=DEFAULT_ASPECT_RATIO, description="画面比例")

    # 生成结果（文件名列表，按调用顺序）
    generated_images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    # 带时区的 UTC 时间
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


def derive_status(generation: ImageGeneration) -> str:
    """由结果列表推导状态，全部失败时同样返回 processing"""
    return "completed" if generation.generated_images else "processing"


def validation_message(error: ValidationError) -> str:
    """取第一条校验错误的可读信息"""
    first = error.errors()[0]
    ctx_error = first.get("ctx", {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return first.get("msg", "Invalid request")
