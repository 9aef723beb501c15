"""
数据模型模块
"""
from .image_generation import (
    ASPECT_RATIOS,
    GenerationParams,
    ImageGeneration,
    ImageGenerationCreate,
    derive_status,
    validation_message,
)

__all__ = [
    "ASPECT_RATIOS",
    "GenerationParams",
    "ImageGeneration",
    "ImageGenerationCreate",
    "derive_status",
    "validation_message",
]
