"""
服务模块
"""
from .file_service import FileService, guess_mime_type
from .gemini_service import GeminiImageClient, build_variation_prompt
from .generation_service import GenerationService
from .storage import MemoryGenerationStore, SqlGenerationStore, build_store

__all__ = [
    "FileService",
    "guess_mime_type",
    "GeminiImageClient",
    "build_variation_prompt",
    "GenerationService",
    "MemoryGenerationStore",
    "SqlGenerationStore",
    "build_store",
]
