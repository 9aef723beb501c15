"""
配置管理 - 从环境变量 / .env 读取
"""
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API 配置
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    debug: bool = False
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

    # Gemini API 配置
    # 兼容 GOOGLE_AI_API_KEY，两者都设置时以 GEMINI_API_KEY 为准。
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_AI_API_KEY"),
    )
    gemini_image_model: str = "gemini-2.0-flash-preview-image-generation"
    gemini_vision_model: str = "gemini-2.5-flash"

    # 生成配置
    upload_dir: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024
    variation_delay_seconds: float = 1.0

    # 存储配置
    storage_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///./data/nano_banana.db"

    # 日志配置
    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
