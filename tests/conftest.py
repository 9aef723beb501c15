"""
测试配置
"""
import os
import sys
from pathlib import Path

import pytest

# 添加 src 目录到 Python 路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

# 设置测试环境变量
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["VARIATION_DELAY_SECONDS"] = "0"

# 最小的合法 PNG 文件头，测试里只比对字节，不解码
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16


class FakeImageClient:
    """
    模拟 Gemini 客户端

    responses 按调用顺序消费：bytes 表示返回图片，None 表示响应里没有图片，
    Exception 实例会被抛出；用完后默认返回 PNG_BYTES
    """

    def __init__(self, responses=None, description: str = "a bright studio photo"):
        self.responses = list(responses or [])
        self.description = description
        self.calls: list[tuple[list, str]] = []
        self.analyzed: list[tuple[bytes, str]] = []

    async def generate_variation(self, images, prompt):
        self.calls.append((list(images), prompt))
        result = self.responses.pop(0) if self.responses else PNG_BYTES
        if isinstance(result, Exception):
            raise result
        return result

    async def analyze_image(self, image_bytes, mime_type):
        self.analyzed.append((image_bytes, mime_type))
        return self.description


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def fake_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def file_service(upload_dir: Path):
    from nano_banana.services.file_service import FileService

    return FileService(upload_dir)


@pytest.fixture
def memory_store():
    from nano_banana.services.storage import MemoryGenerationStore

    return MemoryGenerationStore()


@pytest.fixture
def generation_service(memory_store, fake_client, file_service):
    from nano_banana.services.generation_service import GenerationService

    return GenerationService(
        store=memory_store,
        model_client=fake_client,
        file_service=file_service,
        variation_delay=0,
    )


@pytest.fixture
def test_settings(upload_dir: Path):
    from nano_banana.core.config import Settings

    return Settings(upload_dir=str(upload_dir), variation_delay_seconds=0)
