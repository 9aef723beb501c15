"""
生成记录存储

默认使用进程内字典；storage_backend=sql 时落库到 image_generations 表
"""
import logging
from typing import Optional, Protocol

from sqlalchemy.engine import Engine
from sqlmodel import Session

from nano_banana.core.config import Settings
from nano_banana.models import ImageGeneration, ImageGenerationCreate

logger = logging.getLogger(__name__)


class GenerationStore(Protocol):
    """生成记录存储接口"""

    def create(self, data: ImageGenerationCreate) -> ImageGeneration:
        ...

    def get(self, generation_id: str) -> Optional[ImageGeneration]:
        ...

    def update_results(
        self, generation_id: str, generated_images: list[str]
    ) -> Optional[ImageGeneration]:
        ...


class MemoryGenerationStore:
    """进程内存储，重启后数据丢失"""

    def __init__(self):
        self._generations: dict[str, ImageGeneration] = {}

    def create(self, data: ImageGenerationCreate) -> ImageGeneration:
        generation = ImageGeneration(**data.model_dump(), generated_images=[])
        self._generations[generation.id] = generation
        return generation

    def get(self, generation_id: str) -> Optional[ImageGeneration]:
        return self._generations.get(generation_id)

    def update_results(
        self, generation_id: str, generated_images: list[str]
    ) -> Optional[ImageGeneration]:
        generation = self._generations.get(generation_id)
        if generation is None:
            return None
        generation.generated_images = list(generated_images)
        return generation

    def __len__(self) -> int:
        return len(self._generations)


class SqlGenerationStore:
    """基于 SQLModel 的存储"""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create(self, data: ImageGenerationCreate) -> ImageGeneration:
        with Session(self.engine) as session:
            generation = ImageGeneration(**data.model_dump(), generated_images=[])
            session.add(generation)
            session.commit()
            session.refresh(generation)
            return generation

    def get(self, generation_id: str) -> Optional[ImageGeneration]:
        with Session(self.engine) as session:
            return session.get(ImageGeneration, generation_id)

    def update_results(
        self, generation_id: str, generated_images: list[str]
    ) -> Optional[ImageGeneration]:
        with Session(self.engine) as session:
            generation = session.get(ImageGeneration, generation_id)
            if generation is None:
                return None
            generation.generated_images = list(generated_images)
            session.add(generation)
            session.commit()
            session.refresh(generation)
            return generation


def build_store(settings: Settings) -> GenerationStore:
    """根据配置创建存储实例"""
    if settings.storage_backend == "sql":
        from nano_banana.core.database import create_db_engine

        logger.info(f"使用数据库存储: {settings.database_url}")
        return SqlGenerationStore(create_db_engine(settings.database_url))

    logger.info("使用内存存储")
    return MemoryGenerationStore()
