"""
数据库连接管理 - 仅在 storage_backend=sql 时使用
"""
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

_SQLITE_PREFIX = "sqlite:///"


def create_db_engine(database_url: str) -> Engine:
    """创建数据库引擎并确保表存在"""
    # 注册 image_generations 表
    from nano_banana.models import ImageGeneration  # noqa: F401

    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        db_file = database_url[len(_SQLITE_PREFIX):]
        if database_url.startswith(_SQLITE_PREFIX) and db_file and db_file != ":memory:":
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    SQLModel.metadata.create_all(engine)
    return engine


__all__ = ["create_db_engine"]
