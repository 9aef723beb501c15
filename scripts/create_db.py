"""
创建数据库表（STORAGE_BACKEND=sql 时使用）
"""
from nano_banana.core import get_settings
from nano_banana.core.database import create_db_engine

settings = get_settings()

if __name__ == "__main__":
    create_db_engine(settings.database_url)

    print(f"✅ 数据库表创建完成: {settings.database_url}")
