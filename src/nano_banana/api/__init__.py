"""
API 路由模块
"""
from fastapi import APIRouter
from .health import router as health_router
from .generations import router as generations_router
from .images import router as images_router
from .analyze import router as analyze_router

# 创建主路由
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(generations_router)
api_router.include_router(images_router)
api_router.include_router(analyze_router)

__all__ = ["api_router", "health_router"]
