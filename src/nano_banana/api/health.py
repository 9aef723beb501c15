"""
健康检查 API
"""
from fastapi import APIRouter

router = APIRouter(tags=["health"])

SERVICE_NAME = "Nano Banana API"


@router.get("/health")
async def health():
    """健康检查"""
    return {"status": "ok", "service": SERVICE_NAME}
