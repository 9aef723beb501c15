"""
图片分析 API
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from nano_banana.api.deps import get_generation_service
from nano_banana.services.generation_service import GenerationService

router = APIRouter(tags=["图片分析"])


@router.post("/analyze")
async def analyze_image(
    image: Optional[UploadFile] = File(None),
    service: GenerationService = Depends(get_generation_service),
):
    """描述上传图片的内容，辅助编写提示词"""
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="Image is required")

    content_type = image.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed")

    data = await image.read()
    description = await service.model_client.analyze_image(data, content_type)
    return {"description": description}
