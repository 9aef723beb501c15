"""
图片生成 API
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from nano_banana.api.deps import get_generation_service
from nano_banana.models import derive_status
from nano_banana.services.generation_service import (
    GenerationRequestError,
    GenerationService,
    UploadedImage,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["图片生成"])


# ============ 响应模型 ============

class GenerateResponse(BaseModel):
    """提交生成响应"""
    id: str
    status: str
    message: str


class GenerationStatusResponse(BaseModel):
    """生成状态响应（字段按 camelCase 输出）"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: str
    prompt: str
    num_variations: int = Field(alias="numVariations")
    aspect_ratio: str = Field(alias="aspectRatio")
    generated_images: list[str] = Field(alias="generatedImages")
    created_at: str = Field(alias="createdAt")


# ============ API 接口 ============


async def _read_upload(upload: Optional[UploadFile]) -> Optional[UploadedImage]:
    """读取上传文件，未选择文件时返回 None"""
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    return UploadedImage(filename=upload.filename, content_type=upload.content_type, data=data)


@router.post("/generate", response_model=GenerateResponse)
async def create_generation(
    main_photo: Optional[UploadFile] = File(None, alias="mainPhoto"),
    prop1: Optional[UploadFile] = File(None),
    prop2: Optional[UploadFile] = File(None),
    prompt: Optional[str] = Form(None),
    num_variations: int = Form(5, alias="numVariations"),
    aspect_ratio: str = Form("1:1", alias="aspectRatio"),
    service: GenerationService = Depends(get_generation_service),
):
    """
    提交生成任务

    立即返回任务ID，图片在后台生成，通过 /generation/{id} 轮询
    """
    try:
        generation = await service.submit(
            main_photo=await _read_upload(main_photo),
            prompt=prompt,
            num_variations=num_variations,
            aspect_ratio=aspect_ratio,
            prop1=await _read_upload(prop1),
            prop2=await _read_upload(prop2),
        )
        return GenerateResponse(
            id=generation.id,
            status="processing",
            message="Image generation started",
        )

    except HTTPException:
        raise
    except GenerationRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"提交生成任务失败: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e) or "Generation failed")


@router.get("/generation/{generation_id}", response_model=GenerationStatusResponse)
async def get_generation(
    generation_id: str,
    service: GenerationService = Depends(get_generation_service),
):
    """查询生成状态与结果"""
    try:
        generation = service.get(generation_id)
    except Exception as e:
        logger.error(f"查询生成状态失败: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get generation status")

    if not generation:
        raise HTTPException(status_code=404, detail="Generation not found")

    return GenerationStatusResponse(
        id=generation.id,
        status=derive_status(generation),
        prompt=generation.prompt,
        num_variations=generation.num_variations,
        aspect_ratio=generation.aspect_ratio,
        generated_images=list(generation.generated_images),
        created_at=generation.created_at.isoformat(),
    )
