"""
图片访问与下载 API
"""
import time

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from nano_banana.api.deps import get_file_service
from nano_banana.services.file_service import FileService, guess_mime_type

router = APIRouter(tags=["图片文件"])

IMMUTABLE_CACHE = "public, max-age=31536000, immutable"


@router.get("/images/{filename}")
async def serve_image(
    filename: str,
    file_service: FileService = Depends(get_file_service),
):
    """返回上传或生成的图片"""
    path = file_service.resolve(filename)
    if path is None:
        raise HTTPException(status_code=404, detail="Image not found")

    return FileResponse(
        path,
        media_type=guess_mime_type(path),
        headers={"Cache-Control": IMMUTABLE_CACHE},
    )


@router.get("/download/{filename}")
async def download_image(
    filename: str,
    file_service: FileService = Depends(get_file_service),
):
    """以附件形式下载图片"""
    path = file_service.resolve(filename)
    if path is None:
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(
        path,
        media_type="image/png",
        filename=f"nano-banana-{int(time.time() * 1000)}.png",
    )
