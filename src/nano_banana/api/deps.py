"""
路由依赖 - 从 app.state 取出应用级服务实例
"""
from fastapi import Request

from nano_banana.services.file_service import FileService
from nano_banana.services.generation_service import GenerationService


def get_generation_service(request: Request) -> GenerationService:
    return request.app.state.generation_service


def get_file_service(request: Request) -> FileService:
    return request.app.state.generation_service.file_service
