"""
FastAPI 应用入口
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nano_banana import __version__
from nano_banana.api import api_router, health_router
from nano_banana.core import Settings, get_logger, get_settings, setup_logging
from nano_banana.services.file_service import FileService
from nano_banana.services.gemini_service import GeminiImageClient, ImageModelClient
from nano_banana.services.generation_service import GenerationService
from nano_banana.services.storage import GenerationStore, build_store

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    model_client: Optional[ImageModelClient] = None,
    store: Optional[GenerationStore] = None,
) -> FastAPI:
    """
    创建应用

    存储、模型客户端与编排服务在这里创建一次，挂到 app.state 上供路由使用
    """
    settings = settings or get_settings()

    file_service = FileService(settings.upload_dir)
    generation_service = GenerationService(
        store=store if store is not None else build_store(settings),
        model_client=model_client if model_client is not None else GeminiImageClient(
            api_key=settings.gemini_api_key,
            image_model=settings.gemini_image_model,
            vision_model=settings.gemini_vision_model,
        ),
        file_service=file_service,
        variation_delay=settings.variation_delay_seconds,
        max_upload_bytes=settings.max_upload_bytes,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        file_service.ensure_dir()
        logger.info(f"🍌 Nano Banana API 启动中... 文件目录: {file_service.upload_dir}")
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY 未配置，生成请求将全部失败")
        yield
        await generation_service.shutdown()
        logger.info("👋 Nano Banana API 关闭")

    app = FastAPI(
        title="Nano Banana API",
        description="上传照片与道具图，基于 Gemini 生成多张图片变体",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.generation_service = generation_service

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 错误统一返回 {"error": ...}
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    # 注册 API 路由
    app.include_router(api_router)
    app.include_router(health_router)

    return app


setup_logging(get_settings().log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info(f"启动服务: http://{settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "nano_banana.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
