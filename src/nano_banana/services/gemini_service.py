"""
Gemini 图片生成服务
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from google import genai
from google.genai import types

from nano_banana.core import get_settings

logger = logging.getLogger(__name__)

DEFAULT_ASPECT_RATIO = "1:1"
VARIATION_CLAUSE = ". Create a unique variation with creative lighting and composition."
ANALYZE_PROMPT = (
    "Analyze this image in detail and describe its key elements, composition, "
    "lighting, and style. Focus on details that would be important for AI image generation."
)


class GeminiConfigError(RuntimeError):
    """未配置 API Key"""


@dataclass(frozen=True)
class InputImage:
    """发送给模型的输入图片"""

    data: bytes
    mime_type: str


class ImageModelClient(Protocol):
    """图片模型客户端接口，生成服务只依赖这两个方法"""

    async def generate_variation(
        self, images: Sequence[InputImage], prompt: str
    ) -> Optional[bytes]:
        ...

    async def analyze_image(self, image_bytes: bytes, mime_type: str) -> str:
        ...


def build_variation_prompt(prompt: str, aspect_ratio: Optional[str]) -> str:
    """
    拼接单次变体的提示词

    非 1:1 时追加比例说明，最后统一追加变体要求
    """
    enhanced = prompt
    if aspect_ratio and aspect_ratio != DEFAULT_ASPECT_RATIO:
        enhanced += f" in {aspect_ratio} aspect ratio"
    return enhanced + VARIATION_CLAUSE


def extract_first_image(response) -> Optional[bytes]:
    """从响应中取第一张内联图片，其余部分忽略"""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        logger.warning("响应中没有 candidates")
        return None

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not parts:
        logger.warning("响应中没有 content parts")
        return None

    for part in parts:
        text = getattr(part, "text", None)
        if text:
            logger.info(f"Gemini 返回文本: {text}")
            continue
        inline_data = getattr(part, "inline_data", None)
        data = getattr(inline_data, "data", None) if inline_data is not None else None
        if data:
            return data

    logger.warning("响应中没有图片")
    return None


class GeminiImageClient:
    """Gemini 客户端封装"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        image_model: Optional[str] = None,
        vision_model: Optional[str] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.image_model = image_model or settings.gemini_image_model
        self.vision_model = vision_model or settings.gemini_vision_model
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> genai.Client:
        """延迟创建 SDK 客户端，没有 Key 也能启动服务"""
        if self._client is None:
            if not self.api_key:
                raise GeminiConfigError("GEMINI_API_KEY 未配置")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate_variation(
        self, images: Sequence[InputImage], prompt: str
    ) -> Optional[bytes]:
        """
        调用一次模型生成一张变体

        Args:
            images: 输入图片，主图在前，道具图按顺序在后
            prompt: 已拼接好的提示词

        Returns:
            第一张生成图片的字节，没有图片时返回 None。网络/API 异常直接抛出
        """
        parts = [types.Part.from_bytes(data=img.data, mime_type=img.mime_type) for img in images]
        parts.append(types.Part.from_text(text=prompt))

        client = self.client
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=self.image_model,
            contents=[types.Content(role="user", parts=parts)],
            config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )
        return extract_first_image(response)

    async def analyze_image(self, image_bytes: bytes, mime_type: str) -> str:
        """描述图片内容，供编写提示词参考"""
        try:
            client = self.client
            response = await asyncio.to_thread(
                client.models.generate_content,
                model=self.vision_model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    ANALYZE_PROMPT,
                ],
            )
            return response.text or "Unable to analyze image"
        except Exception as e:
            logger.error(f"图片分析失败: {e}", exc_info=True)
            return "Image analysis failed"
