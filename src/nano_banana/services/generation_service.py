"""
图片生成编排服务

提交时同步校验并落盘、建记录，随后在后台任务中顺序生成变体
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from pydantic import ValidationError

from nano_banana.models import (
    GenerationParams,
    ImageGeneration,
    ImageGenerationCreate,
    validation_message,
)
from nano_banana.services.file_service import FileService
from nano_banana.services.gemini_service import (
    ImageModelClient,
    InputImage,
    build_variation_prompt,
)
from nano_banana.services.storage import GenerationStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class GenerationRequestError(ValueError):
    """提交参数不合法"""


class GenerationFailedError(RuntimeError):
    """所有变体都没有生成成功"""

    def __init__(self, generation_id: str, outcome: "GenerationOutcome"):
        super().__init__(f"No images were generated successfully for {generation_id}")
        self.generation_id = generation_id
        self.outcome = outcome


@dataclass
class UploadedImage:
    """HTTP 层读出的上传文件"""

    filename: Optional[str]
    content_type: Optional[str]
    data: bytes

    @property
    def is_image(self) -> bool:
        return (self.content_type or "").startswith("image/")


@dataclass
class VariationResult:
    """单次变体的结果，filename 与 error 二选一"""

    index: int
    filename: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.filename is not None


@dataclass
class GenerationOutcome:
    """一次生成任务的汇总"""

    generation_id: str
    results: list[VariationResult] = field(default_factory=list)

    @property
    def image_paths(self) -> list[str]:
        return [r.filename for r in self.results if r.ok]

    @property
    def succeeded(self) -> int:
        return len(self.image_paths)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


class GenerationService:
    """生成编排服务"""

    def __init__(
        self,
        store: GenerationStore,
        model_client: ImageModelClient,
        file_service: FileService,
        variation_delay: float = 1.0,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ):
        self.store = store
        self.model_client = model_client
        self.file_service = file_service
        self.variation_delay = variation_delay
        self.max_upload_bytes = max_upload_bytes
        # 运行中的任务；结束后只保留结果，与记录一样随进程累积
        self._tasks: dict[str, asyncio.Task] = {}
        self._outcomes: dict[str, Optional[GenerationOutcome]] = {}

    # ============ 提交 ============

    def validate(
        self,
        main_photo: Optional[UploadedImage],
        prompt: Optional[str],
        num_variations: int,
        aspect_ratio: str,
        props: tuple[Optional[UploadedImage], ...] = (),
    ) -> GenerationParams:
        """
        同步校验，不产生任何副作用

        Raises:
            GenerationRequestError: 参数不合法
        """
        if main_photo is None or not main_photo.data:
            raise GenerationRequestError("Main photo is required")

        try:
            params = GenerationParams(
                prompt=prompt or "",
                num_variations=num_variations,
                aspect_ratio=aspect_ratio,
            )
        except ValidationError as e:
            raise GenerationRequestError(validation_message(e)) from e

        if not main_photo.is_image:
            raise GenerationRequestError("Only image files are allowed")

        limit_mb = self.max_upload_bytes // (1024 * 1024)
        for upload in (main_photo, *props):
            if upload is not None and len(upload.data) > self.max_upload_bytes:
                raise GenerationRequestError(f"File too large (max {limit_mb}MB)")

        return params

    async def submit(
        self,
        main_photo: Optional[UploadedImage],
        prompt: Optional[str],
        num_variations: int = 5,
        aspect_ratio: str = "1:1",
        prop1: Optional[UploadedImage] = None,
        prop2: Optional[UploadedImage] = None,
    ) -> ImageGeneration:
        """
        校验、保存上传文件、创建记录并启动后台生成

        Returns:
            新建的生成记录（generated_images 为空）
        """
        params = self.validate(main_photo, prompt, num_variations, aspect_ratio, (prop1, prop2))

        main_path = self.file_service.save_upload("main", main_photo.filename, main_photo.data)
        prop_paths: list[Optional[str]] = []
        for kind, prop in (("prop1", prop1), ("prop2", prop2)):
            if prop is None or not prop.data:
                prop_paths.append(None)
                continue
            if not prop.is_image:
                logger.warning(f"忽略非图片道具文件: {kind} ({prop.content_type})")
                prop_paths.append(None)
                continue
            prop_paths.append(str(self.file_service.save_upload(kind, prop.filename, prop.data)))

        generation = self.store.create(
            ImageGenerationCreate(
                **params.model_dump(),
                main_photo_path=str(main_path),
                prop1_path=prop_paths[0],
                prop2_path=prop_paths[1],
            )
        )
        logger.info(
            f"生成任务已创建: id={generation.id}, variations={generation.num_variations}, "
            f"aspect_ratio={generation.aspect_ratio}"
        )

        task = asyncio.create_task(
            self._run_in_background(generation.id),
            name=f"generation-{generation.id}",
        )
        self._tasks[generation.id] = task
        task.add_done_callback(lambda t, gid=generation.id: self._on_task_done(gid, t))
        return generation

    # ============ 生成 ============

    async def _run_in_background(self, generation_id: str) -> Optional[GenerationOutcome]:
        """后台任务入口，所有异常只记录日志"""
        try:
            return await self.run_generation(generation_id)
        except GenerationFailedError as e:
            logger.error(f"生成失败: {e}")
            return e.outcome
        except Exception as e:
            logger.error(f"生成任务异常: id={generation_id}, error={e}", exc_info=True)
            return None

    def _load_inputs(self, generation: ImageGeneration) -> list[InputImage]:
        images = []
        for path in (generation.main_photo_path, generation.prop1_path, generation.prop2_path):
            if path:
                data, mime_type = self.file_service.read_image(path)
                images.append(InputImage(data=data, mime_type=mime_type))
        return images

    async def _generate_one(
        self,
        generation: ImageGeneration,
        images: list[InputImage],
        prompt: str,
        index: int,
    ) -> VariationResult:
        """生成单个变体，异常在此捕获，不影响后续变体"""
        try:
            data = await self.model_client.generate_variation(images, prompt)
            if not data:
                logger.warning(f"变体 {index} 没有返回图片")
                return VariationResult(index=index, error="No image in response")
            filename = self.file_service.save_generated(generation.id, index, data)
            logger.info(f"变体 {index} 已保存: {filename}")
            return VariationResult(index=index, filename=filename)
        except Exception as e:
            logger.error(f"变体 {index} 生成失败: {e}", exc_info=True)
            return VariationResult(index=index, error=str(e))

    async def run_generation(self, generation_id: str) -> GenerationOutcome:
        """
        顺序生成所有变体并写回结果

        Raises:
            LookupError: 记录不存在
            GenerationFailedError: 一张图片都没有生成
        """
        generation = self.store.get(generation_id)
        if generation is None:
            raise LookupError(f"Generation not found: {generation_id}")

        outcome = GenerationOutcome(generation_id=generation_id)
        try:
            images = self._load_inputs(generation)
        except OSError as e:
            logger.error(f"读取上传文件失败: {e}")
            self.store.update_results(generation_id, [])
            raise GenerationFailedError(generation_id, outcome) from e

        prompt = build_variation_prompt(generation.prompt, generation.aspect_ratio)
        total = generation.num_variations
        logger.info(f"开始生成: id={generation_id}, total={total}")

        for index in range(1, total + 1):
            logger.info(f"生成变体 {index}/{total}")
            outcome.results.append(await self._generate_one(generation, images, prompt, index))
            if index < total and self.variation_delay > 0:
                await asyncio.sleep(self.variation_delay)

        if outcome.succeeded == 0:
            self.store.update_results(generation_id, [])
            raise GenerationFailedError(generation_id, outcome)

        self.store.update_results(generation_id, outcome.image_paths)
        logger.info(
            f"生成完成: id={generation_id}, 成功 {outcome.succeeded}, 失败 {outcome.failed}"
        )
        return outcome

    # ============ 查询 ============

    def get(self, generation_id: str) -> Optional[ImageGeneration]:
        return self.store.get(generation_id)

    def _on_task_done(self, generation_id: str, task: asyncio.Task) -> None:
        """任务结束后释放句柄，只保留汇总结果"""
        self._tasks.pop(generation_id, None)
        if not task.cancelled():
            self._outcomes[generation_id] = task.result()

    def get_task(self, generation_id: str) -> Optional[asyncio.Task]:
        """运行中的任务，已结束返回 None"""
        return self._tasks.get(generation_id)

    def get_outcome(self, generation_id: str) -> Optional[GenerationOutcome]:
        """已结束任务的汇总结果，尚未结束或被取消时返回 None"""
        return self._outcomes.get(generation_id)

    async def shutdown(self) -> None:
        """取消尚未完成的后台任务"""
        pending = [task for task in list(self._tasks.values()) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.info(f"已取消 {len(pending)} 个生成任务")
