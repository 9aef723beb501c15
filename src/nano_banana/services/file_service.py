"""
文件存储服务 - 上传原图与生成结果都放在同一个目录
"""
import logging
import time
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
DEFAULT_MIME_TYPE = "image/jpeg"


def guess_mime_type(path: str | Path) -> str:
    """按扩展名推断 MIME 类型，未知扩展名按 jpeg 处理"""
    return _MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


class FileService:
    """上传/生成文件的读写"""

    def __init__(self, upload_dir: str | Path):
        self.upload_dir = Path(upload_dir).resolve()

    def ensure_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def _write_exclusive(self, name_for: Callable[[int], str], data: bytes) -> Path:
        """
        以独占方式创建文件

        文件名已存在时时间戳加 1 后重试，已有文件不会被覆盖
        """
        self.ensure_dir()
        timestamp = _timestamp_ms()
        while True:
            path = self.upload_dir / name_for(timestamp)
            try:
                with path.open("xb") as f:
                    f.write(data)
                return path
            except FileExistsError:
                timestamp += 1

    def save_upload(self, kind: str, original_filename: Optional[str], data: bytes) -> Path:
        """
        保存上传文件

        Args:
            kind: 文件类型前缀（main / prop1 / prop2）
            original_filename: 客户端文件名，仅保留最后一段
            data: 文件内容

        Returns:
            保存后的绝对路径
        """
        basename = Path(original_filename or "upload").name or "upload"
        path = self._write_exclusive(lambda ts: f"{kind}_{ts}_{basename}", data)
        logger.debug(f"上传文件已保存: {path.name} ({len(data)} bytes)")
        return path

    def save_generated(self, generation_id: str, index: int, data: bytes) -> str:
        """保存生成图片，返回文件名"""
        path = self._write_exclusive(
            lambda ts: f"generated_{generation_id}_{index}_{ts}.png", data
        )
        return path.name

    def read_image(self, path: str | Path) -> tuple[bytes, str]:
        """读取图片，返回 (内容, MIME 类型)"""
        path = Path(path)
        return path.read_bytes(), guess_mime_type(path)

    def resolve(self, filename: str) -> Optional[Path]:
        """
        将文件名解析为存储目录下的文件

        文件不存在或解析结果不在存储目录内时返回 None
        """
        if not filename:
            return None
        path = (self.upload_dir / filename).resolve()
        if path.parent != self.upload_dir:
            logger.warning(f"拒绝访问存储目录外的文件: {filename}")
            return None
        if not path.is_file():
            return None
        return path
