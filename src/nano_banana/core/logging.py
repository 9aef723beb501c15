"""
日志配置
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_HANDLER_NAME = "nano_banana.console"

# 请求量大时会刷屏的第三方库
QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "multipart")


def setup_logging(log_level: str = "INFO") -> None:
    """
    配置根日志记录器

    可重复调用：只更新级别，控制台处理器只挂一次
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    if not any(h.get_name() == CONSOLE_HANDLER_NAME for h in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name(CONSOLE_HANDLER_NAME)
        console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """获取模块日志记录器，用法: logger = get_logger(__name__)"""
    return logging.getLogger(name)
