"""自动化测试日志系统"""

import atexit
import logging
from typing import Optional, Union

from .config import LogConfig
from .security import MaskingEngine, SensitiveDataFilter, mask_sensitive_data
from .formatters import SecurityFormatter, ColoredFormatter, JSONFormatter
from .handlers import HandlerFactory
from .lazy_logger import LazyLogger, MAIN_LOGGER
from .components import RequestLogger, request_logger, log_exception, log_step, log_duration

__all__ = [
    "logger", "setup_logger", "log_exception", "log_step", "log_duration",
    "mask_sensitive_data", "request_logger", "RequestLogger", "LazyLogger",
    "LogConfig", "HandlerFactory", "MaskingEngine", "SensitiveDataFilter",
    "SecurityFormatter", "ColoredFormatter", "JSONFormatter", "cleanup",
]


def setup_logger(
    name: str = MAIN_LOGGER,
    log_level: Optional[str] = None,
    log_to_console: bool = True,
    log_to_file: bool = True,
    log_to_json: bool = False,
    separate_log_file: Union[str, bool, None] = None
) -> logging.Logger:
    """
    获取统一格式的日志器

    标准格式:
        2026-02-15 00:30:45 INFO     [executor.py:execute:88] [Pixel_7_13] [Action] Enter amount: attempted
    """
    return LazyLogger.get(
        name,
        log_level=log_level,
        log_to_console=log_to_console,
        log_to_file=log_to_file,
        log_to_json=log_to_json,
        separate_log_file=separate_log_file
    )


def cleanup():
    """全局清理"""
    LazyLogger.cleanup()
    HandlerFactory.cleanup()
    MaskingEngine.clear_cache()


atexit.register(cleanup)

logger = setup_logger(MAIN_LOGGER)
