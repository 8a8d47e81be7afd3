"""高级功能组件模块"""

import json
import logging
import sys
import time
import traceback
import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Optional
from urllib.parse import urlparse

from .config import LogConfig
from .lazy_logger import LazyLogger, MAIN_LOGGER
from .security import mask_sensitive_data


def _main_logger() -> logging.Logger:
    return LazyLogger.get(MAIN_LOGGER)


def _api_logger() -> logging.Logger:
    return LazyLogger.get("api", log_level="DEBUG", log_to_console=False, separate_log_file="api.log")


class RequestLogger:
    """HTTP请求日志记录器 (Appium WebDriver 调用)"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger

    @property
    def logger(self) -> logging.Logger:
        return self._logger or _api_logger()

    def log_request(self, method: str, url: str, body: Any = None) -> str:
        """记录请求, 返回用于关联响应的 request id"""
        request_id = uuid.uuid4().hex[:12]
        path = urlparse(url).path or "/"
        log_msg = f"[{request_id}] → {method.upper()} {path}"
        if body:
            log_msg += f" body={self._preview_body(body)}"
        self.logger.debug(log_msg)
        return request_id

    def log_response(self, request_id: str, status_code: Optional[int], method: str, url: str,
                     duration_ms: float = 0.0):
        # 格式: [id] ✅ POST /session/xx/element 200 (45.6ms)
        path = urlparse(url).path or "/"
        status_marker = "✅" if status_code and 200 <= status_code < 300 else "❌"
        self.logger.debug(f"[{request_id}] {status_marker} {method.upper()} {path} {status_code} ({duration_ms:.1f}ms)")

    @staticmethod
    def _preview_body(body: Any, max_len: int = 300) -> str:
        if isinstance(body, dict):
            body = {
                k: "******" if any(s in str(k).lower() for s in LogConfig.SENSITIVE_KEYS) else v
                for k, v in body.items()
            }
        preview = json.dumps(body, ensure_ascii=False, default=str) if isinstance(body, (dict, list)) else str(body)
        preview = mask_sensitive_data(preview)
        return preview[:max_len] + "..." if len(preview) > max_len else preview


request_logger = RequestLogger()


def log_exception(logger_param: Optional[logging.Logger] = None, exc: Optional[BaseException] = None,
                  context: str = ""):
    """记录异常及堆栈 (默认取当前正在处理的异常)"""
    log = logger_param or _main_logger()
    if exc is None:
        exc = sys.exc_info()[1]
        if exc is None:
            return
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    msg = f"Exception in {context}: {exc}" if context else str(exc)
    log.error("%s\nTraceback:\n%s", msg, tb)


def log_step(step_name: str, logger_param: Optional[logging.Logger] = None):
    """步骤日志装饰器"""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            log = logger_param or _main_logger()
            log.info("▶️ Step: %s", step_name)
            try:
                result = func(*args, **kwargs)
                log.info("✅ Completed: %s", step_name)
                return result
            except Exception as e:
                log.error("❌ Failed: %s | %s", step_name, e)
                raise
        return wrapper
    return decorator


@contextmanager
def log_duration(step_name: str, logger_param: Optional[logging.Logger] = None, threshold_ms: float = 5000.0):
    """执行时间跟踪"""
    log = logger_param or _main_logger()
    start = time.perf_counter()
    log.info("START %s", step_name)
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        msg = f"END {step_name} {duration_ms:.2f}ms"
        if duration_ms >= threshold_ms:
            msg += " ⚠️ SLOW"
        log.info(msg)
