"""日志格式化器模块"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from .config import LogConfig
from .security import mask_sensitive_data


class SecurityFormatter(logging.Formatter):
    """统一日志格式：时间 级别 [文件:函数:行号] 消息"""
    _CRLF_PATTERN = re.compile(r'[\r\n\x1b\x9b]')
    _ANSI_ESCAPE = re.compile(r'\x1b(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

    STANDARD_FORMAT = "%(asctime)s %(levelname)-8s [%(filename)s:%(funcName)s:%(lineno)d] %(message)s"
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    def format(self, record: logging.LogRecord) -> str:
        original_msg, original_args = record.msg, record.args
        try:
            message = record.getMessage()
            record.msg = mask_sensitive_data(self._sanitize(message))
            record.args = None
            return super().format(record)
        finally:
            record.msg, record.args = original_msg, original_args

    @staticmethod
    def _sanitize(text: str) -> str:
        text = SecurityFormatter._ANSI_ESCAPE.sub('', text)
        return SecurityFormatter._CRLF_PATTERN.sub(' ', text)


class ColorCodes:
    """颜色代码定义"""
    RESET = "\x1b[0m"
    CYAN = "\x1b[36m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    RED = "\x1b[31m"
    BG_RED = "\x1b[41m"
    WHITE = "\x1b[37m"
    BOLD = "\x1b[1m"
    CRITICAL = BOLD + BG_RED + WHITE


class ColoredFormatter(SecurityFormatter):
    """彩色控制台格式化器"""
    LEVEL_COLORS = {
        logging.DEBUG: ColorCodes.CYAN,
        logging.INFO: ColorCodes.GREEN,
        logging.WARNING: ColorCodes.YELLOW,
        logging.ERROR: ColorCodes.RED,
        logging.CRITICAL: ColorCodes.CRITICAL,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        if color and LogConfig.ENABLE_COLORS:
            original = record.levelname
            try:
                record.levelname = f"{color}{record.levelname}{ColorCodes.RESET}"
                return super().format(record)
            finally:
                record.levelname = original
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """JSON格式日志格式化器 (每行一条, 供 CI 采集)"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": mask_sensitive_data(SecurityFormatter._sanitize(record.getMessage())),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for key in ("session_id", "category"):
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=_json_default)


def _json_default(obj: Any) -> str:
    """JSON序列化默认处理函数"""
    if hasattr(obj, '__dict__'):
        return str({k: v for k, v in obj.__dict__.items() if not k.startswith('_')})
    return str(obj)
