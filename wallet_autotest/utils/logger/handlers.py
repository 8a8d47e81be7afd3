"""日志处理器工厂模块"""

import atexit
import logging
import sys
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Dict, Optional, Set

from .config import LogConfig
from .formatters import ColoredFormatter, JSONFormatter, SecurityFormatter

_module_lock = threading.RLock()
_initialized_dirs: Set[Path] = set()


class HandlerFactory:
    """日志处理器工厂"""
    _handlers: Dict[int, logging.Handler] = {}
    _lock = threading.RLock()

    @classmethod
    def _ensure_log_dir(cls, target_dir: Optional[Path] = None) -> Path:
        """确保日志目录及 history 子目录存在"""
        log_dir = Path(target_dir or LogConfig.LOG_DIR).resolve()
        with _module_lock:
            if log_dir in _initialized_dirs:
                return log_dir
            try:
                (log_dir / "history").mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise RuntimeError(f"❌ Log directory initialization failed: {e} (path: {log_dir})") from e
            _initialized_dirs.add(log_dir)
            return log_dir

    @classmethod
    def create_handler(
        cls,
        handler_type: str,
        filename: Optional[str],
        level: int,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        log_dir: Optional[Path] = None,
        **kwargs
    ) -> logging.Handler:
        """
        创建日志处理器

        handler_type: timed (按天轮转) | rotating (按大小轮转) | json | console
        """
        fmt = fmt or SecurityFormatter.STANDARD_FORMAT
        datefmt = datefmt or SecurityFormatter.DATE_FORMAT

        if handler_type == "console":
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(ColoredFormatter(fmt, datefmt))
        else:
            directory = cls._ensure_log_dir(log_dir)
            history_dir = directory / "history"
            if handler_type in ("timed", "json"):
                handler = TimedRotatingFileHandler(
                    filename=directory / filename,
                    when=kwargs.get("when", "midnight"),
                    interval=kwargs.get("interval", 1),
                    backupCount=LogConfig.BACKUP_COUNT,
                    encoding="utf-8",
                )
            elif handler_type == "rotating":
                handler = RotatingFileHandler(
                    filename=directory / filename,
                    maxBytes=kwargs.get("maxBytes", LogConfig.MAX_BYTES),
                    backupCount=kwargs.get("backupCount", 5),
                    encoding="utf-8",
                )
            else:
                raise ValueError(f"Unknown handler type: {handler_type}")
            # 轮转文件统一放入 history/
            handler.rotation_filename = lambda path: cls._history_name(history_dir, Path(path).name)
            handler.setFormatter(
                JSONFormatter() if handler_type == "json" else SecurityFormatter(fmt, datefmt)
            )

        handler.setLevel(level)
        cls._register(handler)
        return handler

    @staticmethod
    def _history_name(history_dir: Path, fname: str) -> str:
        """history/ 下的轮转文件名, 已存在时追加序号"""
        date_str = datetime.now().strftime("%Y%m%d")
        base_name = fname.split(".log.")[0] + ".log" if ".log." in fname else fname
        candidate = history_dir / f"{base_name}.{date_str}"
        counter = 1
        while candidate.exists():
            candidate = history_dir / f"{base_name}.{date_str}.{counter}"
            counter += 1
        return str(candidate)

    @classmethod
    def _register(cls, handler: logging.Handler) -> None:
        with cls._lock:
            cls._handlers[id(handler)] = handler

    @classmethod
    def cleanup(cls) -> None:
        """关闭并注销所有处理器"""
        with cls._lock:
            for handler in cls._handlers.values():
                handler.flush()
                handler.close()
            cls._handlers.clear()

    @classmethod
    def get_handler_count(cls) -> int:
        with cls._lock:
            return len(cls._handlers)


atexit.register(HandlerFactory.cleanup)
