"""延迟初始化日志实例模块"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Optional, Union

# 模块级存储, 重复导入也只初始化一次
_module_instances: Dict[str, logging.Logger] = {}
_module_lock = threading.Lock()

MAIN_LOGGER = "automation"


class LazyLogger:
    """延迟初始化日志实例"""

    @classmethod
    def get(
        cls,
        name: str,
        log_level: Optional[str] = None,
        log_to_console: bool = True,
        log_to_file: bool = True,
        log_to_json: bool = False,
        separate_log_file: Union[str, bool, None] = None
    ) -> logging.Logger:
        """获取或创建日志实例"""
        with _module_lock:
            if name in _module_instances:
                return _module_instances[name]

            from .config import LogConfig
            from .handlers import HandlerFactory
            from .security import SensitiveDataFilter

            logger = logging.getLogger(name)
            for handler in logger.handlers[:]:
                logger.removeHandler(handler)
                handler.close()

            level = getattr(logging, (log_level or LogConfig.LOG_LEVEL).upper(), logging.INFO)
            logger.setLevel(level)
            logger.propagate = False
            logger.addFilter(SensitiveDataFilter())

            if log_to_console:
                logger.addHandler(HandlerFactory.create_handler("console", None, logging.DEBUG))

            if log_to_file:
                if name == MAIN_LOGGER:
                    logger.addHandler(HandlerFactory.create_handler(
                        "timed", LogConfig.MAIN_LOG_FILE, logging.DEBUG
                    ))
                    # 错误日志（含堆栈）
                    logger.addHandler(HandlerFactory.create_handler(
                        "rotating",
                        f"error_{datetime.now().strftime('%Y%m%d')}.log",
                        logging.ERROR,
                    ))
                elif separate_log_file:
                    filename = f"{name}.log" if separate_log_file is True else separate_log_file
                    logger.addHandler(HandlerFactory.create_handler("timed", filename, logging.DEBUG))

            if log_to_json:
                logger.addHandler(HandlerFactory.create_handler("json", f"{name}.jsonl", logging.DEBUG))

            if name == MAIN_LOGGER and not LogConfig.QUIET:
                logger.info("=" * 70)
                logger.info(f"✅ Automation Logger | Env: {LogConfig.ENV} | Level: {logging.getLevelName(level)}")
                logger.info(f"⏰ UTC: {datetime.now(timezone.utc).isoformat()}")
                logger.info("=" * 70)

            _module_instances[name] = logger
            return logger

    @classmethod
    def cleanup(cls):
        """清理所有日志实例"""
        with _module_lock:
            for logger in _module_instances.values():
                for handler in logger.handlers[:]:
                    logger.removeHandler(handler)
                    handler.close()
            _module_instances.clear()
