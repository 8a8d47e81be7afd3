"""日志配置模块"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Set

from wallet_autotest.config._path import PROJECT_ROOT


class ConfigLoader:
    """配置加载器"""

    @staticmethod
    def parse_bool(value: Any) -> bool:
        """解析布尔值"""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ('true', '1', 'yes', 'y')
        return bool(value)

    @staticmethod
    def load_from_settings() -> Dict[str, Any]:
        """从 settings 加载日志配置, 配置不可用时退回环境变量"""
        config = {
            'log_dir': Path(os.environ.get('LOG_DIR', PROJECT_ROOT / 'logs')),
            'log_level': os.environ.get('LOG_LEVEL', 'INFO'),
            'log_file': os.environ.get('LOG_FILE', 'test_run.log'),
            'env': os.environ.get('ENV', 'dev'),
        }

        try:
            from wallet_autotest.config import settings
            config['log_dir'] = settings.log.log_dir
            config['log_level'] = settings.log.log_level
            config['log_file'] = settings.log.log_file
            config['env'] = settings.env
        except (FileNotFoundError, ValueError, RuntimeError) as e:
            # environments/ 缺失或配置非法时日志仍需可用
            if not ConfigLoader.parse_bool(os.environ.get('LOG_QUIET', False)):
                print(f"⚠️  Logger falls back to env defaults: {e}", file=sys.stderr)

        return config


class LogConfig:
    """集中式配置管理"""
    LOG_DIR: Path = PROJECT_ROOT / 'logs'
    LOG_LEVEL: str = 'INFO'
    MAIN_LOG_FILE: str = 'test_run.log'
    BACKUP_COUNT: int = 7
    MAX_BYTES: int = 10 * 1024 * 1024  # 10MB
    ENABLE_COLORS: bool = False
    ENV: str = 'dev'
    SENSITIVE_KEYS: Set[str] = {
        'password', 'pwd', 'secret', 'token', 'api_key', 'apikey',
        'authorization', 'accesskey', 'access_key', 'otp', 'pin', 'cvv',
    }
    QUIET: bool = False

    VALID_LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}

    @classmethod
    def initialize(cls):
        """初始化配置"""
        settings_config = ConfigLoader.load_from_settings()

        cls.LOG_DIR = Path(settings_config['log_dir'])
        cls.LOG_LEVEL = str(settings_config['log_level']).upper()
        cls.MAIN_LOG_FILE = settings_config['log_file']
        cls.ENV = settings_config['env']
        cls.ENABLE_COLORS = ConfigLoader.parse_bool(os.environ.get('LOG_ENABLE_COLORS', False))
        cls.QUIET = cls.ENV == 'prod' or ConfigLoader.parse_bool(os.environ.get('LOG_QUIET', False))

        cls._validate_config()

    @classmethod
    def _validate_config(cls):
        """验证配置"""
        if cls.LOG_LEVEL not in cls.VALID_LOG_LEVELS:
            if not cls.QUIET:
                print(f"⚠️  Invalid log level: {cls.LOG_LEVEL}, using INFO instead", file=sys.stderr)
            cls.LOG_LEVEL = 'INFO'

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """获取配置值"""
        return getattr(cls, key.upper(), default)


LogConfig.initialize()
