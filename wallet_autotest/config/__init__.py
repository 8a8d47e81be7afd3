from .manager import ConfigManager, AppConfig, DeviceConfig
from .env_loader import EnvLoader
from .yaml_loader import YamlLoader
from ._path import PROJECT_ROOT
# 全局唯一配置实例
settings = ConfigManager()

__all__ = [
    "settings",
    "ConfigManager",
    "AppConfig",
    "DeviceConfig",
    "EnvLoader",
    "YamlLoader",
    "PROJECT_ROOT"
]
