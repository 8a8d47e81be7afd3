"""
环境变量加载器
负责从系统环境和.env文件加载配置
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union
from dotenv import load_dotenv
from ._path import PROJECT_ROOT

# 环境变量 -> (配置段, 字段)
_SECTION_VARS = {
    "APPIUM_SERVER_URL": ("appium", "server_url"),
    "DEVICE_APP_PACKAGE": ("appium", "app_package"),
    "DEVICE_APP_ACTIVITY": ("appium", "app_activity"),
    "LT_USERNAME": ("cloud", "username"),
    "LT_ACCESS_KEY": ("cloud", "access_key"),
    "LT_APP_ID": ("cloud", "app_id"),
    "LT_GRID_URL": ("cloud", "grid_url"),
    "BUILD_NAME": ("cloud", "build_name"),
    "TEST_PHONE_NUMBER": ("test_data", "phone_number"),
    "TEST_OTP": ("test_data", "otp"),
    "TEST_DEPOSIT_AMOUNT": ("test_data", "deposit_amount"),
    "TEST_WITHDRAW_AMOUNT": ("test_data", "withdraw_amount"),
    "TEST_DEEP_LINK": ("test_data", "deep_link"),
    "ALLURE_RESULTS_DIR": ("allure", "results_dir"),
    "SCREENSHOT_DIR": ("screenshots", "directory"),
    "LOG_DIR": ("log", "log_dir"),
}

_TIMEOUT_VARS = [
    "ELEMENT_WAIT_TIMEOUT", "STRATEGY_TIMEOUT", "ACTION_DEADLINE_TIMEOUT",
    "POLL_INTERVAL_TIMEOUT", "CLASSIFICATION_DEADLINE_TIMEOUT", "SETTLE_TIMEOUT", "HTTP_TIMEOUT",
]


class EnvLoader:
    """环境变量加载器"""

    def __init__(self, env_file: Optional[Union[str, Path]] = None):
        self._env_file = env_file
        self._loaded = False

    def load(self) -> Dict[str, Any]:
        """加载环境变量配置"""
        if not self._loaded:
            env_path = self._env_file or os.getenv("ENV_FILE", PROJECT_ROOT / ".env")
            if os.path.exists(env_path):
                load_dotenv(env_path, override=True)
            self._loaded = True

        return self._env_to_config()

    @staticmethod
    def _env_to_config() -> Dict[str, Any]:
        """转换环境变量为配置字典"""
        config: Dict[str, Any] = {}

        if env := os.getenv("ENV"):
            config["env"] = env.lower()

        for var, (section, key) in _SECTION_VARS.items():
            if value := os.getenv(var):
                config.setdefault(section, {})[key] = value

        # LambdaTest 凭证齐全时自动启用云端网格
        if os.getenv("LT_USERNAME") and os.getenv("LT_ACCESS_KEY"):
            config.setdefault("cloud", {}).setdefault("enabled", True)
        if enabled := os.getenv("LT_ENABLED"):
            config.setdefault("cloud", {})["enabled"] = enabled.lower() == "true"

        # 超时配置 (毫秒)
        timeouts = {}
        for key in _TIMEOUT_VARS:
            if value := os.getenv(key):
                timeout_key = key.replace("_TIMEOUT", "").lower()
                timeouts[timeout_key] = int(value)
        if timeouts:
            config["timeouts"] = timeouts

        if log_level := os.getenv("LOG_LEVEL"):
            config.setdefault("log", {})["log_level"] = log_level.upper()
        if auto_clean := os.getenv("AUTO_CLEAN_RESULTS"):
            config.setdefault("allure", {})["auto_clean"] = auto_clean.lower() == "true"

        return config
