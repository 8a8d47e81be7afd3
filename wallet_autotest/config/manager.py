import os
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Union
import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from ._path import PROJECT_ROOT
from .env_loader import EnvLoader
from .yaml_loader import YamlLoader


class _SettingsBase(BaseModel):
    """自定义设置基类: 支持 APP_ 前缀的嵌套环境变量覆盖 (APP_TIMEOUTS__STRATEGY=3000)"""

    ENV_PREFIX: ClassVar[str] = "APP_"
    ENV_NESTED_DELIMITER: ClassVar[str] = "__"

    @classmethod
    def _load_from_env(cls, prefix: str = "") -> Dict[str, Any]:
        """从环境变量加载配置"""
        result: Dict[str, Any] = {}
        prefix = prefix or cls.ENV_PREFIX

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue
            clean_key = key[len(prefix):].lower()
            parts = clean_key.split(cls.ENV_NESTED_DELIMITER)
            current = result
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = value

        return cls._convert_env_values(result)

    @classmethod
    def _convert_env_values(cls, data: Any) -> Any:
        """递归转换环境变量值类型"""
        if isinstance(data, dict):
            return {k: cls._convert_env_values(v) for k, v in data.items()}
        if isinstance(data, str):
            if data.lower() in ("true", "false"):
                return data.lower() == "true"
            try:
                if "." in data:
                    return float(data)
                return int(data)
            except ValueError:
                pass
        return data


class AppiumConfig(BaseModel):
    """Appium 会话配置"""
    server_url: str = "http://127.0.0.1:4723"
    platform_name: str = "Android"
    automation_name: str = "UiAutomator2"
    app_package: str = "com.paytm.paytmplay"
    app_activity: str = "com.gamepind.login.ui.LoginActivity"
    no_reset: bool = True
    full_reset: bool = False
    new_command_timeout: int = 300

    model_config = ConfigDict(protected_namespaces=())

    @field_validator("platform_name")
    @classmethod
    def validate_platform(cls, v):
        valid_platforms = ["Android", "iOS"]
        if v not in valid_platforms:
            raise ValueError(f"无效的平台: {v}, 必须是 {valid_platforms}")
        return v


class CloudGridConfig(BaseModel):
    """LambdaTest 云端真机网格配置"""
    enabled: bool = False
    grid_url: str = "https://mobile-hub.lambdatest.com/wd/hub"
    username: str = ""
    access_key: SecretStr = SecretStr("")
    app_id: str = ""
    project: str = "PFG Automation"
    build_name: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(protected_namespaces=())


class DeviceConfig(BaseModel):
    """单台测试设备"""
    name: str
    platform_version: str
    udid: Optional[str] = None

    model_config = ConfigDict(protected_namespaces=())

    @field_validator("platform_version", mode="before")
    @classmethod
    def coerce_version(cls, v):
        # YAML 会把 12 / 13.0 解析为数字
        return str(v)

    @property
    def device_id(self) -> str:
        """设备标识, 同时作为报告的 session id"""
        return f"{self.name}_{self.platform_version}"


class TimeoutsConfig(BaseModel):
    """超时配置模型 (毫秒)"""
    element_wait: int = 10000
    strategy: int = 5000
    action_deadline: int = 30000
    poll_interval: int = 1000
    classification_deadline: int = 30000
    settle: int = 1000
    http: int = 30000

    model_config = ConfigDict(protected_namespaces=())

    @field_validator("*")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("超时值必须大于0")
        return v


class FlowDataConfig(BaseModel):
    """业务测试数据"""
    phone_number: str = ""
    otp: SecretStr = SecretStr("")
    deposit_amount: str = "10"
    withdraw_amount: str = "100"
    deep_link: Optional[str] = None

    model_config = ConfigDict(protected_namespaces=())

    @field_validator("deposit_amount", "withdraw_amount", mode="before")
    @classmethod
    def validate_amount(cls, v):
        v = str(v).strip()
        if not v.isdigit() or int(v) <= 0:
            raise ValueError(f"金额必须是正整数: {v}")
        return v


class LogConfig(BaseModel):
    """日志配置模型"""
    log_dir: Path = PROJECT_ROOT / "logs"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: str = "test_run.log"

    model_config = ConfigDict(protected_namespaces=())

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = str(v).upper()
        if v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}, 必须是 {valid_levels}")
        return v


class AllureConfig(BaseModel):
    """Allure报告配置"""
    results_dir: Path = PROJECT_ROOT / "reports/allure-results"
    auto_clean: bool = True
    default_severity: str = "critical"

    model_config = ConfigDict(protected_namespaces=())


class ScreenshotConfig(BaseModel):
    """截图配置"""
    directory: Path = PROJECT_ROOT / "reports/screenshots"
    attach_to_allure: bool = True
    capture_categories: List[str] = Field(default_factory=lambda: ["Success", "Error", "Screenshot"])

    model_config = ConfigDict(protected_namespaces=())


class AppConfig(_SettingsBase):
    """应用级配置模型"""

    env: str = "dev"

    appium: AppiumConfig = Field(default_factory=AppiumConfig)
    cloud: CloudGridConfig = Field(default_factory=CloudGridConfig)
    devices: List[DeviceConfig] = Field(default_factory=list)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    test_data: FlowDataConfig = Field(default_factory=FlowDataConfig)
    allure: AllureConfig = Field(default_factory=AllureConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    screenshots: ScreenshotConfig = Field(default_factory=ScreenshotConfig)

    project_root: Path = PROJECT_ROOT

    model_config = ConfigDict(protected_namespaces=())

    @field_validator("env")
    @classmethod
    def validate_env(cls, v):
        valid_envs = ["dev", "staging", "prod"]
        if v not in valid_envs:
            raise ValueError(f"无效环境: {v}, 必须是 {valid_envs}")
        return v

    def device(self, name: Optional[str] = None) -> DeviceConfig:
        """按名称取设备, 默认第一台"""
        if not self.devices:
            raise LookupError("未配置任何测试设备 (devices)")
        if name is None:
            return self.devices[0]
        for device in self.devices:
            if device.name == name or device.device_id == name:
                return device
        raise LookupError(f"未找到设备: {name}, 可用: {[d.device_id for d in self.devices]}")


class ConfigManager:
    """配置管理核心"""

    _SECRET_FIELDS = {"cloud": {"access_key"}, "test_data": {"otp"}}

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        env_file: Optional[Union[str, Path]] = None
    ):
        self._config: Optional[AppConfig] = None
        self._yaml_loader = YamlLoader(config_dir) if config_dir else YamlLoader()
        self._env_loader = EnvLoader(env_file)
        self._overrides: Dict[str, Any] = {}
        self._initialized = False

    def _load_config(self) -> AppConfig:
        """加载完整配置"""
        # 1. 先读 .env, ENV 可能来自其中
        env_config = self._env_loader.load()

        # 2. 基础YAML + 环境YAML
        env = self._overrides.get("env") or env_config.get("env") or os.getenv("ENV", "dev")
        base_config = self._yaml_loader.load_environment(env=env)

        # 3. 依次合并: YAML < .env/环境变量 < APP_ 前缀变量 < 命令行覆盖
        merged = self._deep_merge(base_config, env_config)
        merged = self._deep_merge(merged, AppConfig._load_from_env())
        final_config = self._deep_merge(merged, self._overrides)

        try:
            return AppConfig(**final_config)
        except ValidationError as e:
            self._handle_validation_error(e)

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """深度合并字典"""
        if not isinstance(base, dict):
            return override

        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def initialize(self):
        """显式初始化 (通常不需要调用)"""
        if not self._initialized:
            self._config = self._load_config()
            self._initialized = True

    def reload(self):
        """丢弃缓存并重新加载"""
        self._yaml_loader.clear_cache()
        self._config = None
        self._initialized = False
        self.initialize()

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            self.initialize()
        return self._config

    def __getattr__(self, name: str) -> Any:
        """动态属性访问"""
        if name.startswith("_"):
            raise AttributeError(name)
        config = self.config
        try:
            return getattr(config, name)
        except AttributeError:
            available = ", ".join(sorted(AppConfig.model_fields))
            raise AttributeError(f"配置中不存在属性: {name}\n可用属性: {available}") from None

    def get(self, path: str, default: Any = None) -> Any:
        """
        安全获取嵌套配置
        示例: settings.get("timeouts.strategy", 5000)
        """
        current = self.config.model_dump()
        for key in path.split("."):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def apply_overrides(self, overrides_str: str):
        """
        应用命令行覆盖
        格式: "key1=value1,key2.subkey=value2"
        """
        if not overrides_str:
            return

        self._overrides = {}
        for pair in overrides_str.split(","):
            if "=" not in pair:
                continue
            key, value = pair.split("=", 1)
            keys = [k.strip() for k in key.strip().split(".")]
            current = self._overrides
            for k in keys[:-1]:
                current = current.setdefault(k, {})
            current[keys[-1]] = self._parse_value(value.strip())

        # 覆盖在下一次访问时生效
        self._config = None
        self._initialized = False

    def _parse_value(self, value: str) -> Any:
        """智能解析配置值类型"""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith("[") and value.endswith("]"):
            items = [item.strip() for item in value[1:-1].split(";") if item.strip()]
            return [self._parse_value(item) for item in items]

        return value

    def to_yaml(self) -> str:
        """生成配置快照YAML (不含敏感字段)"""
        data = self.config.model_dump(mode="json", exclude=self._SECRET_FIELDS)
        return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    @staticmethod
    def _handle_validation_error(error: ValidationError):
        """处理验证错误"""
        messages = []
        for err in error.errors():
            loc = ".".join(str(part) for part in err["loc"])
            messages.append(f"配置项 '{loc}': {err['msg']} (值: {err['input']})")

        raise RuntimeError("配置验证失败:\n" + "\n".join(messages)) from None


# ======================
# 命令行验证
# ======================
if __name__ == '__main__':
    print(ConfigManager().to_yaml())
