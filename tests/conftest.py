import re
import sys
import warnings
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

from wallet_autotest.config import settings
from wallet_autotest.config.manager import TimeoutsConfig
from wallet_autotest.drivers.capabilities import resolve_build_name
from wallet_autotest.drivers.session import DeviceSession, select_devices
from wallet_autotest.utils.data.yaml_cases_loader import InvalidYamlFormatError, load_yaml_file

from pages import GetStartedScreen

from fakes import FakeClock, FakeDriver, RecordingReporter

DATA_DIR = Path(__file__).resolve().parent.parent / "test_data"


# ==================== 通用夹具 ====================
@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def driver(clock) -> FakeDriver:
    return FakeDriver(clock)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def timeouts() -> TimeoutsConfig:
    """与默认值一致，显式列出便于断言"""
    return TimeoutsConfig(
        element_wait=10000,
        strategy=5000,
        action_deadline=30000,
        poll_interval=1000,
        classification_deadline=30000,
        settle=1000,
        http=30000,
    )


@pytest.fixture
def make_page(driver, reporter, timeouts, clock):
    """make_page(PageClass) -> 使用假驱动/假时钟的页面对象"""
    def _make(page_cls):
        return page_cls(driver, reporter, timeouts, None, clock, clock.sleep)
    return _make


# ==================== 设备夹具（--run-device 开启） ====================
def pytest_addoption(parser):
    group = parser.getgroup("device", "真机 / 云端设备用例")
    group.addoption(
        "--run-device", action="store_true", default=False,
        help="运行 @pytest.mark.device 用例（需要 Appium 服务或 LambdaTest 凭据）",
    )
    group.addoption(
        "--device", action="append", default=[], dest="device_names",
        help="只在指定设备上运行（设备名或 device_id，可重复）",
    )


def pytest_collection_modifyitems(config, items):
    """未开启 --run-device 时跳过所有设备用例"""
    if config.getoption("--run-device"):
        return
    skip_device = pytest.mark.skip(reason="设备用例需要 --run-device")
    for item in items:
        if item.get_closest_marker("device"):
            item.add_marker(skip_device)


@pytest.fixture
def device_session(request, device_config):
    """
    每个用例独立的设备会话: 用例前启动, 用例后退出

    驱动绑定到 AllureReporter，截图保存到 screenshots/<device_id>/
    """
    build_name = resolve_build_name(
        test_name=request.node.originalname,
        class_name=request.cls.__name__ if request.cls else None,
    )
    session = DeviceSession.open(settings.config, device_config, build_name)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def flow_data():
    """配置中的业务数据（settings.test_data），缺少登录数据时跳过"""
    data = settings.config.test_data
    if not data.phone_number or not data.otp.get_secret_value():
        pytest.skip("未配置登录数据: TEST_PHONE_NUMBER / TEST_OTP")
    return data


@pytest.fixture
def lobby(device_session, flow_data):
    """已登录的大厅页"""
    start = device_session.page(GetStartedScreen)
    return start.get_started().login(flow_data.phone_number, flow_data.otp.get_secret_value())


def _parametrize_devices(metafunc) -> None:
    """按 settings.devices 参数化 device_config；未开启 --run-device 时不读取配置"""
    if not metafunc.config.getoption("--run-device"):
        metafunc.parametrize("device_config", [None], ids=["no_device"])
        return
    try:
        devices = select_devices(settings.config, metafunc.config.getoption("device_names"))
    except LookupError as e:
        _raise_usage_error(metafunc, str(e))
        return
    if not devices:
        _raise_usage_error(metafunc, "未配置任何测试设备 (devices)")
    metafunc.parametrize("device_config", devices, ids=[d.device_id for d in devices])


# ==================== 安全的YAML加载（带缓存） ====================
@lru_cache(maxsize=128)
def _cached_load_yaml(file_path_str: str) -> Dict[str, List[Dict[str, Any]]]:
    """带缓存的YAML加载（基于绝对路径）"""
    file_path = Path(file_path_str)
    if not file_path.exists():
        raise FileNotFoundError(f"YAML文件不存在: {file_path}")
    return load_yaml_file(file_path)


def _extract_yaml_param_names(metafunc, first_case: Dict[str, Any]) -> List[str]:
    """
    提取需从YAML注入的参数名（测试函数参数名必须与YAML字段名一致）
    """
    yaml_fields = set(first_case.keys()) if first_case else set()
    param_names = [p for p in metafunc.fixturenames if p in yaml_fields]

    if not param_names and yaml_fields:
        _raise_usage_error(
            metafunc,
            f"测试函数参数与YAML字段无匹配\n"
            f"  YAML字段: {sorted(yaml_fields)}\n"
            f"  测试参数: {sorted(metafunc.fixturenames)}\n"
            f"  要求: 测试函数参数名必须与YAML字段名完全一致"
        )

    return param_names


# ==================== 核心钩子 ====================
def pytest_generate_tests(metafunc):
    """
    pytest 动态参数化钩子: @pytest.mark.yaml_data(file='xxx.yaml', group='yyy')

    文件缺失、组缺失、无有效用例时通过参数化空列表跳过；格式错误直接终止收集。
    """
    if "device_config" in metafunc.fixturenames:
        _parametrize_devices(metafunc)

    marker = metafunc.definition.get_closest_marker("yaml_data")
    if marker is None:
        return

    # === 1. 验证marker参数 ===
    try:
        file_name = marker.kwargs["file"]
        group_name = marker.kwargs["group"]
    except KeyError as e:
        _raise_usage_error(
            metafunc,
            f"@pytest.mark.yaml_data 缺少必需参数 {e}\n"
            f"  正确用法: @pytest.mark.yaml_data(file='xxx.yaml', group='yyy')\n"
            f"  当前参数: {marker.kwargs}"
        )
        return

    # === 2. 文件存在性预检查 ===
    abs_file_path = DATA_DIR / file_name
    if not abs_file_path.exists():
        _warn_and_skip(metafunc, f"YAML数据文件不存在，跳过测试: {abs_file_path}")
        _parametrize_empty(metafunc)
        return

    # === 3. 加载YAML数据（带缓存）===
    try:
        res = _cached_load_yaml(str(abs_file_path))
    except InvalidYamlFormatError as e:
        _raise_usage_error(metafunc, f"YAML数据格式验证失败，测试终止:\n{e}")
        return

    # === 4. 验证用例组存在性 ===
    if group_name not in res:
        available = list(res.keys())
        _warn_and_skip(
            metafunc,
            f"YAML中不存在用例组 '{group_name}'，跳过测试。\n"
            f"  可用组: {available if available else '[空]'}"
        )
        _parametrize_empty(metafunc)
        return

    cases = res[group_name]

    # === 5. 提取参数名 ===
    param_names = _extract_yaml_param_names(metafunc, cases[0])

    # === 6. 构建参数值与可读性ID ===
    param_values: List[Tuple[Any, ...]] = []
    param_ids: List[str] = []

    for idx, case in enumerate(cases):
        missing = [p for p in param_names if p not in case]
        if missing:
            continue  # 跳过字段缺失的用例

        case_id = (
                str(case.get("case_id", "")) or
                str(case.get("id", "")) or
                str(case.get("name", "")) or
                f"{group_name}_{idx}"
        )
        case_id = re.sub(r'[^a-zA-Z0-9_]', '_', case_id)
        case_id = re.sub(r'_+', '_', case_id).strip('_')
        if not case_id or not case_id[0].isalpha():
            case_id = f"{group_name}_{idx}"

        param_values.append(tuple(case[p] for p in param_names))
        param_ids.append(case_id)

    # === 7. 处理无有效用例场景 ===
    if not param_values:
        _warn_and_skip(
            metafunc,
            f"用例组 '{group_name}' 无有效用例（所有用例均因字段缺失被跳过）\n"
            f"  所需参数: {param_names}"
        )
        _parametrize_empty(metafunc)
        return

    # === 8. 正常参数化 ===
    if len(param_names) == 1:
        param_values = [values[0] for values in param_values]
    metafunc.parametrize(",".join(param_names), param_values, ids=param_ids, scope="function")


# ==================== 安全的辅助函数 ====================
def _raise_usage_error(metafunc, message: str) -> None:
    """在收集阶段抛出使用错误"""
    raise pytest.UsageError(f"[YAML数据错误] in {metafunc.definition.nodeid}\n{message}")


def _warn_and_skip(metafunc, message: str) -> None:
    """收集阶段不能 pytest.skip()，只能告警 + 参数化空列表"""
    full_message = f"[YAML数据] in {metafunc.definition.nodeid}\n{message}"
    warnings.warn(full_message, UserWarning, stacklevel=2)
    print(f"\n⚠️  YAML数据跳过 [{metafunc.definition.nodeid}]:\n{message}", file=sys.stderr)


def _parametrize_empty(metafunc) -> None:
    """参数化空列表触发pytest自动跳过（参数名须是有效标识符）"""
    safe_params = [
        p for p in metafunc.fixturenames
        if p.isidentifier() and not p.startswith("_") and p != "request"
    ]
    param_name = safe_params[0] if safe_params else "yaml_skip_marker"
    metafunc.parametrize(param_name, [], ids=[], scope="function")
