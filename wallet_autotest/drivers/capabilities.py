"""W3C session payloads for a local Appium server or the LambdaTest grid."""
from __future__ import annotations

import os
from typing import Any, Dict, Optional

from wallet_autotest.config.manager import AppConfig, DeviceConfig

DEFAULT_BUILD_NAME = "PFG Automation Test"

# lt:options switched on for every cloud run
_LT_DEFAULTS: Dict[str, Any] = {
    "isRealMobile": True,
    "w3c": True,
    "network": True,
    "visual": True,
    "video": True,
    "console": True,
    "devicelog": True,
    "terminalLog": True,
    "networkLog": True,
    "visualLog": True,
    "autoGrantPermissions": True,
    "autoAcceptAlerts": True,
    "deviceOrientation": "PORTRAIT",
}


def resolve_build_name(
    explicit: Optional[str] = None,
    test_name: Optional[str] = None,
    class_name: Optional[str] = None
) -> str:
    """
    Build label shown on the grid dashboard.

    Priority: explicit value (or ``BUILD_NAME``), then the test name with
    ``_``/``-`` as spaces, then the class name without its Test/Flow suffixes.
    """
    explicit = explicit or os.getenv("BUILD_NAME")
    if explicit and explicit.strip():
        return explicit.strip()
    if test_name and test_name.strip():
        return test_name.replace("_", " ").replace("-", " ").strip()
    if class_name and class_name.strip():
        stripped = class_name.replace("Test", "").replace("Flow", "").replace("Navigation", "").strip()
        if stripped:
            return stripped
    return DEFAULT_BUILD_NAME


def build_capabilities(config: AppConfig, device: DeviceConfig, build_name: Optional[str] = None) -> Dict[str, Any]:
    """``alwaysMatch`` capabilities for ``device``."""
    appium = config.appium
    caps: Dict[str, Any] = {
        "platformName": appium.platform_name,
        "appium:automationName": appium.automation_name,
        "appium:deviceName": device.name,
        "appium:platformVersion": device.platform_version,
        "appium:appPackage": appium.app_package,
        "appium:appActivity": appium.app_activity,
        "appium:noReset": appium.no_reset,
        "appium:fullReset": appium.full_reset,
        "appium:newCommandTimeout": appium.new_command_timeout,
    }
    if device.udid:
        caps["appium:udid"] = device.udid

    cloud = config.cloud
    if cloud.enabled:
        lt_options: Dict[str, Any] = dict(_LT_DEFAULTS)
        lt_options.update({
            "username": cloud.username,
            "accessKey": cloud.access_key.get_secret_value(),
            "platformName": appium.platform_name,
            "deviceName": device.name,
            "platformVersion": device.platform_version,
            "app": cloud.app_id,
            "project": cloud.project,
            "build": build_name or cloud.build_name or DEFAULT_BUILD_NAME,
            "idleTimeout": appium.new_command_timeout,
            "newCommandTimeout": appium.new_command_timeout,
        })
        lt_options.update(cloud.options)
        caps["lt:options"] = lt_options
    return caps


def build_session_payload(config: AppConfig, device: DeviceConfig, build_name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "capabilities": {
            "alwaysMatch": build_capabilities(config, device, build_name),
            "firstMatch": [{}],
        }
    }


def server_url(config: AppConfig) -> str:
    """Hub URL: the grid when cloud runs are enabled, otherwise the local server."""
    return config.cloud.grid_url if config.cloud.enabled else config.appium.server_url
