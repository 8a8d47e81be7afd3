"""
Per-device session: one Appium driver bound to the Allure reporter and a
screenshot helper, opened before a device test and quit after it.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Type, TypeVar

from wallet_autotest.common.errors import AutomationError
from wallet_autotest.config.manager import AppConfig, DeviceConfig
from wallet_autotest.drivers.appium_driver import AppiumDriver
from wallet_autotest.reporting.reporter import AllureReporter
from wallet_autotest.reporting.screenshots import ScreenshotHelper

logger = logging.getLogger(__name__)

P = TypeVar("P")


def select_devices(config: AppConfig, names: Optional[Iterable[str]] = None) -> List[DeviceConfig]:
    """Configured devices, narrowed to ``names`` (device name or device id) when given."""
    names = [n for n in (names or []) if n]
    if not names:
        return list(config.devices)
    return [config.device(name) for name in names]


class DeviceSession:
    """
    Owns the driver of one device for the length of a test.

    ``session_id`` is the device id, so report lines and screenshots of
    parallel devices stay apart.
    """

    def __init__(
        self,
        config: AppConfig,
        device: DeviceConfig,
        driver: AppiumDriver,
        reporter: AllureReporter,
        screenshots: Optional[ScreenshotHelper] = None
    ):
        self.config = config
        self.device = device
        self.driver = driver
        self.reporter = reporter
        self.screenshots = screenshots
        self._closed = False

    @property
    def session_id(self) -> str:
        return self.device.device_id

    @classmethod
    def open(
        cls,
        config: AppConfig,
        device: DeviceConfig,
        build_name: Optional[str] = None,
        reporter: Optional[AllureReporter] = None
    ) -> "DeviceSession":
        """Start the driver and report the setup step."""
        reporter = reporter or AllureReporter(capture_categories=config.screenshots.capture_categories)
        session_id = device.device_id
        reporter.step_start(session_id, "Test Setup")
        try:
            driver = AppiumDriver.start(config, device, build_name)
        except AutomationError as e:
            reporter.error(session_id, "Driver initialization failed", e)
            raise
        finally:
            reporter.step_end(session_id, "Test Setup")

        reporter.bind_driver(session_id, driver)
        screenshots = ScreenshotHelper(
            driver,
            config.screenshots.directory / session_id,
            enable_allure=config.screenshots.attach_to_allure,
        )
        session = cls(config, device, driver, reporter, screenshots)
        reporter.log(session_id, "Setup", "Driver initialized successfully")
        reporter.log(session_id, "Configuration", f"Environment: {config.env}")
        if build_name:
            reporter.log(session_id, "Build Name", f"Using build name: {build_name}")
        return session

    def page(self, page_cls: Type[P]) -> P:
        """Page object on this session's driver, reporter, timeouts and screenshots."""
        return page_cls(self.driver, self.reporter, self.config.timeouts, self.screenshots)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.reporter.step_start(self.session_id, "Test Cleanup")
        try:
            try:
                self.driver.quit()
            finally:
                # no screenshots from a quit driver
                self.reporter.unbind_driver(self.session_id)
            self.reporter.log(self.session_id, "Success", "Driver quit successfully")
        finally:
            self.reporter.step_end(self.session_id, "Test Cleanup")
        logger.info(f"[{self.session_id}] Session closed")

    def __enter__(self) -> "DeviceSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
