import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from wallet_autotest.common.errors import DriverSessionError
from wallet_autotest.config.manager import AppConfig
from wallet_autotest.drivers.appium_driver import AppiumDriver
from wallet_autotest.drivers.session import DeviceSession, select_devices
from wallet_autotest.reporting.reporter import AllureReporter

from pages.base_page import BasePage


class TestDeviceSession(unittest.TestCase):
    """DeviceSession 单元测试（AppiumDriver.start 被替换为 Mock）"""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.config = AppConfig(
            devices=[
                {"name": "Galaxy S21", "platform_version": "12"},
                {"name": "Pixel 7", "platform_version": "13"},
            ],
            screenshots={"directory": self.tmpdir, "attach_to_allure": False},
        )
        self.device = self.config.devices[1]
        self.reporter = Mock(spec=AllureReporter)
        self.driver = Mock(spec=AppiumDriver)
        self.driver.session_id = "Pixel 7_13"

        patcher = patch("wallet_autotest.drivers.session.AppiumDriver")
        self.driver_cls = patcher.start()
        self.driver_cls.start.return_value = self.driver
        self.addCleanup(patcher.stop)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _open(self):
        return DeviceSession.open(self.config, self.device, "Nightly", reporter=self.reporter)

    def test_open_binds_driver_and_screenshots(self):
        """启动驱动、绑定报告器、截图目录按设备区分"""
        session = self._open()

        self.driver_cls.start.assert_called_once_with(self.config, self.device, "Nightly")
        self.reporter.bind_driver.assert_called_once_with("Pixel 7_13", self.driver)
        self.assertEqual(session.session_id, "Pixel 7_13")
        self.assertEqual(session.screenshots.screenshot_dir, (Path(self.tmpdir) / "Pixel 7_13").resolve())
        self.assertFalse(session.screenshots.enable_allure)
        self.reporter.step_start.assert_called_once_with("Pixel 7_13", "Test Setup")
        self.reporter.step_end.assert_called_once_with("Pixel 7_13", "Test Setup")
        self.reporter.log.assert_any_call("Pixel 7_13", "Build Name", "Using build name: Nightly")

    def test_start_failure_is_reported(self):
        """会话创建失败：记录错误、结束步骤、向上抛出"""
        error = DriverSessionError("Could not create session for Pixel 7_13")
        self.driver_cls.start.side_effect = error

        with self.assertRaises(DriverSessionError):
            self._open()

        self.reporter.error.assert_called_once_with("Pixel 7_13", "Driver initialization failed", error)
        self.reporter.step_end.assert_called_once_with("Pixel 7_13", "Test Setup")
        self.reporter.bind_driver.assert_not_called()

    def test_close_quits_once(self):
        """close 解绑驱动后再记录成功，重复调用无效"""
        session = self._open()
        self.reporter.reset_mock()

        session.close()
        session.close()

        self.driver.quit.assert_called_once()
        names = [c[0] for c in self.reporter.method_calls]
        self.assertEqual(names, ["step_start", "unbind_driver", "log", "step_end"])
        self.reporter.log.assert_called_once_with("Pixel 7_13", "Success", "Driver quit successfully")

    def test_close_unbinds_when_quit_fails(self):
        session = self._open()
        self.driver.quit.side_effect = RuntimeError("connection reset")

        with self.assertRaises(RuntimeError):
            session.close()

        self.reporter.unbind_driver.assert_called_once_with("Pixel 7_13")
        self.reporter.step_end.assert_called_with("Pixel 7_13", "Test Cleanup")

    def test_context_manager_closes(self):
        with self._open() as session:
            self.assertIs(session.driver, self.driver)
        self.driver.quit.assert_called_once()

    def test_page_shares_session(self):
        """页面对象使用会话的驱动、报告器、超时配置与截图"""
        session = self._open()

        page = session.page(BasePage)

        self.assertIs(page.driver, self.driver)
        self.assertIs(page.reporter, self.reporter)
        self.assertIs(page.timeouts, self.config.timeouts)
        self.assertIs(page.screenshots, session.screenshots)


class TestSelectDevices(unittest.TestCase):
    """设备筛选"""

    def setUp(self):
        self.config = AppConfig(devices=[
            {"name": "Galaxy S21", "platform_version": "12"},
            {"name": "Pixel 7", "platform_version": "13"},
        ])

    def test_all_devices_by_default(self):
        ids = [d.device_id for d in select_devices(self.config)]
        self.assertEqual(ids, ["Galaxy S21_12", "Pixel 7_13"])
        self.assertEqual(len(select_devices(self.config, [""])), 2)

    def test_select_by_name_or_device_id(self):
        ids = [d.device_id for d in select_devices(self.config, ["Pixel 7", "Galaxy S21_12"])]
        self.assertEqual(ids, ["Pixel 7_13", "Galaxy S21_12"])

    def test_unknown_device(self):
        with self.assertRaises(LookupError):
            select_devices(self.config, ["iPhone 15"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
