import unittest
from unittest.mock import Mock

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from wallet_autotest.common.errors import DriverSessionError, InteractionError
from wallet_autotest.common.selector import By, Selector
from wallet_autotest.drivers.base import RawGesture, TypeText, press_back, select_all, tap_at
from wallet_autotest.drivers.playwright_driver import PlaywrightDriver

from pages import selectors

from fakes import FakeClock


class TestPlaywrightDriver(unittest.TestCase):
    """PlaywrightDriver 单元测试（Page 被替换为 Mock）"""

    def setUp(self):
        self.clock = FakeClock()
        self.mock_page = Mock()
        self.mock_locator = Mock()
        self.mock_page.locator.return_value.first = self.mock_locator
        self.mock_page.get_by_label.return_value.first = self.mock_locator
        self.driver = PlaywrightDriver(self.mock_page, action_timeout_ms=2000, clock=self.clock, sleep=self.clock.sleep)

    def test_resource_id_maps_to_element_id(self):
        self.driver.locator(Selector.by_id(selectors.rid("cash_edit")))
        self.mock_page.locator.assert_called_once_with('[id="cash_edit"]')

    def test_xpath_and_accessibility_id(self):
        self.driver.locator(Selector.by_xpath("//button"))
        self.mock_page.locator.assert_called_once_with("xpath=//button")

        self.driver.locator(Selector.by_accessibility_id("Navigate up"))
        self.mock_page.get_by_label.assert_called_once_with("Navigate up", exact=True)

    def test_uiautomator_is_not_available(self):
        with self.assertRaises(InteractionError):
            self.driver.locator(Selector(By.ANDROID_UIAUTOMATOR, 'new UiSelector().text("OK")'))

    def test_zero_timeout_does_not_wait(self):
        self.mock_locator.is_visible.return_value = False

        self.assertIsNone(self.driver.find_visible(selectors.amount_field, 0))
        self.mock_locator.wait_for.assert_not_called()

    def test_wait_for_visible(self):
        self.assertIs(self.driver.find_visible(selectors.amount_field, 3000), self.mock_locator)
        self.mock_locator.wait_for.assert_called_once_with(state="visible", timeout=3000)

    def test_wait_timeout_returns_none(self):
        self.mock_locator.wait_for.side_effect = PlaywrightTimeoutError("Timeout 3000ms exceeded")
        self.assertIsNone(self.driver.find_visible(selectors.amount_field, 3000))

    def test_closed_browser_is_session_error(self):
        self.mock_locator.wait_for.side_effect = PlaywrightError("Target page, context or browser has been closed")
        with self.assertRaises(DriverSessionError):
            self.driver.find_visible(selectors.amount_field, 3000)

    def test_clickable_waits_for_enabled(self):
        self.mock_locator.is_enabled.side_effect = [False, True]

        self.assertIs(self.driver.find_clickable(selectors.pay_button, 1000), self.mock_locator)
        self.assertEqual(self.clock.sleeps, [0.1])

    def test_type_text(self):
        self.driver.interact(self.mock_locator, TypeText("500"))
        self.mock_locator.press_sequentially.assert_called_once_with("500", timeout=2000)

    def test_click_timeout_is_soft(self):
        self.mock_locator.click.side_effect = PlaywrightTimeoutError("element is not enabled")
        with self.assertRaises(InteractionError):
            self.driver.interact(self.mock_locator, tap_at(1, 2))

    def test_gesture_emulation(self):
        self.driver.interact(None, tap_at(300, 600))
        self.driver.interact(None, press_back())
        self.driver.interact(self.mock_locator, select_all())
        self.driver.interact(self.mock_locator, RawGesture("mobile: replaceElementValue", {"text": "500"}))
        self.driver.interact(None, RawGesture("mobile: deepLink", {"url": "https://paytmfirstgames.com/pro"}))

        self.mock_page.mouse.click.assert_called_once_with(300, 600)
        self.mock_page.go_back.assert_called_once()
        self.mock_page.keyboard.press.assert_called_once_with("ControlOrMeta+A")
        self.mock_locator.fill.assert_called_once_with("500", timeout=2000)
        self.mock_page.goto.assert_called_once_with("https://paytmfirstgames.com/pro")

    def test_unknown_gesture(self):
        with self.assertRaises(InteractionError):
            self.driver.interact(None, RawGesture("mobile: swipeGesture"))

    def test_read_text_of_input(self):
        self.mock_locator.evaluate.return_value = "input"
        self.mock_locator.input_value.return_value = "500"

        self.assertEqual(self.driver.read_text(self.mock_locator), "500")
        self.mock_locator.inner_text.assert_not_called()


if __name__ == "__main__":
    unittest.main(verbosity=2)
