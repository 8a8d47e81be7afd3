"""
Driver facade over a Playwright ``Page`` for the web build of the wallet app.

``mobile:`` gestures are emulated with the closest browser equivalent so the
same page-object strategies run against both builds.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from wallet_autotest.common.errors import (
    AutomationError,
    DriverSessionError,
    ElementNotFoundError,
    InteractionError,
)
from wallet_autotest.common.selector import By, Selector
from wallet_autotest.common.timing import Clock, Deadline, Sleeper
from wallet_autotest.drivers.base import (
    KEYCODE_A,
    KEYCODE_BACK,
    KEYCODE_DEL,
    Clear,
    Click,
    DriverFacade,
    Operation,
    RawGesture,
    TypeText,
)

logger = logging.getLogger(__name__)

DEFAULT_ACTION_TIMEOUT = 5000  # milliseconds
_ENABLED_POLL = 100  # milliseconds
_CLOSED_MARKERS = ("Target page, context or browser has been closed", "Browser has been closed")


def _css_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


class PlaywrightDriver(DriverFacade):
    """Facade over one Playwright page; ``session_id`` labels it in reports."""

    def __init__(
        self,
        page: Page,
        session_id: str = "web",
        *,
        action_timeout_ms: int = DEFAULT_ACTION_TIMEOUT,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep
    ):
        self.page = page
        self.session_id = session_id
        self.action_timeout_ms = action_timeout_ms
        self._clock = clock
        self._sleep = sleep
        self._gestures: Dict[str, Callable[[Optional[Locator], Dict[str, Any]], None]] = {
            "mobile: clickGesture": self._click_gesture,
            "mobile: pressKey": self._press_key,
            "mobile: hideKeyboard": self._hide_keyboard,
            "mobile: replaceElementValue": self._replace_value,
            "mobile: deepLink": self._deep_link,
        }

    # ---- Selector resolution ----
    def locator(self, selector: Selector) -> Locator:
        using, value = selector.using, selector.value
        if using == By.CSS:
            return self.page.locator(value)
        if using == By.XPATH:
            return self.page.locator(f"xpath={value}")
        if using == By.ID:
            # Android resource ids ("pkg:id/name") map to the web build's element ids
            return self.page.locator(f'[id="{_css_string(value.split("/")[-1])}"]')
        if using == By.ACCESSIBILITY_ID:
            return self.page.get_by_label(value, exact=True)
        if using == By.CLASS_NAME:
            return self.page.locator(f".{value}")
        raise InteractionError(f"Locator strategy '{using}' is not available in the browser")

    # ---- Lookups ----
    def find_visible(self, selector: Selector, timeout_ms: int) -> Optional[Locator]:
        target = self.locator(selector).first
        try:
            if timeout_ms <= 0:
                # Playwright treats timeout=0 as "wait forever"
                return target if target.is_visible() else None
            target.wait_for(state="visible", timeout=timeout_ms)
            return target
        except PlaywrightTimeoutError:
            return None
        except PlaywrightError as e:
            raise self._translate(e) from e

    def find_clickable(self, selector: Selector, timeout_ms: int) -> Optional[Locator]:
        deadline = Deadline(timeout_ms, self._clock)
        target = self.find_visible(selector, timeout_ms)
        if target is None:
            return None
        while True:
            try:
                if target.is_enabled():
                    return target
            except PlaywrightError as e:
                raise self._translate(e) from e
            if deadline.expired():
                return None
            self._sleep(deadline.bound(_ENABLED_POLL) / 1000)

    # ---- Interaction ----
    def interact(self, element: Optional[Locator], operation: Operation) -> None:
        try:
            if isinstance(operation, RawGesture):
                handler = self._gestures.get(operation.command)
                if handler is None:
                    raise InteractionError(f"Gesture '{operation.command}' is not supported in the browser")
                handler(element, operation.params)
                return
            if element is None:
                raise InteractionError(f"{operation} needs an element")
            if isinstance(operation, Click):
                element.click(timeout=self.action_timeout_ms)
            elif isinstance(operation, Clear):
                element.clear(timeout=self.action_timeout_ms)
            elif isinstance(operation, TypeText):
                element.press_sequentially(operation.text, timeout=self.action_timeout_ms)
            else:
                raise InteractionError(f"Unsupported operation: {operation!r}")
        except AutomationError:
            raise
        except PlaywrightTimeoutError as e:
            raise InteractionError(f"{operation} timed out: {e.message}") from e
        except PlaywrightError as e:
            raise self._translate(e) from e

    def read_text(self, element: Locator) -> str:
        try:
            tag = element.evaluate("el => el.tagName.toLowerCase()")
            if tag in ("input", "textarea"):
                return element.input_value(timeout=self.action_timeout_ms)
            return element.inner_text(timeout=self.action_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(f"Element text unavailable: {e.message}") from e
        except PlaywrightError as e:
            raise self._translate(e) from e

    def screenshot(self) -> bytes:
        try:
            return self.page.screenshot(full_page=False)
        except PlaywrightError as e:
            raise self._translate(e) from e

    # ---- Gesture emulation ----
    def _click_gesture(self, element: Optional[Locator], params: Dict[str, Any]) -> None:
        if element is not None:
            element.click(timeout=self.action_timeout_ms)
        elif "x" in params and "y" in params:
            self.page.mouse.click(params["x"], params["y"])
        else:
            raise InteractionError("clickGesture needs an element or x/y")

    def _press_key(self, element: Optional[Locator], params: Dict[str, Any]) -> None:
        keycode = params.get("keycode")
        if keycode == KEYCODE_BACK:
            self.page.go_back()
        elif keycode == KEYCODE_A and params.get("metastate"):
            self.page.keyboard.press("ControlOrMeta+A")
        elif keycode == KEYCODE_DEL:
            self.page.keyboard.press("Backspace")
        else:
            raise InteractionError(f"Key code {keycode} has no browser equivalent")

    def _hide_keyboard(self, element: Optional[Locator], params: Dict[str, Any]) -> None:
        if element is not None:
            element.blur()

    def _replace_value(self, element: Optional[Locator], params: Dict[str, Any]) -> None:
        if element is None:
            raise InteractionError("replaceElementValue needs an element")
        element.fill(str(params.get("text", "")), timeout=self.action_timeout_ms)

    def _deep_link(self, element: Optional[Locator], params: Dict[str, Any]) -> None:
        url = params.get("url")
        if not url:
            raise InteractionError("deepLink needs a url")
        self.page.goto(url)

    def _translate(self, error: PlaywrightError) -> AutomationError:
        message = error.message or str(error)
        if any(marker in message for marker in _CLOSED_MARKERS):
            return DriverSessionError(message)
        return InteractionError(message)
