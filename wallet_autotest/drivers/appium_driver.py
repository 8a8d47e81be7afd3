"""
Appium implementation of the driver facade, over the W3C HTTP client.

Lookups poll ``find_elements`` until a displayed (and, for clickable lookups,
enabled) match shows up or the timeout passes. Client errors are translated
into the automation exception hierarchy.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from wallet_autotest.common.errors import (
    AutomationError,
    DriverSessionError,
    ElementNotFoundError,
    InteractionError,
    SoftFailure,
    StaleElementError,
)
from wallet_autotest.common.selector import Selector
from wallet_autotest.common.timing import Clock, Deadline, Sleeper
from wallet_autotest.config.manager import AppConfig, DeviceConfig
from wallet_autotest.drivers.appium_http import AppiumHTTPClient, AppiumHTTPError, WebDriverElementRef
from wallet_autotest.drivers.base import Clear, Click, DriverFacade, Operation, RawGesture, TypeText
from wallet_autotest.drivers.capabilities import build_session_payload, server_url
from wallet_autotest.utils.logger import log_duration

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_POLL = 250  # milliseconds

_SESSION_ERRORS = {"invalid session id", "session not created"}
_NOT_FOUND_ERRORS = {"no such element"}
_STALE_ERRORS = {"stale element reference"}


def translate_error(error: AppiumHTTPError) -> AutomationError:
    """Map a client error onto the automation exception hierarchy."""
    if error.connection_error:
        return DriverSessionError(f"Appium server unreachable: {error}")
    code = error.w3c_error
    if code in _SESSION_ERRORS:
        return DriverSessionError(f"Driver session lost: {error}")
    if code in _NOT_FOUND_ERRORS:
        return ElementNotFoundError(str(error))
    if code in _STALE_ERRORS:
        return StaleElementError(str(error))
    return InteractionError(str(error))


class AppiumDriver(DriverFacade):
    """
    One Appium session. ``session_id`` is the device id used by reporters,
    ``client.session_id`` the WebDriver session.
    """

    def __init__(
        self,
        client: AppiumHTTPClient,
        session_id: str,
        *,
        poll_ms: int = DEFAULT_LOOKUP_POLL,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep
    ):
        self.client = client
        self.session_id = session_id
        self.poll_ms = poll_ms
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def start(cls, config: AppConfig, device: DeviceConfig, build_name: Optional[str] = None, **kwargs) -> "AppiumDriver":
        """Open a session for ``device`` on the local server or the cloud grid."""
        client = AppiumHTTPClient(server_url(config), timeout_s=config.timeouts.http / 1000)
        payload = build_session_payload(config, device, build_name)
        try:
            with log_duration(f"Create session {device.device_id}", logger):
                client.create_session(payload)
        except AppiumHTTPError as e:
            raise DriverSessionError(f"Could not create session for {device.device_id}: {e}") from e
        logger.info(f"[{device.device_id}] Appium session {client.session_id} created")
        return cls(client, device.device_id, **kwargs)

    def quit(self) -> None:
        try:
            self.client.delete_session()
        except AppiumHTTPError as e:
            logger.warning(f"[{self.session_id}] Session delete failed: {e}")

    # ---- Lookups ----
    def find_visible(self, selector: Selector, timeout_ms: int) -> Optional[WebDriverElementRef]:
        return self._poll(selector, timeout_ms, require_enabled=False)

    def find_clickable(self, selector: Selector, timeout_ms: int) -> Optional[WebDriverElementRef]:
        return self._poll(selector, timeout_ms, require_enabled=True)

    def _poll(self, selector: Selector, timeout_ms: int, require_enabled: bool) -> Optional[WebDriverElementRef]:
        deadline = Deadline(timeout_ms, self._clock)
        while True:
            element = self._first_match(selector, require_enabled)
            if element is not None:
                return element
            if deadline.expired():
                return None
            self._sleep(deadline.bound(self.poll_ms) / 1000)

    def _first_match(self, selector: Selector, require_enabled: bool) -> Optional[WebDriverElementRef]:
        try:
            for element in self._call(self.client.find_elements, using=selector.using, value=selector.value):
                try:
                    if not self._call(self.client.is_displayed, element):
                        continue
                    if require_enabled and not self._call(self.client.is_enabled, element):
                        continue
                except SoftFailure:
                    # detached between find and state query
                    continue
                return element
        except SoftFailure as e:
            logger.debug(f"[{self.session_id}] Lookup of {selector} failed: {e}")
        return None

    # ---- Interaction ----
    def interact(self, element: Optional[WebDriverElementRef], operation: Operation) -> None:
        if isinstance(operation, RawGesture):
            params: Dict[str, Any] = dict(operation.params)
            if element is not None:
                params.setdefault("elementId", element.element_id)
            self._call(self.client.execute_script, operation.command, [params])
            return
        if element is None:
            raise InteractionError(f"{operation} needs an element")
        if isinstance(operation, Click):
            self._call(self.client.click, element)
        elif isinstance(operation, Clear):
            self._call(self.client.clear, element)
        elif isinstance(operation, TypeText):
            self._call(self.client.send_keys, element, text=operation.text)
        else:
            raise InteractionError(f"Unsupported operation: {operation!r}")

    def read_text(self, element: WebDriverElementRef) -> str:
        return self._call(self.client.get_element_text, element)

    def screenshot(self) -> bytes:
        return self._call(self.client.get_screenshot_png_bytes)

    def _call(self, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AppiumHTTPError as e:
            raise translate_error(e) from e
        except RuntimeError as e:
            # client raises RuntimeError when no session is open
            raise DriverSessionError(str(e)) from e
