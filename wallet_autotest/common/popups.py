"""Dismissal of in-app banners and modal popups that sit on top of a screen."""
from __future__ import annotations

from typing import Optional, Sequence

from wallet_autotest.common.executor import ResilientActionExecutor
from wallet_autotest.common.selector import Selector
from wallet_autotest.common.strategy import ActionResult, Observation, Strategy
from wallet_autotest.drivers.base import press_back

DEFAULT_SETTLE = 500  # milliseconds


def _gone(marker: Selector):
    def _verify(observation: Observation) -> bool:
        return not observation.driver.is_visible(marker, 0)

    _verify.__name__ = f"gone({marker})"
    return _verify


def dismiss_banner(
    executor: ResilientActionExecutor,
    close_selectors: Sequence[Selector],
    marker: Optional[Selector] = None,
    probe_timeout_ms: int = 2000,
    settle_ms: int = DEFAULT_SETTLE
) -> Optional[ActionResult]:
    """
    Close a promotional banner if one is showing.

    ``marker`` (defaults to the first close selector) identifies the banner.
    Returns None when no banner appeared within ``probe_timeout_ms``.
    """
    if not close_selectors:
        return None
    marker = marker or close_selectors[0]
    driver = executor.driver
    if driver.find_visible(marker, probe_timeout_ms) is None:
        executor.reporter.log(driver.session_id, "Info", "No banner displayed")
        return None

    strategies = [
        Strategy.click(f"close via {selector}", selector, settle_ms=settle_ms)
        for selector in close_selectors
    ]
    return executor.execute("Dismiss Banner", strategies, verify=_gone(marker))


def dismiss_popup(
    executor: ResilientActionExecutor,
    marker: Selector,
    ok_selector: Optional[Selector] = None,
    close_selector: Optional[Selector] = None,
    use_back_key: bool = True,
    probe_timeout_ms: int = 2000,
    settle_ms: int = DEFAULT_SETTLE
) -> Optional[ActionResult]:
    """
    Dismiss a modal popup: OK button, then close icon, then the Android back
    key. Verified by ``marker`` no longer being visible.

    Returns None when the popup is not showing.
    """
    driver = executor.driver
    if driver.find_visible(marker, probe_timeout_ms) is None:
        executor.reporter.log(driver.session_id, "Info", f"Popup not displayed: {marker}")
        return None

    strategies = []
    if ok_selector is not None:
        strategies.append(Strategy.click("ok button", ok_selector, settle_ms=settle_ms))
    if close_selector is not None:
        strategies.append(Strategy.click("close button", close_selector, settle_ms=settle_ms))
    if use_back_key:
        strategies.append(Strategy.gesture("back key", press_back(), settle_ms=settle_ms))
    return executor.execute(f"Dismiss Popup ({marker})", strategies, verify=_gone(marker))
