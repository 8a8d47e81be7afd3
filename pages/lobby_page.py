"""
大厅与汉堡菜单页面对象
"""
from __future__ import annotations

from typing import Optional

from wallet_autotest.common.selector import Selector
from wallet_autotest.common.strategy import ActionResult, Strategy
from wallet_autotest.drivers.base import RawGesture

from pages import selectors
from pages.balance_page import MyBalancePage
from pages.base_page import BasePage, appears
from pages.add_cash_page import AddCashPage


class LobbyPage(BasePage):
    """游戏大厅"""

    def is_loaded(self, timeout_ms: Optional[int] = None) -> bool:
        return self.is_displayed(selectors.lobby_container, timeout_ms)

    def open_menu(self) -> "HamburgerMenu":
        """打开汉堡菜单（三种定位方式：id、xpath view、头部图标）"""
        self.dismiss_banner()
        self.require(
            "Open Hamburger Menu",
            [
                Strategy.click("hamburger by id", selectors.hamburger, settle_ms=self._settle),
                Strategy.click("hamburger view", selectors.hamburger_view, settle_ms=self._settle),
                Strategy.click("hamburger header icon", selectors.hamburger_icon, settle_ms=self._settle),
            ],
            verify=appears(selectors.menu_profile, self.timeouts.element_wait),
        )
        return self.open_page(HamburgerMenu)

    def open_add_cash(self) -> AddCashPage:
        """点击钱包 + 号进入充值页"""
        self.dismiss_banner()
        self.tap(
            "Open Add Cash",
            selectors.wallet_add,
            verify=appears(selectors.amount_field, self.timeouts.element_wait),
        )
        return self.open_page(AddCashPage)

    def open_deep_link(self, url: str) -> ActionResult:
        """通过 deep link 打开 App 内页面（无法校验落地页，结果为 tentative）"""
        self.log("Info", f"Opening deep link: {url}")
        return self.require(
            "Open Deep Link",
            [Strategy.gesture(
                "deep link",
                RawGesture("mobile: deepLink", {"url": url, "package": selectors.APP_PACKAGE}),
                settle_ms=self._settle,
            )],
        )


class HamburgerMenu(BasePage):
    """汉堡菜单"""

    def _open_item(self, label: str, loaded: Selector) -> None:
        self.tap(
            f"Open {label}",
            selectors.menu_item.formatted(label=label),
            verify=appears(loaded, self.timeouts.element_wait),
        )

    def open_my_balance(self) -> MyBalancePage:
        self._open_item("My Balance", selectors.my_balance_loaded)
        return self.open_page(MyBalancePage)

    def open_settings(self) -> "SettingsPage":
        from pages.settings_page import SettingsPage

        self._open_item("Settings", selectors.logout_button)
        return self.open_page(SettingsPage)
