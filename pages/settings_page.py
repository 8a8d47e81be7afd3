"""
设置页面对象
"""
from __future__ import annotations

from pages import selectors
from pages.base_page import BasePage, appears
from pages.login_page import GetStartedScreen


class SettingsPage(BasePage):

    def logout(self) -> GetStartedScreen:
        """Log Out → 确认 → 回到启动页"""
        self.tap(
            "Log Out",
            selectors.logout_button,
            verify=appears(selectors.confirm_logout, self.timeouts.element_wait),
        )
        self.tap(
            "Confirm Log Out",
            selectors.confirm_logout,
            verify=appears(selectors.get_started_button, self.timeouts.element_wait),
        )
        return self.open_page(GetStartedScreen)
