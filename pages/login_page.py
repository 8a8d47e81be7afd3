"""
登录流程页面对象: Get Started → 手机号 → OTP
"""
from __future__ import annotations

from wallet_autotest.common.errors import FlowError
from wallet_autotest.common.strategy import Strategy
from wallet_autotest.drivers.base import delete_key, hide_keyboard, select_all
from wallet_autotest.utils.logger import log_step

from pages import selectors
from pages.base_page import BasePage, appears, text_contains
from pages.lobby_page import LobbyPage


class GetStartedScreen(BasePage):
    """启动页"""

    def is_loaded(self) -> bool:
        return self.is_displayed(selectors.get_started_button)

    def get_started(self) -> "LoginScreen":
        self.tap(
            "Get Started",
            selectors.get_started_button,
            verify=appears(selectors.phone_number_field, self.timeouts.element_wait),
        )
        return self.open_page(LoginScreen)


class LoginScreen(BasePage):
    """手机号输入页"""

    def enter_phone_number(self, phone_number: str) -> None:
        """
        输入手机号（先收起键盘，再清空输入，校验输入框文本）

        Raises:
            FlowError: 所有输入方式均未通过校验
        """
        # 键盘未弹出时 hideKeyboard 会被拒绝，结果只作参考
        self.act("Hide Keyboard", [Strategy.gesture("hide keyboard", hide_keyboard())])
        field = selectors.phone_number_field
        self.require(
            "Enter Phone Number",
            [
                Strategy.type_text("clear and type", field, phone_number),
                Strategy.type_text(
                    "select all, delete and type", field, phone_number,
                    clear=False, before=(select_all(), delete_key()),
                ),
            ],
            verify=text_contains(phone_number),
        )

    def request_otp(self) -> "OtpScreen":
        self.tap(
            "Request OTP",
            selectors.send_otp_button,
            verify=appears(selectors.otp_field, self.timeouts.element_wait),
        )
        return self.open_page(OtpScreen)

    @log_step("Login with phone number and OTP")
    def login(self, phone_number: str, otp: str) -> LobbyPage:
        """完整登录: 手机号 → OTP → 大厅"""
        self.enter_phone_number(phone_number)
        otp_screen = self.request_otp()
        otp_screen.enter_otp(otp)
        return otp_screen.verify()


class OtpScreen(BasePage):
    """OTP 校验页"""

    def enter_otp(self, otp: str) -> None:
        self.require(
            "Enter OTP",
            [Strategy.type_text("clear and type", selectors.otp_field, otp, settle_ms=self._settle)],
            verify=text_contains(otp),
        )

    def verify(self) -> LobbyPage:
        """
        提交 OTP 并等待大厅加载

        Raises:
            FlowError: OTP 被拒绝或大厅未出现
        """
        result = self.act(
            "Verify OTP",
            [Strategy.click("verify button", selectors.verify_otp_button, settle_ms=self._settle)],
            verify=appears(selectors.lobby_container, self.timeouts.element_wait),
        )
        if not result.succeeded:
            error = self.text_of(selectors.otp_error, timeout_ms=0)
            raise FlowError(f"OTP verification failed: {error or 'lobby did not load'}")
        self.log("Success", "OTP verified, lobby loaded")
        return self.open_page(LobbyPage)
