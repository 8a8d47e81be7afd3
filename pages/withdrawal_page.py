"""
提现流程页面对象: 输入金额 → 选择转账方式 → 提交（含确认弹窗）→ 结果页
"""
from __future__ import annotations

import re
from typing import Optional

from wallet_autotest.common.classifier import ClassificationResult, Signal, SignalDetector, contains_any
from wallet_autotest.common.strategy import ActionResult, Strategy
from wallet_autotest.common.verdict import FlowOutcome
from wallet_autotest.drivers.base import RawGesture, tap_at

from pages import selectors
from pages.base_page import BasePage, amount_entry_strategies, text_contains, visible

# 无元素时兜底点击的屏幕坐标（Transfer to Deposit 单选框位置）
DEPOSIT_RADIO_FALLBACK = (300, 600)

TRANSFER_DEPOSIT = "deposit"
TRANSFER_BANK = "bank"
TRANSFER_UPI = "upi"


def _normalize_message(text: str) -> Optional[str]:
    text = re.sub(r"\s+", " ", text or "").strip()
    return text or None


# 声明顺序即优先级
WITHDRAWAL_DETECTORS = (
    SignalDetector(Signal.DENIED, selectors.withdraw_denied_message, extract=_normalize_message),
    SignalDetector(Signal.DENIED, selectors.withdraw_denied_title, extract=_normalize_message),
    SignalDetector(
        Signal.LIMIT_REACHED,
        selectors.info_message,
        extract=_normalize_message,
        matches=contains_any("daily", "limit", "already", "withdrawn"),
    ),
    SignalDetector(Signal.SUCCESS, selectors.withdraw_success, extract=_normalize_message),
    SignalDetector(Signal.IN_PROGRESS, selectors.withdraw_in_progress, extract=_normalize_message),
)


class WithdrawalPage(BasePage):
    """提现页"""

    def enter_amount(self, amount: str) -> ActionResult:
        return self.require(
            "Enter Withdrawal Amount",
            amount_entry_strategies(selectors.amount_field, amount, settle_ms=self._settle),
            verify=text_contains(amount),
        )

    def select_transfer(self, kind: str = TRANSFER_DEPOSIT) -> ActionResult:
        """
        选择转账方式

        Args:
            kind: deposit | bank | upi

        deposit 单选框依次尝试: 普通点击 → 对元素 clickGesture → 坐标点击
        """
        if kind == TRANSFER_DEPOSIT:
            x, y = DEPOSIT_RADIO_FALLBACK
            strategies = [
                Strategy.click("click radio", selectors.deposit_radio, settle_ms=self._settle),
                Strategy.gesture(
                    "click gesture on radio",
                    RawGesture("mobile: clickGesture"),
                    selector=selectors.deposit_radio,
                    settle_ms=self._settle,
                ),
                Strategy.gesture(f"tap at {x}x{y}", tap_at(x, y), settle_ms=self._settle),
            ]
        elif kind == TRANSFER_BANK:
            strategies = [Strategy.click("click bank radio", selectors.bank_radio, settle_ms=self._settle)]
        elif kind == TRANSFER_UPI:
            strategies = [Strategy.click("click upi radio", selectors.upi_radio, settle_ms=self._settle)]
        else:
            raise ValueError(f"Unknown transfer type '{kind}', expected deposit, bank or upi")
        return self.require(f"Select Transfer To {kind.title()}", strategies, verify=visible(selectors.withdraw_action))

    def submit(self) -> "WithdrawalResultPage":
        """点击 Withdraw Now，处理可选的银行/UPI 确认弹窗"""
        self.tap("Withdraw Now", selectors.withdraw_action)

        if self.is_displayed(selectors.withdraw_result_any, timeout_ms=self._settle):
            self.log("Info", "Already on result page, no confirmation popup")
            return self.open_page(WithdrawalResultPage)

        if self.is_displayed(selectors.continue_to_withdraw, timeout_ms=self.timeouts.strategy):
            self.take_screenshot("withdrawal_confirmation_popup")
            self.tap("Continue To Withdraw", selectors.continue_to_withdraw)
            if self.is_displayed(selectors.confirm_transfer, timeout_ms=self.timeouts.strategy):
                self.tap("Confirm Transfer", selectors.confirm_transfer)
        else:
            self.log("Info", "No confirmation popup displayed")
        return self.open_page(WithdrawalResultPage)

    def withdraw(self, amount: str, kind: str = TRANSFER_DEPOSIT) -> FlowOutcome:
        """完整提现流程并返回判定结果"""
        self.enter_amount(amount)
        self.select_transfer(kind)
        return self.submit().outcome(amount)


class WithdrawalResultPage(BasePage):
    """提现结果页"""

    def classify(self, detectors=WITHDRAWAL_DETECTORS, label: str = "withdrawal result") -> ClassificationResult:
        result = super().classify(detectors, label)
        self.take_screenshot(f"withdrawal_result_{result.signal.value}")
        return result

    def outcome(self, amount: str) -> FlowOutcome:
        outcome = FlowOutcome("Withdrawal", amount, self.classify())
        self.log("Result", outcome.summary())
        if outcome.signal is Signal.LIMIT_REACHED:
            self.dismiss_limit_popup()
        return outcome

    def dismiss_limit_popup(self):
        return self.dismiss_popup(selectors.info_message, selectors.info_popup_ok, selectors.info_popup_close)
