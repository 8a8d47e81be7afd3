"""
充值流程页面对象: 输入金额 → 选择支付方式 → 结果页
"""
from __future__ import annotations

from wallet_autotest.common.classifier import ClassificationResult, Signal, SignalDetector
from wallet_autotest.common.strategy import ActionResult
from wallet_autotest.common.verdict import FlowOutcome

from pages import selectors
from pages.base_page import BasePage, amount_entry_strategies, appears, text_contains

# 声明顺序即优先级：多个结果同时可见时取第一个
ADD_CASH_DETECTORS = (
    SignalDetector(Signal.DENIED, selectors.add_cash_error),
    SignalDetector(Signal.LIMIT_REACHED, selectors.add_cash_limit),
    SignalDetector(Signal.SUCCESS, selectors.add_cash_success),
    SignalDetector(Signal.IN_PROGRESS, selectors.add_cash_in_progress),
)


class AddCashPage(BasePage):
    """充值金额页"""

    def enter_amount(self, amount: str) -> ActionResult:
        """
        输入充值金额，依次尝试四种输入方式，校验输入框文本包含金额

        Raises:
            FlowError: 所有方式均失败
        """
        return self.require(
            "Enter Deposit Amount",
            amount_entry_strategies(selectors.amount_field, amount, settle_ms=self._settle),
            verify=text_contains(amount),
        )

    def proceed(self) -> "PaymentMethodPage":
        self.tap(
            "Proceed To Pay",
            selectors.proceed_to_pay,
            verify=appears(selectors.card_radio, self.timeouts.element_wait),
        )
        return self.open_page(PaymentMethodPage)


class PaymentMethodPage(BasePage):
    """支付方式页"""

    def select_card(self) -> None:
        self.tap("Select Card", selectors.card_radio)

    def pay(self) -> "AddCashResultPage":
        self.tap("Pay", selectors.pay_button)
        return self.open_page(AddCashResultPage)


class AddCashResultPage(BasePage):
    """充值结果页"""

    def classify(self, detectors=ADD_CASH_DETECTORS, label: str = "add cash result") -> ClassificationResult:
        return super().classify(detectors, label)

    def outcome(self, amount: str) -> FlowOutcome:
        """判定结果并截图"""
        result = self.classify()
        self.take_screenshot(f"add_cash_result_{result.signal.value}")
        outcome = FlowOutcome("Deposit", amount, result)
        self.log("Result", outcome.summary())
        return outcome

    def dismiss_limit_popup(self):
        return self.dismiss_popup(selectors.add_cash_limit)
