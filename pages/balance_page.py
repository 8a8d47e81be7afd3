"""
My Balance 页面对象
"""
from __future__ import annotations

from pages import selectors
from pages.add_cash_page import AddCashPage
from pages.base_page import BasePage, appears
from pages.withdrawal_page import WithdrawalPage


class MyBalancePage(BasePage):
    """余额页：提现 / 充值入口"""

    def is_loaded(self) -> bool:
        return self.is_displayed(selectors.my_balance_loaded)

    def open_withdraw(self) -> WithdrawalPage:
        self.tap(
            "Open Withdraw",
            selectors.withdraw_button,
            verify=appears(selectors.amount_field, self.timeouts.element_wait),
        )
        return self.open_page(WithdrawalPage)

    def open_deposit(self) -> AddCashPage:
        self.tap(
            "Open Deposit",
            selectors.deposit_button,
            verify=appears(selectors.amount_field, self.timeouts.element_wait),
        )
        return self.open_page(AddCashPage)
