"""钱包 App 页面对象"""
from .base_page import BasePage
from .login_page import GetStartedScreen, LoginScreen, OtpScreen
from .lobby_page import HamburgerMenu, LobbyPage
from .balance_page import MyBalancePage
from .add_cash_page import AddCashPage, AddCashResultPage, PaymentMethodPage
from .withdrawal_page import WithdrawalPage, WithdrawalResultPage
from .settings_page import SettingsPage

__all__ = [
    "BasePage",
    "GetStartedScreen",
    "LoginScreen",
    "OtpScreen",
    "LobbyPage",
    "HamburgerMenu",
    "MyBalancePage",
    "AddCashPage",
    "PaymentMethodPage",
    "AddCashResultPage",
    "WithdrawalPage",
    "WithdrawalResultPage",
    "SettingsPage",
]
