"""
Element selectors of the wallet app, grouped per screen.
"""
from wallet_autotest.common.selector import Selector

APP_PACKAGE = "com.paytm.paytmplay"


def rid(name: str) -> str:
    """Full Android resource id of ``name``."""
    return f"{APP_PACKAGE}:id/{name}"


def _by_rid(widget: str, *names: str) -> str:
    condition = " or ".join(f"@resource-id='{rid(n)}'" for n in names)
    return f"//{widget}[{condition}]"


# ===== Banners & popups =====
banner_close = Selector.by_id(rid("inapp_close_btn"), "In-app banner close button")
banner_close_icon = Selector.by_xpath(
    "//android.widget.Button[@content-desc='close' or @content-desc='Close' or @content-desc='inapp_close_btn']",
    "Banner close icon",
)
popup_ok = Selector.by_id(rid("ok_button"), "Popup OK button")
popup_close = Selector.by_id(rid("close_button"), "Popup close button")
navigate_up = Selector.by_xpath(
    "//android.widget.ImageView[@content-desc='Navigate up'] | //android.widget.ImageButton[@content-desc='Navigate up']",
    "Navigate up arrow",
)

# ===== Login =====
get_started_button = Selector.by_id(rid("root_start"), "Get Started button")
phone_number_field = Selector.by_id(rid("edt_number"), "Phone number field")
send_otp_button = Selector.by_id(rid("root_send_otp"), "Continue (send OTP) button")
otp_field = Selector.by_id(rid("verify_input"), "OTP field")
verify_otp_button = Selector.by_id(rid("root_verify_otp"), "Verify OTP button")
otp_error = Selector.by_id(rid("tv_error_message"), "OTP error message")

# ===== Lobby =====
lobby_container = Selector.by_id(rid("lobby_container"), "Lobby container")
hamburger = Selector.by_id(rid("v_hamburg_bg"), "Hamburger menu")
hamburger_view = Selector.by_xpath(_by_rid("android.view.View", "v_hamburg_bg"), "Hamburger menu view")
hamburger_icon = Selector.by_xpath(_by_rid("android.widget.ImageView", "iv_head_hamburg"), "Hamburger header icon")
wallet_add = Selector.by_xpath(_by_rid("android.widget.ImageView", "iv_head_wallet_add"), "Wallet header plus icon")

# ===== Hamburger menu =====
MENU_ITEM = "//android.widget.TextView[@resource-id='" + rid("item_tv_subtitle") + "' and @text='{label}']"
menu_item = Selector.by_xpath(MENU_ITEM, "Menu item")
menu_profile = Selector.by_id(rid("header_tv_nickname"), "Profile nickname")
my_balance_loaded = Selector.by_xpath(_by_rid("android.widget.TextView", "passbook_add_money"), "My Balance add money")

# ===== My Balance =====
withdraw_button = Selector.by_xpath(_by_rid("android.widget.RelativeLayout", "pan_card_loading_layout"), "Withdraw button")
deposit_button = Selector.by_xpath("//android.widget.Button[@text='Deposit']", "Deposit button")

# ===== Add cash =====
amount_field = Selector.by_xpath(_by_rid("android.widget.EditText", "cash_edit"), "Amount field")
proceed_to_pay = Selector.by_xpath(_by_rid("android.widget.TextView", "btn_action"), "Proceed to pay button")

# ===== Payment method =====
card_radio = Selector.by_xpath(
    "(" + _by_rid("android.widget.ImageView", "paytm_radio_button") + ")[1]",
    "Credit/debit card radio",
)
pay_button = Selector.by_id(rid("action_button_text"), "Pay button")
payment_title = Selector.text_contains(("Payment", "Choose", "Select"), description="Payment page title")

# ===== Add cash result =====
add_cash_success = Selector.text_contains(("Success", "successful"), description="Payment success message")
add_cash_error = Selector.text_contains(("Failed", "Error", "Denied"), description="Payment error message")
add_cash_in_progress = Selector.text_contains(("Processing", "In Progress"), description="Payment processing message")
add_cash_limit = Selector.text_contains(("limit", "Limit"), description="Payment limit message")

# ===== Withdrawal =====
deposit_radio = Selector.by_xpath(_by_rid("android.widget.RadioButton", "rb_check"), "Transfer to deposit radio")
bank_radio = Selector.by_xpath(_by_rid("android.widget.RadioButton", "bank_account"), "Transfer to bank radio")
upi_radio = Selector.by_xpath(_by_rid("android.widget.RadioButton", "upi_account"), "Transfer to UPI radio")
withdraw_action = Selector.by_xpath(_by_rid("android.widget.TextView", "withdraw_action_button_text"), "Withdraw now button")
continue_to_withdraw = Selector.by_xpath(_by_rid("android.widget.TextView", "tv_action"), "Continue to withdraw button")
confirm_transfer = Selector.by_xpath(_by_rid("android.widget.Button", "btn_transfer"), "Confirm transfer button")

# ===== Withdrawal result =====
withdraw_success = Selector.by_xpath(_by_rid("android.widget.TextView", "tv_payment_success"), "Withdrawal success")
withdraw_denied_title = Selector.by_xpath(_by_rid("android.widget.TextView", "withdraw_error_title"), "Withdrawal denied title")
withdraw_denied_message = Selector.by_xpath(_by_rid("android.widget.TextView", "withdraw_error_msg"), "Withdrawal denied message")
withdraw_result_any = Selector.by_xpath(
    _by_rid("android.widget.TextView", "withdraw_error_title", "tv_payment_success"),
    "Withdrawal result screen",
)
info_message = Selector.by_xpath(
    _by_rid("android.widget.TextView", "tv_message", "message_text", "info_text"),
    "Info message container",
)
withdraw_in_progress = Selector.text_contains(
    ("processing", "Processing", "in progress", "In Progress", "pending", "Pending", "wait", "Wait"),
    description="Withdrawal in progress message",
)
info_popup_ok = Selector.by_xpath(
    "//android.widget.Button[@resource-id='" + rid("btn_ok") + "' or @resource-id='" + rid("ok_button")
    + "' or contains(@text, 'OK') or contains(@text, 'Ok')]",
    "Info popup OK button",
)
info_popup_close = Selector.by_xpath(_by_rid("android.widget.ImageView", "close_icon", "back_icon"), "Info popup close icon")
result_back = Selector.by_xpath(_by_rid("android.widget.TextView", "action_back"), "Result back button")

# ===== Settings =====
logout_button = Selector.by_xpath(
    "//android.widget.TextView[@resource-id='" + rid("tv_lefttext") + "' and @text='Log Out']",
    "Log Out row",
)
confirm_logout = Selector.by_id(rid("btn_sure"), "Confirm logout button")
