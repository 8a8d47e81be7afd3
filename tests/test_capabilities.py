import pytest

from wallet_autotest.config.manager import AppConfig
from wallet_autotest.drivers.capabilities import (
    DEFAULT_BUILD_NAME,
    build_capabilities,
    build_session_payload,
    resolve_build_name,
    server_url,
)


@pytest.fixture(autouse=True)
def no_build_env(monkeypatch):
    monkeypatch.delenv("BUILD_NAME", raising=False)


def _config(**cloud) -> AppConfig:
    return AppConfig(
        devices=[{"name": "Galaxy S21", "platform_version": 12, "udid": "R5CR10ABCDE"}],
        cloud=cloud,
    )


class TestBuildName:

    def test_explicit_wins(self):
        assert resolve_build_name("  Release 42 ", "test_deposit", "DepositFlowTest") == "Release 42"

    def test_environment_variable(self, monkeypatch):
        monkeypatch.setenv("BUILD_NAME", "Nightly")
        assert resolve_build_name(None, "test_deposit") == "Nightly"

    def test_test_name_is_humanized(self):
        assert resolve_build_name(test_name="withdraw_to-bank") == "withdraw to bank"

    def test_class_name_suffixes_are_stripped(self):
        assert resolve_build_name(class_name="WithdrawalFlowTest") == "Withdrawal"

    @pytest.mark.parametrize("class_name", [None, "", "TestFlow"])
    def test_default(self, class_name):
        assert resolve_build_name(test_name="  ", class_name=class_name) == DEFAULT_BUILD_NAME


class TestCapabilities:

    def test_local_session(self):
        config = _config()
        caps = build_capabilities(config, config.devices[0])

        assert caps["platformName"] == "Android"
        assert caps["appium:deviceName"] == "Galaxy S21"
        assert caps["appium:platformVersion"] == "12"
        assert caps["appium:udid"] == "R5CR10ABCDE"
        assert caps["appium:appPackage"] == "com.paytm.paytmplay"
        assert "lt:options" not in caps
        assert server_url(config) == "http://127.0.0.1:4723"

    def test_cloud_session(self):
        config = _config(enabled=True, username="alice", access_key="s3cr3t", app_id="lt://APP123",
                         options={"video": False, "geoLocation": "IN"})
        caps = build_capabilities(config, config.devices[0], build_name="Deposit smoke")

        lt = caps["lt:options"]
        assert lt["username"] == "alice"
        assert lt["accessKey"] == "s3cr3t"
        assert lt["app"] == "lt://APP123"
        assert lt["build"] == "Deposit smoke"
        assert lt["isRealMobile"] is True
        assert lt["video"] is False
        assert lt["geoLocation"] == "IN"
        assert lt["idleTimeout"] == 300
        assert server_url(config) == "https://mobile-hub.lambdatest.com/wd/hub"

    def test_cloud_build_name_fallbacks(self):
        config = _config(enabled=True, build_name="From config")
        assert build_capabilities(config, config.devices[0])["lt:options"]["build"] == "From config"

        config = _config(enabled=True)
        assert build_capabilities(config, config.devices[0])["lt:options"]["build"] == DEFAULT_BUILD_NAME

    def test_session_payload_shape(self):
        config = _config()
        payload = build_session_payload(config, config.devices[0])

        assert set(payload["capabilities"]) == {"alwaysMatch", "firstMatch"}
        assert payload["capabilities"]["firstMatch"] == [{}]
