import pytest

from wallet_autotest.common.classifier import (
    OutcomeClassifier,
    Signal,
    SignalDetector,
    classify_outcome,
    contains_any,
)
from wallet_autotest.common.errors import ConfigurationError, DriverSessionError, StaleElementError
from wallet_autotest.common.selector import Selector

from fakes import FakeElement

SUCCESS = Selector.by_id("com.paytm.paytmplay:id/tv_payment_success", "Success")
DENIED = Selector.by_id("com.paytm.paytmplay:id/withdraw_error_msg", "Denied")
LIMIT = Selector.by_id("com.paytm.paytmplay:id/tv_message", "Info")
PENDING = Selector.by_id("com.paytm.paytmplay:id/tv_pending", "Pending")

DETECTORS = (
    SignalDetector(Signal.DENIED, DENIED),
    SignalDetector(Signal.LIMIT_REACHED, LIMIT, matches=contains_any("limit")),
    SignalDetector(Signal.SUCCESS, SUCCESS),
    SignalDetector(Signal.IN_PROGRESS, PENDING),
)


@pytest.fixture
def classifier(driver, reporter, clock):
    return OutcomeClassifier(driver, reporter, poll_interval_ms=1000, deadline_ms=30000, clock=clock, sleep=clock.sleep)


class TestClassify:

    def test_success_appearing_after_spinner(self, driver, reporter, classifier):
        driver.show_later(SUCCESS, 3000, FakeElement("Withdrawal successful"))

        result = classifier.classify(DETECTORS, label="withdrawal")

        assert result.signal is Signal.SUCCESS
        assert result.message == "Withdrawal successful"
        assert result.detector_index == 2
        assert result.passes == 4
        assert result.elapsed_ms == 3000
        assert not result.timed_out
        lines = reporter.messages("Classify")
        assert lines[:3] == ["withdrawal pass 1: no signal yet",
                             "withdrawal pass 2: no signal yet",
                             "withdrawal pass 3: no signal yet"]
        assert lines[3] == "withdrawal pass 4: SUCCESS visible"
        assert lines[-1] == "withdrawal → SUCCESS after 3000ms (4 passes): Withdrawal successful"

    def test_unknown_after_deadline(self, driver, reporter, classifier):
        result = classifier.classify(DETECTORS, deadline_ms=10000)

        assert result.signal is Signal.UNKNOWN
        assert result.timed_out
        assert result.message is None
        assert result.detector_index is None
        assert 10000 <= result.elapsed_ms < 11000
        assert result.passes == 11
        assert reporter.messages("Classify")[-1].startswith("outcome → UNKNOWN after")

    def test_zero_deadline_probes_once(self, classifier):
        result = classifier.classify(DETECTORS, deadline_ms=0)

        assert result.signal is Signal.UNKNOWN
        assert result.passes == 1
        assert result.elapsed_ms == 0

    def test_declaration_order_decides_between_visible_signals(self, driver, classifier):
        driver.show(SUCCESS, FakeElement("Success"))
        driver.show(DENIED, FakeElement("Withdrawal not allowed"))

        result = classifier.classify(DETECTORS)

        assert result.signal is Signal.DENIED
        assert result.passes == 1

    def test_classification_is_repeatable(self, driver, classifier):
        driver.show(PENDING, FakeElement("Processing"))

        first = classifier.classify(DETECTORS)
        second = classifier.classify(DETECTORS)

        assert first.signal is second.signal is Signal.IN_PROGRESS
        assert first.message == second.message

    def test_never_interacts_with_the_screen(self, driver, classifier):
        driver.show_later(SUCCESS, 2000)

        classifier.classify(DETECTORS)

        assert driver.interactions == []
        assert {timeout for _, timeout in driver.lookups} == {0}

    def test_matches_guard_skips_unrelated_text(self, driver, classifier):
        driver.show(LIMIT, FakeElement("Please update the app"))
        driver.show(SUCCESS, FakeElement("Done"))

        result = classifier.classify(DETECTORS)

        assert result.signal is Signal.SUCCESS

    def test_matches_guard_accepts_limit_text(self, driver, classifier):
        driver.show(LIMIT, FakeElement("Daily LIMIT reached"))

        assert classifier.classify(DETECTORS).signal is Signal.LIMIT_REACHED

    def test_extract_shapes_message(self, driver, classifier):
        driver.show(SUCCESS, FakeElement("  ₹500\n withdrawn  "))
        detectors = [SignalDetector(Signal.SUCCESS, SUCCESS, extract=lambda t: " ".join(t.split()))]

        assert classifier.classify(detectors).message == "₹500 withdrawn"

    @pytest.mark.parametrize("error", [StaleElementError("detached"), DriverSessionError("hiccup")])
    def test_probe_errors_are_transient(self, driver, classifier, error):
        driver.show(DENIED, FakeElement("Denied"))
        driver.fail_next(DENIED, error)

        result = classifier.classify(DETECTORS)

        assert result.signal is Signal.DENIED
        assert result.passes == 2


class TestConfiguration:

    def test_empty_detectors(self, reporter, classifier):
        with pytest.raises(ConfigurationError):
            classifier.classify([])
        assert reporter.events == []

    @pytest.mark.parametrize("poll", [0, -5])
    def test_non_positive_poll_interval(self, classifier, poll):
        with pytest.raises(ConfigurationError):
            classifier.classify(DETECTORS, poll_interval_ms=poll)

    def test_negative_deadline(self, classifier):
        with pytest.raises(ConfigurationError):
            classifier.classify(DETECTORS, deadline_ms=-1)

    def test_unknown_cannot_be_detected(self):
        with pytest.raises(ConfigurationError):
            SignalDetector(Signal.UNKNOWN, SUCCESS)


def test_contains_any_is_case_insensitive():
    guard = contains_any("daily", "Limit")
    assert guard("You reached your DAILY withdrawal")
    assert guard("limit exceeded")
    assert not guard("Try again later")
    assert not guard(None)


def test_functional_entry_point(driver, reporter, clock):
    driver.show(SUCCESS, FakeElement("ok"))

    result = classify_outcome(driver, reporter, DETECTORS, 500, 5000, label="deposit", clock=clock, sleep=clock.sleep)

    assert result.signal is Signal.SUCCESS
    assert reporter.messages("Classify")[-1].startswith("deposit → SUCCESS")
