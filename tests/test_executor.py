import allure
import pytest

from wallet_autotest.common.errors import ConfigurationError, DriverSessionError, ElementNotFoundError, StaleElementError
from wallet_autotest.common.executor import ResilientActionExecutor, execute_resilient_action
from wallet_autotest.common.selector import Selector
from wallet_autotest.common.strategy import ActionStatus, Locate, Strategy
from wallet_autotest.drivers.base import Click, RawGesture

from pages import selectors
from pages.base_page import amount_entry_strategies, appears, text_contains, visible

from fakes import FakeElement

OK = Selector.by_id("com.paytm.paytmplay:id/ok_button", "OK")
CLOSE = Selector.by_id("com.paytm.paytmplay:id/close_button", "Close")
MISSING = Selector.by_id("com.paytm.paytmplay:id/missing", "Missing")
NEXT = Selector.by_id("com.paytm.paytmplay:id/next_screen", "Next screen")


@pytest.fixture
def executor(driver, reporter, clock):
    return ResilientActionExecutor(
        driver, reporter,
        strategy_timeout_ms=5000,
        deadline_ms=30000,
        clock=clock,
        sleep=clock.sleep,
    )


@allure.feature("Resilient Action Executor")
class TestAmountEntry:

    def test_third_strategy_wins_when_field_ignores_first_two_inputs(self, driver, reporter, executor):
        field = driver.show(selectors.amount_field, FakeElement(ignore_inputs=2))

        result = executor.execute("Enter Amount", amount_entry_strategies(selectors.amount_field, "500"),
                                  verify=text_contains("500"))

        assert result.succeeded
        assert result.strategy_index_used == 2
        assert result.observed_text == "500"
        assert result.status is ActionStatus.VERIFIED
        assert field.text == "500"
        assert [a.outcome for a in result.attempts] == ["failed-soft", "failed-soft", "succeeded"]
        assert result.tentative_index == 0

    @pytest.mark.yaml_data(file="deposit_cases.yaml", group="amount_entry")
    def test_strategy_index_follows_ignored_inputs(self, driver, executor, amount, failing_strategies, expected_index):
        driver.show(selectors.amount_field, FakeElement(ignore_inputs=failing_strategies))

        result = executor.execute("Enter Amount", amount_entry_strategies(selectors.amount_field, amount),
                                  verify=text_contains(amount))

        assert result.succeeded
        assert result.strategy_index_used == expected_index
        assert len(result.attempts) == expected_index + 1

    def test_all_strategies_fail_when_field_never_accepts_text(self, driver, executor):
        driver.show(selectors.amount_field, FakeElement(ignore_inputs=10))

        result = executor.execute("Enter Amount", amount_entry_strategies(selectors.amount_field, "500"),
                                  verify=text_contains("500"))

        assert not result.succeeded
        assert result.strategy_index_used is None
        assert len(result.attempts) == 4
        assert result.status is ActionStatus.TENTATIVE
        assert not result.deadline_exceeded


class TestStepReporting:

    def test_exactly_one_step_pair_with_attempt_lines(self, driver, reporter, executor):
        driver.show(OK)
        strategies = [Strategy.click("missing", MISSING), Strategy.click("ok", OK)]

        executor.execute("Tap OK", strategies)

        assert reporter.of("step_start") == [("step_start", "Pixel_7_13", "Tap OK")]
        assert reporter.of("step_end") == [("step_end", "Pixel_7_13", "Tap OK")]
        assert reporter.events[0][0] == "step_start"
        assert reporter.events[-1][0] == "step_end"
        lines = reporter.messages("Action")
        assert lines[0].startswith("Tap OK | strategy 0 'missing': failed-soft (Missing not found within 5000ms")
        assert lines[1] == "Tap OK | strategy 1 'ok': attempted"

    def test_empty_strategy_list_is_rejected_before_any_report(self, reporter, executor):
        with pytest.raises(ConfigurationError):
            executor.execute("Nothing", [], verify=text_contains("x"))
        assert reporter.events == []

    def test_negative_deadline_is_rejected(self, reporter, executor):
        with pytest.raises(ConfigurationError):
            executor.execute("Tap OK", [Strategy.click("ok", OK)], deadline_ms=-1)
        assert reporter.events == []


class TestOutcomes:

    def test_fire_and_forget_stops_at_first_completed_strategy(self, driver, executor):
        driver.show(OK)
        driver.show(CLOSE)
        strategies = [Strategy.click("missing", MISSING), Strategy.click("ok", OK), Strategy.click("close", CLOSE)]

        result = executor.execute("Dismiss", strategies)

        assert not result.succeeded
        assert result.status is ActionStatus.TENTATIVE
        assert result.tentative_index == 1
        assert result.performed
        assert len(result.attempts) == 2
        assert [type(op) for _, op in driver.interactions] == [Click]

    def test_verified_click_navigates(self, driver, executor):
        driver.show(OK, FakeElement(on_click=lambda d: d.show(NEXT)))

        result = executor.execute("Tap OK", [Strategy.click("ok", OK)], verify=visible(NEXT))

        assert result.succeeded
        assert result.strategy_index_used == 0

    def test_disabled_element_is_not_clickable(self, driver, executor):
        driver.show(OK, FakeElement(enabled=False))
        driver.show(CLOSE, FakeElement(on_click=lambda d: d.hide(OK)))

        result = executor.execute(
            "Close popup",
            [Strategy.click("ok", OK), Strategy.click("close", CLOSE)],
            verify=lambda obs: not obs.driver.is_visible(OK, 0),
        )

        assert result.strategy_index_used == 1
        assert "not found" in result.attempts[0].reason

    def test_soft_errors_move_on_to_next_strategy(self, driver, executor):
        driver.show(OK, FakeElement(reject=(Click,)))
        driver.show(CLOSE)
        driver.fail_next(MISSING, ElementNotFoundError("no such element"))

        result = executor.execute(
            "Close",
            [Strategy.click("missing", MISSING), Strategy.click("ok", OK), Strategy.click("close", CLOSE)],
            verify=lambda obs: True,
        )

        assert result.strategy_index_used == 2
        assert result.attempts[0].reason.startswith("ElementNotFoundError")
        assert result.attempts[1].reason.startswith("InteractionError")

    def test_verify_raising_soft_error_counts_as_failed_attempt(self, driver, executor):
        driver.show(OK)
        calls = []

        def flaky(observation):
            calls.append(observation)
            if len(calls) == 1:
                raise StaleElementError("gone")
            return True

        result = executor.execute("Tap OK", [Strategy.click("first", OK), Strategy.click("second", OK)], verify=flaky)

        assert result.strategy_index_used == 1
        assert result.tentative_index == 0
        assert "verification raised StaleElementError" in result.attempts[0].reason

    def test_coordinate_gesture_needs_no_element(self, driver, executor):
        result = executor.execute("Back", [Strategy.gesture("back key", RawGesture("mobile: pressKey", {"keycode": 4}))])

        assert result.tentative_index == 0
        assert driver.interactions[0][0] is None
        assert driver.gestures("mobile: pressKey")

    def test_target_callable_resolves_element(self, driver, executor):
        element = FakeElement(text="computed")

        def second_row(drv, timeout_ms):
            return element

        strategy = Strategy(name="row", operations=(Click(),), target=second_row)
        result = executor.execute("Pick row", [strategy], verify=text_contains("computed"))

        assert result.succeeded
        assert driver.interactions == [(element, Click())]


class TestDeadline:

    def test_deadline_stops_remaining_strategies(self, driver, reporter, executor, clock):
        strategies = [Strategy.click(f"missing {i}", MISSING) for i in range(4)]

        result = executor.execute("Tap", strategies, verify=visible(NEXT), deadline_ms=12000)

        assert not result.succeeded
        assert result.deadline_exceeded
        assert len(result.attempts) == 3
        assert result.elapsed_ms == 12000
        # last lookup is clamped to what is left of the budget
        assert [t for _, t in driver.lookups] == [5000, 5000, 2000]
        assert any("deadline of 12000ms exceeded" in m for m in reporter.messages("Action"))

    def test_tentative_result_survives_deadline(self, driver, executor):
        driver.show(OK)

        result = executor.execute(
            "Tap",
            [Strategy.click("ok", OK), Strategy.click("missing", MISSING), Strategy.click("missing", MISSING)],
            verify=visible(NEXT),
            deadline_ms=5000,
        )

        assert result.deadline_exceeded
        assert result.status is ActionStatus.TENTATIVE
        assert result.tentative_index == 0

    def test_verify_wait_is_clamped_to_deadline(self, driver, reporter, clock):
        driver.show(OK)
        executor = ResilientActionExecutor(
            driver, reporter, strategy_timeout_ms=1000, deadline_ms=3000, clock=clock, sleep=clock.sleep
        )

        result = executor.execute(
            "Tap",
            [Strategy.click(f"ok {i}", OK) for i in range(3)],
            verify=appears(NEXT, 10000),
        )

        assert not result.succeeded
        assert result.deadline_exceeded
        assert result.elapsed_ms <= 3000 + 1000
        assert driver.lookups == [(OK, 1000), (NEXT, 3000)]

    def test_verify_wait_shrinks_with_remaining_budget(self, driver, reporter, clock):
        driver.show(OK)
        driver.show_later(NEXT, 4500)
        executor = ResilientActionExecutor(
            driver, reporter, strategy_timeout_ms=1000, deadline_ms=5000, clock=clock, sleep=clock.sleep
        )

        result = executor.execute(
            "Tap",
            [Strategy.click("missing", MISSING), Strategy.click("ok", OK)],
            verify=appears(NEXT, 10000),
        )

        assert result.succeeded
        assert result.strategy_index_used == 1
        assert driver.lookups == [(MISSING, 1000), (OK, 1000), (NEXT, 4000)]

    def test_strategy_timeout_override(self, driver, executor):
        executor.execute("Tap", [Strategy.click("slow", MISSING, timeout_ms=1500)])
        executor.execute("Tap", [Strategy.click("default", MISSING)], strategy_timeout_ms=700)

        assert [t for _, t in driver.lookups] == [1500, 700]


class TestSessionLoss:

    def test_session_error_propagates_after_closing_step(self, driver, reporter, executor):
        driver.show(CLOSE)
        driver.fail_next(OK, DriverSessionError("invalid session id"))

        with pytest.raises(DriverSessionError):
            executor.execute("Tap", [Strategy.click("ok", OK), Strategy.click("close", CLOSE)])

        kinds = [e[0] for e in reporter.events]
        assert kinds == ["step_start", "error", "step_end"]
        assert isinstance(reporter.of("error")[0][3], DriverSessionError)
        # the second strategy was never tried
        assert driver.interactions == []


class TestStrategyDefinition:

    def test_strategy_without_operations_is_rejected(self):
        with pytest.raises(ConfigurationError):
            Strategy(name="empty", operations=(), selector=OK)

    def test_strategy_must_locate_something(self):
        with pytest.raises(ConfigurationError):
            Strategy(name="nowhere", operations=(Click(),))

    def test_gesture_without_selector_skips_lookup(self):
        strategy = Strategy.gesture("tap", RawGesture("mobile: clickGesture", {"x": 1, "y": 2}))
        assert strategy.locate is Locate.NONE
        assert strategy.target_description == "screen"


def test_functional_entry_point(driver, reporter, clock):
    driver.show(selectors.amount_field, FakeElement(ignore_inputs=1))

    result = execute_resilient_action(
        driver, reporter, "Enter Amount",
        amount_entry_strategies(selectors.amount_field, "100"),
        text_contains("100"),
        clock=clock,
        sleep=clock.sleep,
    )

    assert result.strategy_index_used == 1
    assert reporter.of("step_start")
