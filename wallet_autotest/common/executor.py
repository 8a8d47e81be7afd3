"""
Resilient Action Executor.

Runs one logical UI action through an ordered list of strategies and stops at
the first one that completes *and* verifies. Missing elements, rejected
interactions and failed verification are soft failures: they are logged and
the next strategy is tried. Only a lost driver session propagates.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple

from wallet_autotest.common.errors import ConfigurationError, DriverSessionError, SoftFailure
from wallet_autotest.common.strategy import (
    ActionResult,
    Locate,
    Observation,
    Strategy,
    StrategyAttempt,
)
from wallet_autotest.common.timing import Clock, Deadline, Sleeper
from wallet_autotest.drivers.base import DriverFacade
from wallet_autotest.reporting.reporter import Reporter

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY_TIMEOUT = 5000  # milliseconds
DEFAULT_ACTION_DEADLINE = 30000  # milliseconds

VerifyPredicate = Callable[[Observation], bool]

# attempt outcomes
ATTEMPTED = "attempted"
SUCCEEDED = "succeeded"
FAILED_SOFT = "failed-soft"


class ResilientActionExecutor:
    """
    Executes strategy lists against one driver session.

    ``clock`` (seconds, monotonic) and ``sleep`` are injectable so the timing
    behaviour can be tested without waiting.
    """

    def __init__(
        self,
        driver: DriverFacade,
        reporter: Reporter,
        *,
        strategy_timeout_ms: int = DEFAULT_STRATEGY_TIMEOUT,
        deadline_ms: int = DEFAULT_ACTION_DEADLINE,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep
    ):
        self.driver = driver
        self.reporter = reporter
        self.strategy_timeout_ms = strategy_timeout_ms
        self.deadline_ms = deadline_ms
        self._clock = clock
        self._sleep = sleep

    @property
    def session_id(self) -> str:
        return self.driver.session_id

    def execute(
        self,
        action_name: str,
        strategies: Sequence[Strategy],
        verify: Optional[VerifyPredicate] = None,
        *,
        deadline_ms: Optional[int] = None,
        strategy_timeout_ms: Optional[int] = None
    ) -> ActionResult:
        """
        Try ``strategies`` in order.

        Args:
            action_name: label used in logs and the report step
            strategies: non-empty ordered alternatives
            verify: predicate over the re-read state; None means fire and
                forget, which can only ever produce a tentative result
            deadline_ms: overall budget for the whole action
            strategy_timeout_ms: default lookup timeout per strategy

        Returns:
            ActionResult

        Raises:
            ConfigurationError: empty strategy list or negative budgets
            DriverSessionError: the device session was lost
        """
        strategies = tuple(strategies)
        if not strategies:
            raise ConfigurationError(f"Action '{action_name}' has no strategies")
        deadline_ms = self.deadline_ms if deadline_ms is None else deadline_ms
        strategy_timeout_ms = self.strategy_timeout_ms if strategy_timeout_ms is None else strategy_timeout_ms
        if deadline_ms < 0 or strategy_timeout_ms < 0:
            raise ConfigurationError(f"Action '{action_name}' has a negative timeout or deadline")

        deadline = Deadline(deadline_ms, self._clock)
        self.reporter.step_start(self.session_id, action_name)
        try:
            result = self._run(action_name, strategies, verify, deadline, strategy_timeout_ms)
        except DriverSessionError as e:
            self.reporter.error(self.session_id, f"{action_name}: driver session lost", e)
            raise
        finally:
            self.reporter.step_end(self.session_id, action_name)

        logger.debug(
            "Action '%s' finished: status=%s index=%s elapsed=%dms",
            action_name, result.status.value, result.strategy_index_used, result.elapsed_ms
        )
        return result

    # ---- internals ----
    def _run(
        self,
        action_name: str,
        strategies: Tuple[Strategy, ...],
        verify: Optional[VerifyPredicate],
        deadline: Deadline,
        strategy_timeout_ms: int
    ) -> ActionResult:
        attempts: List[StrategyAttempt] = []
        tentative: Optional[Tuple[int, Optional[str]]] = None
        deadline_exceeded = False

        for index, strategy in enumerate(strategies):
            if deadline.expired():
                deadline_exceeded = True
                self.reporter.log(
                    self.session_id, "Action",
                    f"{action_name}: deadline of {deadline.budget_ms}ms exceeded, "
                    f"{len(strategies) - index} strategies not tried"
                )
                break

            started = deadline.elapsed_ms()
            outcome, reason, observation = self._attempt(strategy, verify, deadline, strategy_timeout_ms)
            attempt = StrategyAttempt(index, strategy.name, outcome, reason, deadline.elapsed_ms() - started)
            attempts.append(attempt)
            self._log_attempt(action_name, attempt)

            if outcome == FAILED_SOFT and observation is None:
                continue
            if tentative is None:
                tentative = (index, observation.text)

            if outcome == SUCCEEDED:
                return ActionResult(
                    action=action_name,
                    succeeded=True,
                    strategy_index_used=index,
                    observed_text=observation.text,
                    elapsed_ms=deadline.elapsed_ms(),
                    tentative_index=tentative[0],
                    attempts=tuple(attempts),
                )
            if outcome == ATTEMPTED:
                # fire and forget: nothing to verify, first completed strategy wins
                break

        return ActionResult(
            action=action_name,
            succeeded=False,
            strategy_index_used=None,
            observed_text=tentative[1] if tentative else None,
            elapsed_ms=deadline.elapsed_ms(),
            tentative_index=tentative[0] if tentative else None,
            deadline_exceeded=deadline_exceeded,
            attempts=tuple(attempts),
        )

    def _attempt(
        self,
        strategy: Strategy,
        verify: Optional[VerifyPredicate],
        deadline: Deadline,
        strategy_timeout_ms: int
    ) -> Tuple[str, Optional[str], Optional[Observation]]:
        """
        Run one strategy.

        Returns (outcome, reason, observation). ``observation`` is None when
        the operations themselves did not complete.
        """
        timeout_ms = deadline.bound(strategy.timeout_ms if strategy.timeout_ms is not None else strategy_timeout_ms)
        try:
            element = self._locate(strategy, timeout_ms)
            if element is None and strategy.locate is not Locate.NONE:
                return FAILED_SOFT, f"{strategy.target_description} not found within {timeout_ms}ms", None
            for operation in strategy.operations:
                self.driver.interact(element, operation)
        except SoftFailure as e:
            return FAILED_SOFT, f"{type(e).__name__}: {e}", None

        if strategy.settle_ms:
            self._sleep(deadline.bound(strategy.settle_ms) / 1000)

        observation = Observation(
            text=self._read_text(element),
            element=element,
            driver=self.driver,
            remaining_ms=deadline.remaining_ms(),
        )
        if verify is None:
            return ATTEMPTED, None, observation
        try:
            verified = bool(verify(observation))
        except SoftFailure as e:
            return FAILED_SOFT, f"verification raised {type(e).__name__}: {e}", observation
        if verified:
            return SUCCEEDED, None, observation
        return FAILED_SOFT, f"verification failed (observed={observation.text!r})", observation

    def _locate(self, strategy: Strategy, timeout_ms: int) -> Optional[Any]:
        if strategy.locate is Locate.NONE:
            return None
        if strategy.target is not None:
            return strategy.target(self.driver, timeout_ms)
        if strategy.locate is Locate.CLICKABLE:
            return self.driver.find_clickable(strategy.selector, timeout_ms)
        return self.driver.find_visible(strategy.selector, timeout_ms)

    def _read_text(self, element: Optional[Any]) -> Optional[str]:
        if element is None:
            return None
        try:
            return self.driver.read_text(element)
        except SoftFailure:
            # element may have left the screen after a click
            return None

    def _log_attempt(self, action_name: str, attempt: StrategyAttempt) -> None:
        message = f"{action_name} | strategy {attempt.index} '{attempt.name}': {attempt.outcome}"
        if attempt.reason:
            message += f" ({attempt.reason})"
        self.reporter.log(self.session_id, "Action", message)


def execute_resilient_action(
    driver: DriverFacade,
    reporter: Reporter,
    action_name: str,
    strategies: Sequence[Strategy],
    verify: Optional[VerifyPredicate],
    deadline_ms: int = DEFAULT_ACTION_DEADLINE,
    strategy_timeout_ms: int = DEFAULT_STRATEGY_TIMEOUT,
    **kwargs: Any
) -> ActionResult:
    """Functional entry point around :class:`ResilientActionExecutor`."""
    executor = ResilientActionExecutor(
        driver, reporter,
        strategy_timeout_ms=strategy_timeout_ms,
        deadline_ms=deadline_ms,
        **kwargs
    )
    return executor.execute(action_name, strategies, verify)
