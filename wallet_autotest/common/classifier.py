"""
Outcome Classifier.

After a state-changing action (pay, withdraw) the app lands on one of several
mutually exclusive result screens, sometimes after a loading spinner. The
classifier polls an ordered list of detectors and returns the first one that
is visible. Nothing is clicked or typed while classifying.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from wallet_autotest.common.errors import AutomationError, ConfigurationError
from wallet_autotest.common.selector import Selector
from wallet_autotest.common.timing import Clock, Deadline, Sleeper
from wallet_autotest.drivers.base import DriverFacade
from wallet_autotest.reporting.reporter import Reporter

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1000  # milliseconds
DEFAULT_CLASSIFICATION_DEADLINE = 30000  # milliseconds


class Signal(str, Enum):
    SUCCESS = "success"
    DENIED = "denied"
    IN_PROGRESS = "in_progress"
    LIMIT_REACHED = "limit_reached"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SignalDetector:
    """
    ``selector`` visible means ``signal``, unless ``matches`` rejects the
    element text (for containers shared by several kinds of messages).
    ``extract`` turns the element text into the reported message.
    """
    signal: Signal
    selector: Selector
    extract: Optional[Callable[[str], Optional[str]]] = None
    matches: Optional[Callable[[str], bool]] = None

    def __post_init__(self):
        if self.signal is Signal.UNKNOWN:
            raise ConfigurationError("UNKNOWN is the timeout verdict and cannot be detected")


@dataclass(frozen=True)
class ClassificationResult:
    signal: Signal
    message: Optional[str]
    elapsed_ms: int
    detector_index: Optional[int] = None
    passes: int = 0

    @property
    def timed_out(self) -> bool:
        return self.signal is Signal.UNKNOWN


def contains_any(*fragments: str) -> Callable[[str], bool]:
    """Case-insensitive guard: text mentions at least one fragment."""
    lowered = tuple(f.lower() for f in fragments)

    def _matches(text: str) -> bool:
        text = (text or "").lower()
        return any(f in text for f in lowered)

    _matches.__name__ = f"contains_any{fragments}"
    return _matches


class OutcomeClassifier:
    """Polls detectors against one driver session; clock and sleep are injectable."""

    def __init__(
        self,
        driver: DriverFacade,
        reporter: Reporter,
        *,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL,
        deadline_ms: int = DEFAULT_CLASSIFICATION_DEADLINE,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep
    ):
        self.driver = driver
        self.reporter = reporter
        self.poll_interval_ms = poll_interval_ms
        self.deadline_ms = deadline_ms
        self._clock = clock
        self._sleep = sleep

    @property
    def session_id(self) -> str:
        return self.driver.session_id

    def classify(
        self,
        detectors: Sequence[SignalDetector],
        poll_interval_ms: Optional[int] = None,
        deadline_ms: Optional[int] = None,
        label: str = "outcome"
    ) -> ClassificationResult:
        """
        Return the first detector seen, in declaration order, or UNKNOWN once
        ``deadline_ms`` has passed.

        Raises:
            ConfigurationError: no detectors, non-positive poll interval or
                negative deadline
        """
        detectors = tuple(detectors)
        poll_interval_ms = self.poll_interval_ms if poll_interval_ms is None else poll_interval_ms
        deadline_ms = self.deadline_ms if deadline_ms is None else deadline_ms
        if not detectors:
            raise ConfigurationError(f"Classification '{label}' has no detectors")
        if poll_interval_ms <= 0:
            raise ConfigurationError(f"Poll interval must be positive, got {poll_interval_ms}")
        if deadline_ms < 0:
            raise ConfigurationError(f"Deadline must not be negative, got {deadline_ms}")

        deadline = Deadline(deadline_ms, self._clock)
        passes = 0
        while True:
            passes += 1
            hit = self._probe(detectors)
            if hit is not None:
                index, message = hit
                result = ClassificationResult(
                    signal=detectors[index].signal,
                    message=message,
                    elapsed_ms=deadline.elapsed_ms(),
                    detector_index=index,
                    passes=passes,
                )
                self.reporter.log(self.session_id, "Classify", f"{label} pass {passes}: {result.signal.name} visible")
                break

            self.reporter.log(self.session_id, "Classify", f"{label} pass {passes}: no signal yet")
            if deadline.expired():
                result = ClassificationResult(
                    signal=Signal.UNKNOWN,
                    message=None,
                    elapsed_ms=deadline.elapsed_ms(),
                    passes=passes,
                )
                break
            self._sleep(deadline.bound(poll_interval_ms) / 1000)

        verdict = f"{label} → {result.signal.name} after {result.elapsed_ms}ms ({passes} passes)"
        if result.message:
            verdict += f": {result.message}"
        self.reporter.log(self.session_id, "Classify", verdict)
        return result

    def _probe(self, detectors: Tuple[SignalDetector, ...]) -> Optional[Tuple[int, Optional[str]]]:
        """One pass over the detectors; (index, message) of the first hit."""
        for index, detector in enumerate(detectors):
            try:
                element = self.driver.find_visible(detector.selector, 0)
                if element is None:
                    continue
                text = self.driver.read_text(element)
            except AutomationError as e:
                # screen in transition or session hiccup; next pass retries
                logger.debug(f"Probe of {detector.signal.name} ({detector.selector}) failed: {e}")
                continue
            if detector.matches is not None and not detector.matches(text):
                continue
            message = detector.extract(text) if detector.extract is not None else text
            return index, message
        return None


def classify_outcome(
    driver: DriverFacade,
    reporter: Reporter,
    detectors: Sequence[SignalDetector],
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL,
    deadline_ms: int = DEFAULT_CLASSIFICATION_DEADLINE,
    **kwargs
) -> ClassificationResult:
    """Functional entry point around :class:`OutcomeClassifier`."""
    label = kwargs.pop("label", "outcome")
    classifier = OutcomeClassifier(driver, reporter, **kwargs)
    return classifier.classify(detectors, poll_interval_ms, deadline_ms, label=label)
