"""Test verdicts for classified money flows."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from wallet_autotest.common.classifier import ClassificationResult, Signal

# signals that count as a passing flow
ACCEPTABLE_SIGNALS = frozenset({Signal.SUCCESS, Signal.LIMIT_REACHED, Signal.IN_PROGRESS})


@dataclass(frozen=True)
class FlowOutcome:
    flow: str
    amount: str
    classification: ClassificationResult

    @property
    def signal(self) -> Signal:
        return self.classification.signal

    @property
    def message(self) -> Optional[str]:
        return self.classification.message

    @property
    def passed(self) -> bool:
        return self.signal in ACCEPTABLE_SIGNALS

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        text = f"{self.flow} of {self.amount}: {self.signal.name} [{status}]"
        if self.message:
            text += f" - {self.message}"
        return text

    def assert_passed(self) -> None:
        assert self.passed, self.summary()
