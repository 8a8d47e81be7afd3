from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from wallet_autotest.common.errors import ConfigurationError
from wallet_autotest.common.selector import Selector
from wallet_autotest.drivers.base import Clear, Click, DriverFacade, Operation, RawGesture, TypeText

TargetResolver = Callable[[DriverFacade, int], Optional[Any]]


class Locate(str, Enum):
    VISIBLE = "visible"
    CLICKABLE = "clickable"
    NONE = "none"  # coordinate gestures, key presses


@dataclass(frozen=True)
class Strategy:
    """
    One complete way of performing a logical action: locate a target, run
    ``operations`` against it, optionally wait ``settle_ms``, then let the
    executor verify.

    The target is either ``selector`` or a ``target`` callable receiving the
    driver and the timeout; with ``locate=Locate.NONE`` no element is looked
    up and operations receive ``None``.
    """
    name: str
    operations: Tuple[Operation, ...]
    selector: Optional[Selector] = None
    target: Optional[TargetResolver] = field(default=None, compare=False)
    locate: Locate = Locate.VISIBLE
    timeout_ms: Optional[int] = None
    settle_ms: int = 0

    def __post_init__(self):
        object.__setattr__(self, "operations", tuple(self.operations))
        if not self.operations:
            raise ConfigurationError(f"Strategy '{self.name}' has no operations")
        if self.selector is not None and self.target is not None:
            raise ConfigurationError(f"Strategy '{self.name}' sets both selector and target")
        if self.locate is not Locate.NONE and self.selector is None and self.target is None:
            raise ConfigurationError(f"Strategy '{self.name}' must locate something: give a selector or target")
        if self.timeout_ms is not None and self.timeout_ms < 0:
            raise ConfigurationError(f"Strategy '{self.name}' has a negative timeout")

    @property
    def target_description(self) -> str:
        if self.selector is not None:
            return str(self.selector)
        if self.target is not None:
            return getattr(self.target, "__name__", "computed target")
        return "screen"

    # ---- Factories ----
    @classmethod
    def click(cls, name: str, selector: Selector, *, clickable: bool = True,
              timeout_ms: Optional[int] = None, settle_ms: int = 0) -> "Strategy":
        return cls(
            name=name,
            operations=(Click(),),
            selector=selector,
            locate=Locate.CLICKABLE if clickable else Locate.VISIBLE,
            timeout_ms=timeout_ms,
            settle_ms=settle_ms,
        )

    @classmethod
    def type_text(cls, name: str, selector: Selector, text: str, *, clear: bool = True,
                  before: Iterable[Operation] = (), timeout_ms: Optional[int] = None,
                  settle_ms: int = 0) -> "Strategy":
        operations = list(before)
        if clear:
            operations.append(Clear())
        operations.append(TypeText(text))
        return cls(name=name, operations=tuple(operations), selector=selector,
                   timeout_ms=timeout_ms, settle_ms=settle_ms)

    @classmethod
    def gesture(cls, name: str, *gestures: RawGesture, selector: Optional[Selector] = None,
                timeout_ms: Optional[int] = None, settle_ms: int = 0) -> "Strategy":
        return cls(
            name=name,
            operations=gestures,
            selector=selector,
            locate=Locate.VISIBLE if selector is not None else Locate.NONE,
            timeout_ms=timeout_ms,
            settle_ms=settle_ms,
        )


@dataclass(frozen=True)
class Observation:
    """State re-read after a strategy ran; handed to the verify predicate."""
    text: Optional[str]
    element: Optional[Any]
    driver: DriverFacade
    remaining_ms: Optional[int] = None  # left of the action deadline when verify starts

    def bound(self, timeout_ms: int) -> int:
        """Clamp a verify wait to what is left of the action deadline."""
        if self.remaining_ms is None:
            return timeout_ms
        return max(0, min(timeout_ms, self.remaining_ms))


@dataclass(frozen=True)
class StrategyAttempt:
    index: int
    name: str
    outcome: str  # attempted | succeeded | failed-soft
    reason: Optional[str] = None
    elapsed_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "outcome": self.outcome,
            "reason": self.reason,
            "elapsed_ms": self.elapsed_ms,
        }


class ActionStatus(str, Enum):
    VERIFIED = "verified"
    TENTATIVE = "tentative"
    FAILED = "failed"


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of one resilient action.

    ``succeeded`` is only ever True after a verify step observed the expected
    post-condition. ``tentative_index`` points at the first strategy whose
    operations completed without error, verified or not.
    """
    action: str
    succeeded: bool
    strategy_index_used: Optional[int]
    observed_text: Optional[str]
    elapsed_ms: int
    tentative_index: Optional[int] = None
    deadline_exceeded: bool = False
    attempts: Tuple[StrategyAttempt, ...] = ()

    @property
    def status(self) -> ActionStatus:
        if self.succeeded:
            return ActionStatus.VERIFIED
        if self.tentative_index is not None:
            return ActionStatus.TENTATIVE
        return ActionStatus.FAILED

    @property
    def performed(self) -> bool:
        """Verified, or at least one strategy went through without error."""
        return self.status is not ActionStatus.FAILED
