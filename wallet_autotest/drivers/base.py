"""
Driver facade: the narrow surface the executor, the classifier and the page
objects use to talk to a device session.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from wallet_autotest.common.selector import Selector


# ---- Operations ----
@dataclass(frozen=True)
class Click:
    def __str__(self) -> str:
        return "click"


@dataclass(frozen=True)
class Clear:
    def __str__(self) -> str:
        return "clear"


@dataclass(frozen=True)
class TypeText:
    text: str

    def __str__(self) -> str:
        return f"type({len(self.text)} chars)"


@dataclass(frozen=True)
class RawGesture:
    """
    Platform command executed through the driver's script channel, e.g.
    ``mobile: clickGesture``. When an element is supplied its id is added
    to ``params`` by the driver.
    """
    command: str
    params: Dict[str, Any] = field(default_factory=dict, hash=False)

    def __str__(self) -> str:
        return f"raw_gesture({self.command})"


Operation = Union[Click, Clear, TypeText, RawGesture]


# Android key codes / meta state for ``mobile: pressKey``
KEYCODE_BACK = 4
KEYCODE_A = 29
KEYCODE_DEL = 67
META_CTRL_ON = 0x1000


def tap_at(x: int, y: int) -> RawGesture:
    return RawGesture("mobile: clickGesture", {"x": x, "y": y})


def press_back() -> RawGesture:
    return RawGesture("mobile: pressKey", {"keycode": KEYCODE_BACK})


def select_all() -> RawGesture:
    return RawGesture("mobile: pressKey", {"keycode": KEYCODE_A, "metastate": META_CTRL_ON})


def delete_key() -> RawGesture:
    return RawGesture("mobile: pressKey", {"keycode": KEYCODE_DEL})


def hide_keyboard() -> RawGesture:
    return RawGesture("mobile: hideKeyboard")


class DriverFacade(ABC):
    """
    One instance per device session. Lookups return ``None`` when nothing
    matches in time; interaction problems raise the soft errors from
    ``wallet_autotest.common.errors`` and a lost session raises
    ``DriverSessionError``.
    """

    session_id: str

    @abstractmethod
    def find_visible(self, selector: Selector, timeout_ms: int) -> Optional[Any]:
        """Wait up to ``timeout_ms`` for a displayed element."""

    @abstractmethod
    def find_clickable(self, selector: Selector, timeout_ms: int) -> Optional[Any]:
        """Wait up to ``timeout_ms`` for a displayed and enabled element."""

    @abstractmethod
    def interact(self, element: Optional[Any], operation: Operation) -> None:
        """Perform one operation; ``element`` may be None for coordinate gestures."""

    @abstractmethod
    def read_text(self, element: Any) -> str:
        pass

    @abstractmethod
    def screenshot(self) -> bytes:
        """PNG bytes of the current screen."""

    def is_visible(self, selector: Selector, timeout_ms: int = 0) -> bool:
        return self.find_visible(selector, timeout_ms) is not None
