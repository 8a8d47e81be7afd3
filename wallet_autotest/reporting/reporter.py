"""
Reporters: process-wide, keyed by session (device) id.

``LoggingReporter`` writes step/action lines through the automation logger;
``AllureReporter`` additionally mirrors steps into Allure and captures
screenshots for selected categories.
"""
from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

import allure

from wallet_autotest.utils.logger import log_exception, logger as default_logger


class Reporter(ABC):
    """Sink for step boundaries, action log lines and errors."""

    @abstractmethod
    def step_start(self, session_id: str, name: str) -> None:
        pass

    @abstractmethod
    def step_end(self, session_id: str, name: str) -> None:
        pass

    @abstractmethod
    def log(self, session_id: str, category: str, message: str) -> None:
        pass

    @abstractmethod
    def error(self, session_id: str, message: str, cause: Optional[BaseException] = None) -> None:
        pass


def format_duration(duration_ms: float) -> str:
    """123ms below one second, 1.23s above."""
    if duration_ms < 1000:
        return f"{int(duration_ms)}ms"
    return f"{duration_ms / 1000:.2f}s"


class LoggingReporter(Reporter):
    """Step timings per session plus ``[device] [Category] message`` lines."""

    def __init__(self, logger=None, clock=time.monotonic):
        self._logger = logger or default_logger
        self._clock = clock
        self._lock = threading.Lock()
        self._step_starts: Dict[Tuple[str, str], List[float]] = {}

    def step_start(self, session_id: str, name: str) -> None:
        with self._lock:
            self._step_starts.setdefault((session_id, name), []).append(self._clock())
        self._logger.info(f"[{session_id}] ▶️ Step: {name}")

    def step_end(self, session_id: str, name: str) -> None:
        with self._lock:
            starts = self._step_starts.get((session_id, name))
            started = starts.pop() if starts else None
            if starts == []:
                del self._step_starts[(session_id, name)]
        if started is None:
            self._logger.warning(f"[{session_id}] step_end without step_start: {name}")
            return
        duration = format_duration((self._clock() - started) * 1000)
        self._logger.info(f"[{session_id}] ⏹ Step: {name} ({duration})")

    def log(self, session_id: str, category: str, message: str) -> None:
        self._logger.info(f"[{session_id}] [{category}] {message}")

    def error(self, session_id: str, message: str, cause: Optional[BaseException] = None) -> None:
        if cause is not None:
            log_exception(self._logger, cause, context=f"[{session_id}] {message}")
        else:
            self._logger.error(f"[{session_id}] ❌ {message}")

    def open_steps(self, session_id: str) -> List[str]:
        with self._lock:
            return [name for (sid, name), starts in self._step_starts.items() if sid == session_id and starts]


class AllureReporter(LoggingReporter):
    """
    LoggingReporter that also opens an ``allure.step`` per step and attaches
    log lines. Drivers bound with ``bind_driver`` provide screenshots for
    the categories in ``capture_categories``.
    """

    def __init__(
        self,
        logger=None,
        clock=time.monotonic,
        capture_categories: Iterable[str] = ("Success", "Error", "Screenshot"),
        attach_logs: bool = True
    ):
        super().__init__(logger=logger, clock=clock)
        self.capture_categories = set(capture_categories)
        self.attach_logs = attach_logs
        self._allure_steps: Dict[str, List[Any]] = {}
        self._drivers: Dict[str, Any] = {}

    def bind_driver(self, session_id: str, driver) -> None:
        with self._lock:
            self._drivers[session_id] = driver

    def unbind_driver(self, session_id: str) -> None:
        with self._lock:
            self._drivers.pop(session_id, None)

    def step_start(self, session_id: str, name: str) -> None:
        super().step_start(session_id, name)
        step = allure.step(f"[{session_id}] {name}")
        step.__enter__()
        with self._lock:
            self._allure_steps.setdefault(session_id, []).append(step)

    def step_end(self, session_id: str, name: str) -> None:
        with self._lock:
            stack = self._allure_steps.get(session_id)
            step = stack.pop() if stack else None
        if step is not None:
            step.__exit__(None, None, None)
        super().step_end(session_id, name)

    def log(self, session_id: str, category: str, message: str) -> None:
        super().log(session_id, category, message)
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        if self.attach_logs:
            self._attach_text(f"{category}", f"[{timestamp}] [{session_id}] [{category}] {message}")
        if category in self.capture_categories:
            self.capture(session_id, f"{category}_{message[:40]}")

    def error(self, session_id: str, message: str, cause: Optional[BaseException] = None) -> None:
        super().error(session_id, message, cause)
        details = {"session": session_id, "message": message}
        if cause is not None:
            details["cause"] = f"{type(cause).__name__}: {cause}"
        self._attach_text("Error", json.dumps(details, ensure_ascii=False, indent=2), json_payload=True)
        if "Error" in self.capture_categories:
            self.capture(session_id, f"Error_{message[:40]}")

    def capture(self, session_id: str, name: str) -> Optional[bytes]:
        """Attach a screenshot of the session's current screen, if a driver is bound."""
        with self._lock:
            driver = self._drivers.get(session_id)
        if driver is None:
            return None
        try:
            png = driver.screenshot()
        except Exception as e:
            # best-effort
            self._logger.warning(f"[{session_id}] Screenshot failed for '{name}': {e}")
            return None
        allure.attach(png, name=name, attachment_type=allure.attachment_type.PNG)
        return png

    def _attach_text(self, name: str, content: str, json_payload: bool = False) -> None:
        attachment_type = allure.attachment_type.JSON if json_payload else allure.attachment_type.TEXT
        allure.attach(content, name=name, attachment_type=attachment_type)
