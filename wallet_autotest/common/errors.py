"""Exception hierarchy shared by drivers, the executor and page objects."""
from typing import Any, Dict, List, Optional


class AutomationError(Exception):
    """Base automation error."""
    pass


# ---- Fatal ----
class ConfigurationError(AutomationError):
    """Raised for malformed strategy/detector lists or timings."""
    pass


class DriverSessionError(AutomationError):
    """Raised when the device session is gone or the server is unreachable."""
    pass


# ---- Soft ----
class SoftFailure(AutomationError):
    """Expected UI flakiness: absorbed by the executor and the classifier."""
    pass


class ElementNotFoundError(SoftFailure):
    pass


class StaleElementError(SoftFailure):
    """Raised when interacting with an element that left the screen."""
    pass


class InteractionError(SoftFailure):
    """Raised when the driver rejects a command (not clickable, unknown gesture...)."""
    pass


# ---- Flow ----
class FlowError(AutomationError):
    """Raised by page objects when a mandatory step could not be performed."""

    def __init__(self, message: str, attempts: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.attempts = attempts or []
