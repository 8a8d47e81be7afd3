from .reporter import AllureReporter, LoggingReporter, Reporter, format_duration
from .screenshots import ScreenshotHelper, ScreenshotMetadata

__all__ = [
    "Reporter",
    "LoggingReporter",
    "AllureReporter",
    "format_duration",
    "ScreenshotHelper",
    "ScreenshotMetadata",
]
