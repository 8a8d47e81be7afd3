from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional
import logging

logger = logging.getLogger(__name__)


class By:
    """W3C / Appium locator strategies."""
    ID = "id"
    XPATH = "xpath"
    ACCESSIBILITY_ID = "accessibility id"
    CLASS_NAME = "class name"
    ANDROID_UIAUTOMATOR = "-android uiautomator"
    CSS = "css selector"

    ALL = (ID, XPATH, ACCESSIBILITY_ID, CLASS_NAME, ANDROID_UIAUTOMATOR, CSS)


@dataclass(frozen=True)
class Selector:
    """
    Immutable element query: the query language tag (``using``) and the query
    string (``value``). ``description`` is only used in logs and reports.
    """
    using: str
    value: str
    description: Optional[str] = None

    def __post_init__(self):
        if self.using not in By.ALL:
            raise ValueError(f"Unsupported locator strategy '{self.using}', expected one of {By.ALL}")
        if not self.value:
            raise ValueError("Selector value must not be empty")

    def __str__(self) -> str:
        return self.description or f"{self.using}={self.value}"

    def formatted(self, **kwargs) -> "Selector":
        """Replace templated placeholders in ``value`` and return a new Selector."""
        if "{" not in self.value:
            return self
        try:
            return replace(self, value=self.value.format(**kwargs))
        except (KeyError, IndexError, ValueError) as e:
            logger.warning(f"Selector formatting failed for '{self.value}': {e}")
            return self

    # ---- Factories ----
    @classmethod
    def by_id(cls, resource_id: str, description: Optional[str] = None) -> "Selector":
        return cls(By.ID, resource_id, description)

    @classmethod
    def by_xpath(cls, xpath: str, description: Optional[str] = None) -> "Selector":
        return cls(By.XPATH, xpath, description)

    @classmethod
    def by_accessibility_id(cls, content_desc: str, description: Optional[str] = None) -> "Selector":
        return cls(By.ACCESSIBILITY_ID, content_desc, description)

    @classmethod
    def text_contains(
        cls,
        fragments: Iterable[str],
        widget: str = "android.widget.TextView",
        description: Optional[str] = None
    ) -> "Selector":
        """XPath matching a widget whose text contains any of ``fragments``."""
        fragments = list(fragments)
        if not fragments:
            raise ValueError("text_contains needs at least one fragment")
        condition = " or ".join(f"contains(@text, {_xpath_literal(f)})" for f in fragments)
        return cls(By.XPATH, f"//{widget}[{condition}]", description)


def _xpath_literal(text: str) -> str:
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    parts = text.split("'")
    return "concat(" + ", \"'\", ".join(f"'{p}'" for p in parts) + ")"
