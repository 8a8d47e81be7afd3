"""
BasePage - Page Object Pattern 基类

每个页面对象持有同一设备会话的驱动、报告器、执行器与分类器。
多策略操作通过 ResilientActionExecutor 执行，结果页通过 OutcomeClassifier 判定。
所有页面对象类应继承此类。
"""
from __future__ import annotations

import time
from typing import Callable, List, Optional, Sequence, Type, TypeVar

from wallet_autotest.common.classifier import ClassificationResult, OutcomeClassifier, SignalDetector
from wallet_autotest.common.errors import FlowError
from wallet_autotest.common.executor import ResilientActionExecutor, VerifyPredicate
from wallet_autotest.common.popups import dismiss_banner, dismiss_popup
from wallet_autotest.common.selector import Selector
from wallet_autotest.common.strategy import ActionResult, Observation, Strategy
from wallet_autotest.common.timing import Clock, Sleeper
from wallet_autotest.config.manager import TimeoutsConfig
from wallet_autotest.drivers.base import Click, DriverFacade, RawGesture, delete_key, select_all
from wallet_autotest.reporting.reporter import Reporter
from wallet_autotest.reporting.screenshots import ScreenshotHelper
from wallet_autotest.utils.logger import logger

from pages import selectors

P = TypeVar("P", bound="BasePage")


# ==================== 校验谓词 ====================

def visible(selector: Selector) -> VerifyPredicate:
    """操作后 ``selector`` 立即可见"""
    def _verify(observation: Observation) -> bool:
        return observation.driver.is_visible(selector, 0)

    _verify.__name__ = f"visible({selector})"
    return _verify


def appears(selector: Selector, timeout_ms: int) -> VerifyPredicate:
    """操作后 ``selector`` 在 ``timeout_ms`` 内出现（用于跳转到新页面）, 等待不超过动作剩余时间"""
    def _verify(observation: Observation) -> bool:
        return observation.driver.find_visible(selector, observation.bound(timeout_ms)) is not None

    _verify.__name__ = f"appears({selector})"
    return _verify


def text_contains(expected: str) -> VerifyPredicate:
    """操作后元素文本包含 ``expected``"""
    def _verify(observation: Observation) -> bool:
        return observation.text is not None and expected in observation.text

    _verify.__name__ = f"text_contains({expected!r})"
    return _verify


def amount_entry_strategies(field: Selector, amount: str, settle_ms: int = 0) -> List[Strategy]:
    """
    金额输入的四种方式（按顺序尝试）:
    1. clear + 输入
    2. replaceElementValue 直接替换
    3. 全选 + 删除 + 输入
    4. 不清空直接输入
    """
    return [
        Strategy.type_text("clear and type", field, amount, settle_ms=settle_ms),
        Strategy.gesture(
            "replace element value",
            RawGesture("mobile: replaceElementValue", {"text": amount}),
            selector=field,
            settle_ms=settle_ms,
        ),
        Strategy.type_text(
            "select all, delete and type", field, amount,
            clear=False, before=(Click(), select_all(), delete_key()), settle_ms=settle_ms,
        ),
        Strategy.type_text("type without clearing", field, amount, clear=False, settle_ms=settle_ms),
    ]


class BasePage:
    """页面对象基类 - 封装通用的页面操作方法"""

    def __init__(
        self,
        driver: DriverFacade,
        reporter: Reporter,
        timeouts: Optional[TimeoutsConfig] = None,
        screenshots: Optional[ScreenshotHelper] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep
    ):
        """
        初始化 BasePage

        Args:
            driver: 设备会话驱动
            reporter: 报告器（进程级，按会话 ID 区分）
            timeouts: 超时配置（毫秒），默认取 TimeoutsConfig 默认值
            screenshots: 截图辅助类（可选）
            clock / sleep: 可注入的时钟与休眠函数（测试用）
        """
        self.driver = driver
        self.reporter = reporter
        self.timeouts = timeouts or TimeoutsConfig()
        self.screenshots = screenshots
        self._clock = clock
        self._sleep = sleep
        self.executor = ResilientActionExecutor(
            driver, reporter,
            strategy_timeout_ms=self.timeouts.strategy,
            deadline_ms=self.timeouts.action_deadline,
            clock=clock,
            sleep=sleep,
        )
        self.classifier = OutcomeClassifier(
            driver, reporter,
            poll_interval_ms=self.timeouts.poll_interval,
            deadline_ms=self.timeouts.classification_deadline,
            clock=clock,
            sleep=sleep,
        )
        self._page_name = self.__class__.__name__

    @property
    def session_id(self) -> str:
        return self.driver.session_id

    def open_page(self, page_cls: Type[P]) -> P:
        """创建共享同一会话协作者的下一个页面对象"""
        return page_cls(self.driver, self.reporter, self.timeouts, self.screenshots, self._clock, self._sleep)

    # ==================== 日志 ====================

    def log(self, category: str, message: str) -> None:
        self.reporter.log(self.session_id, category, message)

    # ==================== 多策略操作 ====================

    def act(
        self,
        action_name: str,
        strategies: Sequence[Strategy],
        verify: Optional[VerifyPredicate] = None,
        deadline_ms: Optional[int] = None
    ) -> ActionResult:
        """执行多策略操作，返回 ActionResult（不抛出软失败）"""
        return self.executor.execute(action_name, strategies, verify, deadline_ms=deadline_ms)

    def require(
        self,
        action_name: str,
        strategies: Sequence[Strategy],
        verify: Optional[VerifyPredicate] = None,
        deadline_ms: Optional[int] = None
    ) -> ActionResult:
        """
        执行必需步骤

        有校验谓词时要求校验通过，否则至少一个策略执行完成。

        Raises:
            FlowError: 所有策略失败
        """
        result = self.act(action_name, strategies, verify, deadline_ms)
        done = result.succeeded if verify is not None else result.performed
        if not done:
            self.reporter.error(self.session_id, f"{self._page_name}: {action_name} failed")
            raise FlowError(
                f"{self._page_name}: '{action_name}' failed after {len(result.attempts)} attempts",
                attempts=[a.to_dict() for a in result.attempts],
            )
        self.log("Success", f"{action_name} ({result.status.value})")
        return result

    def tap(self, action_name: str, *targets: Selector, verify: Optional[VerifyPredicate] = None) -> ActionResult:
        """依次尝试点击多个候选元素（必需步骤）"""
        strategies = [Strategy.click(str(target), target, settle_ms=self._settle) for target in targets]
        return self.require(action_name, strategies, verify)

    @property
    def _settle(self) -> int:
        return self.timeouts.settle

    # ==================== 结果判定 ====================

    def classify(self, detectors: Sequence[SignalDetector], label: str) -> ClassificationResult:
        return self.classifier.classify(detectors, label=label)

    # ==================== 等待与查询 ====================

    def is_displayed(self, selector: Selector, timeout_ms: Optional[int] = None) -> bool:
        """等待元素可见（默认 element_wait），返回是否可见"""
        timeout_ms = self.timeouts.element_wait if timeout_ms is None else timeout_ms
        return self.driver.find_visible(selector, timeout_ms) is not None

    def text_of(self, selector: Selector, timeout_ms: Optional[int] = None) -> Optional[str]:
        timeout_ms = self.timeouts.element_wait if timeout_ms is None else timeout_ms
        element = self.driver.find_visible(selector, timeout_ms)
        return self.driver.read_text(element) if element is not None else None

    def wait_until(self, condition: Callable[[], bool], timeout_ms: int, poll_ms: int = 500) -> bool:
        """轮询条件直到为真或超时"""
        end = self._clock() + timeout_ms / 1000
        while True:
            if condition():
                return True
            remaining = end - self._clock()
            if remaining <= 0:
                return False
            self._sleep(min(poll_ms / 1000, remaining))

    # ==================== 弹窗 ====================

    def dismiss_banner(self) -> Optional[ActionResult]:
        """关闭推广横幅（无横幅时返回 None）"""
        return dismiss_banner(self.executor, (selectors.banner_close, selectors.banner_close_icon), settle_ms=self._settle)

    def dismiss_popup(
        self,
        marker: Selector,
        ok_selector: Optional[Selector] = selectors.popup_ok,
        close_selector: Optional[Selector] = selectors.popup_close
    ) -> Optional[ActionResult]:
        """关闭弹窗：OK → 关闭图标 → 返回键"""
        return dismiss_popup(self.executor, marker, ok_selector, close_selector, settle_ms=self._settle)

    # ==================== 截图 ====================

    def take_screenshot(self, name: str) -> None:
        """保存截图（若配置了 ScreenshotHelper），并记录到报告"""
        if self.screenshots is not None:
            # 报告器负责附加 Screenshot 类别的截图
            self.screenshots.take(name, attach=False)
        else:
            logger.debug(f"[{self.session_id}] Screenshot '{name}' skipped: no ScreenshotHelper")
        self.log("Screenshot", name)

    def __repr__(self) -> str:
        return f"<{self._page_name} session={self.session_id}>"
