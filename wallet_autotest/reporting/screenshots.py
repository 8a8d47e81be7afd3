"""
ScreenshotHelper - 设备截图辅助类

保存驱动截图为 ``<name>_<yyyyMMdd_HHmmss>.png``，维护截图历史，
并可附加到 Allure 报告。
"""
from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import allure

from wallet_autotest.drivers.base import DriverFacade
from wallet_autotest.utils.logger import setup_logger

logger = setup_logger(__name__, log_to_console=False)


# ==================== 元数据模型 ====================

class ScreenshotMetadata:
    """截图元数据"""

    def __init__(self, name: str, filepath: str, session_id: str, timestamp: datetime, size: int):
        self.name = name
        self.filepath = filepath
        self.session_id = session_id
        self.timestamp = timestamp
        self.size = size

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "filepath": self.filepath,
            "session": self.session_id,
            "datetime": self.timestamp.isoformat(),
            "size_kb": round(self.size / 1024, 2),
        }

    def __repr__(self) -> str:
        return f"<ScreenshotMetadata {self.name} ({self.session_id})>"


# ==================== 核心辅助类 ====================

class ScreenshotHelper:
    """
    截图辅助类

    - 文件名清洗 + 路径穿越校验
    - 时间戳命名
    - 历史记录与自动清理
    - Allure 附件
    """

    TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

    def __init__(
            self,
            driver: DriverFacade,
            screenshot_dir: Union[str, Path],
            max_screenshots: int = 200,
            enable_allure: bool = True
    ):
        self.driver = driver
        self.screenshot_dir = Path(screenshot_dir).resolve()
        self.max_screenshots = max_screenshots
        self.enable_allure = enable_allure
        self._history: List[ScreenshotMetadata] = []
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)

    # ==================== 安全工具方法 ====================

    @staticmethod
    def _sanitize_filename(name: str) -> str:
        """替换字母、数字、下划线、连字符、点以外的字符"""
        return re.sub(r'[^\w\-_\.]', '_', name).strip('_')

    def _get_safe_filepath(self, name: str, timestamp: datetime) -> Path:
        """生成 ``<name>_<时间戳>.png``，确保路径在截图目录内"""
        safe_name = self._sanitize_filename(name) or "screenshot"
        filepath = (self.screenshot_dir / f"{safe_name}_{timestamp.strftime(self.TIMESTAMP_FORMAT)}.png").resolve()
        try:
            filepath.relative_to(self.screenshot_dir)
        except ValueError:
            raise ValueError(f"Invalid filename '{name}' - path traversal attempt detected")
        return filepath

    # ==================== 截图 ====================

    def take(self, name: str, attach: Optional[bool] = None) -> ScreenshotMetadata:
        """
        截图并保存

        Args:
            name: 截图名称（会被清洗）
            attach: 是否附加到 Allure（默认取 enable_allure）

        Returns:
            ScreenshotMetadata
        """
        timestamp = datetime.now()
        filepath = self._get_safe_filepath(name, timestamp)
        png = self.driver.screenshot()
        filepath.write_bytes(png)

        metadata = ScreenshotMetadata(
            name=filepath.stem,
            filepath=str(filepath),
            session_id=self.driver.session_id,
            timestamp=timestamp,
            size=len(png),
        )
        self._history.append(metadata)
        logger.info(f"[{self.driver.session_id}] Screenshot saved: {filepath.name}")

        if self.enable_allure if attach is None else attach:
            allure.attach(png, name=metadata.name, attachment_type=allure.attachment_type.PNG)
        self._cleanup_old_screenshots()
        return metadata

    # ==================== 历史管理 ====================

    def get_history(self) -> List[ScreenshotMetadata]:
        """获取截图历史（返回副本）"""
        return self._history.copy()

    def get_latest_screenshot(self) -> Optional[ScreenshotMetadata]:
        return self._history[-1] if self._history else None

    def clear_history(self) -> None:
        """清除截图历史记录（不删除文件）"""
        self._history.clear()

    def _cleanup_old_screenshots(self) -> None:
        """保留最新 max_screenshots 个截图"""
        if len(self._history) <= self.max_screenshots:
            return
        for metadata in self._history[:-self.max_screenshots]:
            filepath = Path(metadata.filepath)
            try:
                filepath.unlink(missing_ok=True)
                logger.debug(f"Auto-deleted old screenshot: {filepath.name}")
            except OSError as e:
                logger.warning(f"Failed to auto-delete {filepath.name}: {e}")
        self._history = self._history[-self.max_screenshots:]
