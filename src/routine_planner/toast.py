from __future__ import annotations

"""Transient message overlay used by the pages for feedback."""

from PyQt6.QtCore import QTimer, Qt
from PyQt6.QtWidgets import QLabel, QWidget

TOAST_STYLE = """
    background: rgba(30,30,30,0.88);
    color: #fafafa; padding: 6px 14px; border-radius: 6px;
"""


class Toast(QLabel):  # pragma: no cover - UI utility
    def __init__(self, parent: QWidget, message: str, timeout_ms: int):
        super().__init__(message, parent)
        self.setStyleSheet(TOAST_STYLE)
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.adjustSize()
        self.move(max(0, (parent.width() - self.width()) // 2), 24)
        self.show()
        QTimer.singleShot(timeout_ms, self.deleteLater)


def show_toast(parent: QWidget, message: str, timeout_ms: int = 2500) -> None:  # pragma: no cover
    Toast(parent, message, timeout_ms)

__all__ = ["show_toast"]
