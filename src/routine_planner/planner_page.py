from __future__ import annotations

"""Planner page: show the synthesized 24-hour schedule for a date."""

from typing import Any

from PyQt6.QtCore import QDate, pyqtSignal
from PyQt6.QtWidgets import (
    QDateEdit, QHBoxLayout, QLabel, QPushButton, QTableWidget, QTableWidgetItem,
    QVBoxLayout, QWidget,
)

from .errors import PlannerError
from .synthesizer import ScheduleSynthesizer
from .toast import show_toast


def format_hour(hour: int) -> str:
    return f"{hour:02d}:00-{(hour + 1) % 24:02d}:00"


def schedule_rows(payload: list[dict[str, Any]]) -> list[tuple[str, str, str, str]]:
    """Turn a schedule payload into (hour, free, status, labels) table rows."""
    return [
        (
            format_hour(item["hourStart"]),
            f"{item['remainingMinutes']} min",
            "open" if item["hasCapacity"] else "full",
            ", ".join(item["labels"]),
        )
        for item in payload
    ]


class PlannerPage(QWidget):  # pragma: no cover heavy UI
    schedule_loaded = pyqtSignal(str)

    def __init__(self, synthesizer: ScheduleSynthesizer):
        super().__init__()
        self._synth = synthesizer
        self.date_edit = QDateEdit(QDate.currentDate())
        self.date_edit.setCalendarPopup(True)
        self.show_btn = QPushButton("Show Schedule")
        self.table = QTableWidget(0, 4)
        self.table.setHorizontalHeaderLabels(["Hour", "Free", "Status", "Occupied By"])
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(self.table.EditTrigger.NoEditTriggers)
        self.table.horizontalHeader().setStretchLastSection(True)

        header_row = QHBoxLayout()
        header_row.addWidget(QLabel("Date:")); header_row.addWidget(self.date_edit)
        header_row.addWidget(self.show_btn)
        header_row.addStretch(1)

        layout = QVBoxLayout(self)
        layout.addLayout(header_row)
        layout.addWidget(self.table)

        self.show_btn.clicked.connect(self._on_show)

    def _on_show(self):
        day = self.date_edit.date().toString("yyyy-MM-dd")
        try:
            payload = self._synth.get_schedule_payload(day)
        except PlannerError as e:
            show_toast(self, f"Could not build schedule: {e}")
            return
        rows = schedule_rows(payload)
        self.table.setRowCount(len(rows))
        for r, cells in enumerate(rows):
            for c, text in enumerate(cells):
                self.table.setItem(r, c, QTableWidgetItem(text))
        self.schedule_loaded.emit(day)


__all__ = ["PlannerPage", "format_hour", "schedule_rows"]
