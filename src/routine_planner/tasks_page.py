from __future__ import annotations

"""Tasks and routines page: add, complete and delete backlog items."""

from datetime import datetime, time

from PyQt6.QtCore import QDate, QDateTime, QTime
from PyQt6.QtWidgets import (
    QDateEdit, QDateTimeEdit, QDialog, QDialogButtonBox, QFormLayout, QHBoxLayout,
    QLineEdit, QMessageBox, QPushButton, QSpinBox, QTableWidget, QTableWidgetItem,
    QTimeEdit, QVBoxLayout, QWidget,
)

from .models import WEEKDAY_NAMES
from .planner_store import PlannerStore
from .toast import show_toast


class TaskDialog(QDialog):  # pragma: no cover - UI
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Task")
        self.name_edit = QLineEdit()
        self.desc_edit = QLineEdit()
        self.due_edit = QDateTimeEdit(QDateTime.currentDateTime().addDays(1))
        self.due_edit.setCalendarPopup(True)
        self.importance_spin = QSpinBox(); self.importance_spin.setRange(1, 10); self.importance_spin.setValue(5)
        self.minutes_spin = QSpinBox(); self.minutes_spin.setRange(0, 10_000); self.minutes_spin.setSingleStep(15); self.minutes_spin.setValue(60)
        form = QFormLayout()
        form.addRow("Name", self.name_edit)
        form.addRow("Description", self.desc_edit)
        form.addRow("Due", self.due_edit)
        form.addRow("Importance", self.importance_spin)
        form.addRow("Required (min)", self.minutes_spin)
        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(buttons)

    def get_values(self):
        return (
            self.name_edit.text(),
            self.desc_edit.text().strip(),
            self.due_edit.dateTime().toPyDateTime().replace(second=0, microsecond=0),
            self.importance_spin.value(),
            self.minutes_spin.value(),
        )


class RoutineDialog(QDialog):  # pragma: no cover - UI
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Routine")
        self.title_edit = QLineEdit()
        self.start_date = QDateEdit(QDate.currentDate()); self.start_date.setCalendarPopup(True)
        self.end_date = QDateEdit(QDate.currentDate().addMonths(1)); self.end_date.setCalendarPopup(True)
        self.start_time = QTimeEdit(QTime(9, 0))
        self.end_time = QTimeEdit(QTime(10, 0))
        self.importance_spin = QSpinBox(); self.importance_spin.setRange(1, 10); self.importance_spin.setValue(5)
        self.weekdays_edit = QLineEdit(", ".join(WEEKDAY_NAMES[:5]))
        form = QFormLayout()
        form.addRow("Title", self.title_edit)
        form.addRow("From", self.start_date)
        form.addRow("Until", self.end_date)
        form.addRow("Starts", self.start_time)
        form.addRow("Ends", self.end_time)
        form.addRow("Importance", self.importance_spin)
        form.addRow("Weekdays", self.weekdays_edit)
        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(buttons)

    def get_values(self):
        st = self.start_time.time()
        et = self.end_time.time()
        return (
            self.title_edit.text(),
            self.start_date.date().toPyDate(),
            self.end_date.date().toPyDate(),
            time(st.hour(), st.minute()),
            time(et.hour(), et.minute()),
            self.importance_spin.value(),
            self.weekdays_edit.text().split(","),
        )


class TasksPage(QWidget):  # pragma: no cover heavy UI
    def __init__(self, store: PlannerStore):
        super().__init__()
        self._store = store
        self.table = QTableWidget(0, 6)
        self.table.setHorizontalHeaderLabels(["Name", "Due", "Importance", "Allocated", "Required", "Done"])
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(self.table.EditTrigger.NoEditTriggers)
        self.table.setSelectionBehavior(self.table.SelectionBehavior.SelectRows)
        self.table.horizontalHeader().setStretchLastSection(True)

        self.btn_add = QPushButton("Add Task")
        self.btn_toggle = QPushButton("Toggle Done")
        self.btn_delete = QPushButton("Delete")
        self.btn_routine = QPushButton("Add Routine")
        btn_row = QHBoxLayout()
        for b in (self.btn_add, self.btn_toggle, self.btn_delete, self.btn_routine):
            btn_row.addWidget(b)
        btn_row.addStretch(1)

        layout = QVBoxLayout(self)
        layout.addLayout(btn_row)
        layout.addWidget(self.table)

        self.btn_add.clicked.connect(self._add)
        self.btn_toggle.clicked.connect(self._toggle)
        self.btn_delete.clicked.connect(self._delete)
        self.btn_routine.clicked.connect(self._add_routine)
        self._store.changed.connect(self.refresh)
        self._store.error.connect(lambda msg: show_toast(self, msg))
        self.refresh()

    def _selected_task(self):
        rows = self.table.selectionModel().selectedRows()
        if not rows:
            return None
        tasks = self._store.tasks()
        idx = rows[0].row()
        return tasks[idx] if idx < len(tasks) else None

    def refresh(self):
        tasks = self._store.tasks()
        self.table.setRowCount(len(tasks))
        for r, t in enumerate(tasks):
            self.table.setItem(r, 0, QTableWidgetItem(t.name))
            self.table.setItem(r, 1, QTableWidgetItem(t.due_at.strftime("%Y-%m-%d %H:%M")))
            self.table.setItem(r, 2, QTableWidgetItem(str(t.importance)))
            self.table.setItem(r, 3, QTableWidgetItem(str(t.allocated_minutes)))
            self.table.setItem(r, 4, QTableWidgetItem(str(t.required_minutes)))
            self.table.setItem(r, 5, QTableWidgetItem("yes" if t.done else ""))

    def _add(self):
        dlg = TaskDialog(self)
        if dlg.exec() == dlg.DialogCode.Accepted:
            name, desc, due_at, importance, minutes = dlg.get_values()
            if due_at <= datetime.now():
                show_toast(self, "Due time is already past; it will never be scheduled")
            if self._store.create_task(name, desc, due_at, importance, minutes):
                show_toast(self, "Task created")

    def _toggle(self):
        t = self._selected_task()
        if not t or t.ref is None:
            show_toast(self, "Select a task")
            return
        if t.done:
            self._store.mark_undone(t.ref)
        else:
            self._store.mark_done(t.ref)

    def _delete(self):
        t = self._selected_task()
        if not t or t.ref is None:
            show_toast(self, "Select a task")
            return
        if QMessageBox.question(self, "Confirm", f"Delete '{t.name}'?") == QMessageBox.StandardButton.Yes:
            self._store.delete_task(t.ref)
            show_toast(self, "Deleted")

    def _add_routine(self):
        dlg = RoutineDialog(self)
        if dlg.exec() == dlg.DialogCode.Accepted:
            if self._store.create_routine(*dlg.get_values()):
                show_toast(self, "Routine created")


__all__ = ["TasksPage"]
