from __future__ import annotations

import sys
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QListWidget,
    QMainWindow,
    QStackedWidget,
    QWidget,
)

from .config import PlannerSettings, load_scheduler_config
from .database_manager import DBConfig, DatabaseManager
from .logging_setup import configure_logging
from .planner_page import PlannerPage
from .planner_store import PlannerStore
from .seed import seed_basic_data
from .stores import SqliteRoutineStore, SqliteScheduleStore, SqliteTaskStore
from .synthesizer import ScheduleSynthesizer
from .tasks_page import TasksPage


APP_NAME = "Routine Planner"


@dataclass(slots=True)
class AppState:
    db_path: Path
    db: DatabaseManager
    planner_store: PlannerStore
    synthesizer: ScheduleSynthesizer


def build_synthesizer(db: DatabaseManager) -> ScheduleSynthesizer:
    return ScheduleSynthesizer(
        SqliteTaskStore(db),
        SqliteRoutineStore(db),
        SqliteScheduleStore(db),
        config=load_scheduler_config(db),
    )


def get_app_state(settings: Optional[PlannerSettings] = None) -> AppState:
    settings = settings or PlannerSettings.from_env()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    configure_logging(settings.data_dir, settings.log_level)
    db = DatabaseManager(DBConfig(path=settings.db_path))
    db.init_db()
    if settings.seed_demo:
        seed_basic_data(db)
    store = PlannerStore(db); store.load()
    synthesizer = build_synthesizer(db)
    logging.getLogger(__name__).info(
        "app_state_created", extra={"_json_db_path": str(settings.db_path)}
    )
    return AppState(db_path=settings.db_path, db=db, planner_store=store, synthesizer=synthesizer)


class Sidebar(QListWidget):
    PAGES = ["Planner", "Tasks"]

    def __init__(self) -> None:
        super().__init__()
        self.addItems(self.PAGES)
        self.setFixedWidth(140)
        self.setCurrentRow(0)


class MainWindow(QMainWindow):  # pragma: no cover - UI
    def __init__(self, state: AppState) -> None:  # noqa: D401
        super().__init__()
        self.state = state
        self.setWindowTitle(APP_NAME)
        self.resize(900, 640)

        self.sidebar = Sidebar()
        self.pages = QStackedWidget()
        planner = PlannerPage(state.synthesizer)
        # Synthesis moves allocations, so the task table goes stale after each new day.
        planner.schedule_loaded.connect(lambda _d: state.planner_store.reload_tasks())
        self.pages.addWidget(planner)
        self.pages.addWidget(TasksPage(state.planner_store))

        container = QWidget()
        layout = QHBoxLayout(container)
        layout.addWidget(self.sidebar)
        layout.addWidget(self.pages, 1)
        self.setCentralWidget(container)
        self.sidebar.currentRowChanged.connect(self.pages.setCurrentIndex)


def run(argv: Optional[list[str]] = None) -> int:  # pragma: no cover
    if argv is None:
        argv = sys.argv
    app = QApplication(argv)
    state = get_app_state()
    window = MainWindow(state)
    window.show()
    try:
        return app.exec()
    finally:
        state.db.close()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(run())
