"""Seed data helper for development convenience."""

from datetime import date, datetime, time, timedelta

from .database_manager import DatabaseManager
from .models import Routine, Task
from .repositories import create_routine, create_task


def seed_basic_data(db: DatabaseManager) -> None:
    if db.query_one("SELECT id FROM tasks LIMIT 1"):
        return  # Already seeded
    now = datetime.now().replace(second=0, microsecond=0)
    create_task(
        db,
        Task(ref=None, name="Write report", description="Quarterly summary",
             due_at=now + timedelta(days=1), importance=8, required_minutes=120),
    )
    create_task(
        db,
        Task(ref=None, name="Groceries", description="",
             due_at=now + timedelta(hours=6), importance=3, required_minutes=45),
    )
    today = date.today()
    create_routine(
        db,
        Routine(ref=None, title="Gym", start_date=today, end_date=today + timedelta(days=90),
                start_time=time(7, 0), end_time=time(8, 30), weekdays=("monday", "wednesday", "friday")),
    )

__all__ = ["seed_basic_data"]
