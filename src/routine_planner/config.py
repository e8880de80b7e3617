from __future__ import annotations

"""Settings loaded from environment variables plus scheduler tunables.

``PlannerSettings`` decides where data and logs live. ``SchedulerConfig``
holds the knobs of the schedule synthesizer; overrides can be persisted in the
``settings`` table and are read back with :func:`load_scheduler_config`.
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from .database_manager import DatabaseManager
from .models import SLOT_MINUTES
from .repositories import get_setting, set_setting

ENV_PREFIX = "ROUTINE_PLANNER"

IMPORTANCE_WEIGHT_KEY = "scheduler.importance_weight"
CLOSE_THRESHOLD_KEY = "scheduler.close_threshold_minutes"

_log = logging.getLogger(__name__)


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_level(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


@dataclass(frozen=True, slots=True)
class PlannerSettings:
    data_dir: Path
    db_name: str = "routine_planner.sqlite"
    log_level: int = logging.INFO
    seed_demo: bool = False

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    @classmethod
    def from_env(cls) -> "PlannerSettings":
        return cls(
            data_dir=_env_path(_k("DATA_DIR"), Path.cwd() / "data"),
            db_name=os.getenv(_k("DB_NAME")) or "routine_planner.sqlite",
            log_level=_env_level(_k("LOG_LEVEL"), logging.INFO),
            seed_demo=_env_bool(_k("SEED_DEMO"), False),
        )


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    # A slot at or below this many free minutes is closed.
    close_threshold_minutes: int = 4
    # Weight of importance against minutes-until-due in the priority score.
    importance_weight: int = 10
    skip_elapsed_hours: bool = True


def _int_setting(db: DatabaseManager, key: str) -> int | None:
    raw = get_setting(db, key)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        _log.warning("ignoring non-integer setting %s=%r", key, raw)
        return None


def load_scheduler_config(db: DatabaseManager, base: SchedulerConfig | None = None) -> SchedulerConfig:
    cfg = base or SchedulerConfig()
    weight = _int_setting(db, IMPORTANCE_WEIGHT_KEY)
    threshold = _int_setting(db, CLOSE_THRESHOLD_KEY)
    if weight is not None:
        cfg = replace(cfg, importance_weight=weight)
    if threshold is not None and 0 <= threshold < SLOT_MINUTES:
        cfg = replace(cfg, close_threshold_minutes=threshold)
    return cfg


def save_scheduler_config(db: DatabaseManager, cfg: SchedulerConfig) -> None:
    set_setting(db, IMPORTANCE_WEIGHT_KEY, str(cfg.importance_weight))
    set_setting(db, CLOSE_THRESHOLD_KEY, str(cfg.close_threshold_minutes))


__all__ = [
    "CLOSE_THRESHOLD_KEY",
    "IMPORTANCE_WEIGHT_KEY",
    "PlannerSettings",
    "SchedulerConfig",
    "load_scheduler_config",
    "save_scheduler_config",
]
