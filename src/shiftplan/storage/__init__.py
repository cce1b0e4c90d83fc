# shiftplan/storage - SQLite persistence
from .store import DEFAULT_DB_PATH, ScheduleStore

__all__ = ["ScheduleStore", "DEFAULT_DB_PATH"]
