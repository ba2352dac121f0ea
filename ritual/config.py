from datetime import date
from pathlib import Path

import yaml

RITUAL_DIR = Path.home() / ".ritual"
HABITS_PATH = RITUAL_DIR / "habits.txt"
STREAKS_PATH = RITUAL_DIR / "streaks.txt"
CONFIG_PATH = RITUAL_DIR / "config.yaml"
LOG_FILE = RITUAL_DIR / "ritual.log"
PID_FILE = RITUAL_DIR / "daemon.pid"

WORK_MINUTES_RANGE = (1, 120)
BREAK_MINUTES_RANGE = (1, 60)
DEFAULT_WORK_MINUTES = 25
DEFAULT_BREAK_MINUTES = 5
DEFAULT_POLL_SECONDS = 60
DEFAULT_RESET_HOUR = 3


class Config:
    """Single-instance config manager. Load once, cache in memory."""

    _instance: "Config | None" = None
    _data: dict[str, object]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = {}
            cls._instance._load()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance so the next access reloads from disk."""
        cls._instance = None

    def _load(self) -> None:
        """Load config from disk."""
        if not CONFIG_PATH.exists():
            self._data = {}
            return
        try:
            with CONFIG_PATH.open() as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            self._data = {}
            return
        self._data = loaded if isinstance(loaded, dict) else {}

    def _save(self) -> None:
        """Persist config to disk."""
        RITUAL_DIR.mkdir(parents=True, exist_ok=True)
        with CONFIG_PATH.open("w") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def get(self, key: str, default: object = None) -> object:
        """Get config value."""
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        """Set config value and persist."""
        self._data[key] = value
        self._save()


def _get_int(key: str, default: int, bounds: tuple[int, int] | None = None) -> int:
    val = Config().get(key, default)
    try:
        n = int(val)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return default
    if bounds and not bounds[0] <= n <= bounds[1]:
        return default
    return n


def get_work_minutes() -> int:
    return _get_int("work_minutes", DEFAULT_WORK_MINUTES, WORK_MINUTES_RANGE)


def set_work_minutes(minutes: int) -> None:
    Config().set("work_minutes", minutes)


def get_break_minutes() -> int:
    return _get_int("break_minutes", DEFAULT_BREAK_MINUTES, BREAK_MINUTES_RANGE)


def set_break_minutes(minutes: int) -> None:
    Config().set("break_minutes", minutes)


def get_poll_seconds() -> int:
    """Rollover polling interval. One minute is enough resolution for a date change."""
    return _get_int("rollover_poll_seconds", DEFAULT_POLL_SECONDS, (1, 3600))


def get_reset_hour() -> int:
    """Hour shown by the cosmetic 'next reset' countdown. Not the rollover trigger."""
    return _get_int("reset_hour", DEFAULT_RESET_HOUR, (0, 23))


def get_rollover_date() -> date | None:
    val = Config().get("rollover_date")
    if isinstance(val, date):
        return val
    if isinstance(val, str) and val:
        try:
            return date.fromisoformat(val)
        except ValueError:
            return None
    return None


def set_rollover_date(day: date) -> None:
    Config().set("rollover_date", day.isoformat())
