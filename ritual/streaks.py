import dataclasses
from collections.abc import Callable
from datetime import date
from pathlib import Path

from fncli import cli

from . import config
from .core.errors import MalformedRecord, PersistenceError
from .core.models import CompletionChanged, HabitEntry, HabitEvent, Removed, Renamed, StreakRecord
from .lib import clock
from .lib.log import log
from .lib.records import SEP, read_records, write_records

__all__ = [
    "StreakTracker",
    "parse_streak_line",
]

Observer = Callable[[list[StreakRecord]], None]
ErrorHook = Callable[[PersistenceError], None]


# ── domain ───────────────────────────────────────────────────────────────────


def parse_streak_line(line: str, lineno: int = 0) -> StreakRecord:
    """`<name>|<count>|<date or empty>`, split from the right so names may contain `|`.

    A bad count reads as 0 and a bad date as never completed.
    """
    parts = line.rsplit(SEP, 2)
    if len(parts) < 2 or not parts[0]:
        raise MalformedRecord(line, lineno)
    if len(parts) == 2:
        name, raw_count, raw_date = parts[0], parts[1], ""
    else:
        name, raw_count, raw_date = parts
    try:
        count = max(int(raw_count), 0)
    except ValueError:
        count = 0
    last: date | None = None
    if raw_date:
        try:
            last = date.fromisoformat(raw_date)
        except ValueError:
            last = None
    return StreakRecord(habit_key=name, streak=count, last_completed=last)


def format_streak_line(record: StreakRecord) -> str:
    last = record.last_completed.isoformat() if record.last_completed else ""
    return f"{record.habit_key}{SEP}{record.streak}{SEP}{last}"


def _log_persistence_error(err: PersistenceError) -> None:
    log(f"[streaks] {err}")


class StreakTracker:
    """Streak records keyed by habit name.

    A streak only advances on an "all habits done" event, at most once per
    calendar day for the whole list. Unchecking never decrements.
    """

    def __init__(
        self,
        path: Path | None = None,
        today: Callable[[], date] = clock.today,
        on_error: ErrorHook | None = None,
    ):
        self.path = path if path else config.STREAKS_PATH
        self.today = today
        self.on_error = on_error or _log_persistence_error
        self._records: dict[str, StreakRecord] = {}
        self._observers: list[Observer] = []

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def get(self, key: str) -> int:
        record = self._records.get(key)
        return record.streak if record else 0

    def record(self, key: str) -> StreakRecord | None:
        record = self._records.get(key)
        return dataclasses.replace(record) if record else None

    def records(self) -> list[StreakRecord]:
        return [dataclasses.replace(r) for r in self._records.values()]

    def counted_today(self, today: date | None = None) -> bool:
        day = today or self.today()
        return any(r.last_completed == day for r in self._records.values())

    def handle(self, event: HabitEvent, entries: list[HabitEntry]) -> None:
        """HabitStore listener."""
        if isinstance(event, CompletionChanged):
            self.evaluate(entries)
        elif isinstance(event, Renamed):
            self.migrate(event.old, event.new)
        elif isinstance(event, Removed):
            self.drop(event.name)

    def evaluate(self, entries: list[HabitEntry]) -> bool:
        """Apply the day's increment if every habit is checked. Returns True when streaks moved."""
        if not entries:
            return False
        if not all(e.completed for e in entries):
            return False
        today = self.today()
        if self.counted_today(today):
            return False
        for key in dict.fromkeys(e.name for e in entries):
            record = self._records.setdefault(key, StreakRecord(habit_key=key))
            record.streak += 1
            record.last_completed = today
        self.save()
        log(f"[streaks] all {len(entries)} habits done on {today.isoformat()}")
        self._notify()
        return True

    def migrate(self, old: str, new: str) -> None:
        if old == new:
            return
        record = self._records.pop(old, None)
        if record is None:
            return
        if new in self._records:
            overwritten = self._records[new].streak
            log(f"[streaks] rename '{old}' -> '{new}' overwrote streak {overwritten}")
        record.habit_key = new
        self._records[new] = record
        self.save()
        self._notify()

    def drop(self, key: str) -> None:
        if self._records.pop(key, None) is None:
            return
        self.save()
        self._notify()

    def _notify(self) -> None:
        snapshot = self.records()
        for observer in self._observers:
            observer(snapshot)

    def load(self) -> "StreakTracker":
        try:
            lines = read_records(self.path)
        except OSError as e:
            log(f"[streaks] load failed, starting empty: {e}")
            self._records = {}
            return self
        records: dict[str, StreakRecord] = {}
        for lineno, line in enumerate(lines, start=1):
            try:
                record = parse_streak_line(line, lineno)
            except MalformedRecord as e:
                log(f"[streaks] skipped {e}")
                continue
            records[record.habit_key] = record
        self._records = records
        return self

    def save(self) -> bool:
        try:
            write_records(self.path, (format_streak_line(r) for r in self._records.values()))
        except OSError as e:
            self.on_error(PersistenceError(self.path, e))
            return False
        return True


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("ritual")
def stats() -> None:
    """Show the streak table"""
    from .app import open_ritual
    from .lib.format import format_streak_table

    print(format_streak_table(open_ritual().streaks()))
