import dataclasses
from collections.abc import Callable
from pathlib import Path

from fncli import cli

from . import config
from .core.errors import MalformedRecord, PersistenceError
from .core.models import CompletionChanged, HabitEntry, HabitEvent, Removed, Renamed
from .lib.log import log
from .lib.records import SEP, read_records, write_records

__all__ = [
    "HabitStore",
    "has_line_break",
    "parse_habit_line",
]

Listener = Callable[[HabitEvent, list[HabitEntry]], None]
ErrorHook = Callable[[PersistenceError], None]


# ── domain ───────────────────────────────────────────────────────────────────


def parse_habit_line(line: str, lineno: int = 0) -> HabitEntry:
    """`<0|1>|<name>`. Everything after the first separator is the name."""
    flag, sep, name = line.partition(SEP)
    if not sep or not name:
        raise MalformedRecord(line, lineno)
    return HabitEntry(name=name, completed=flag == "1")


def format_habit_line(entry: HabitEntry) -> str:
    return f"{'1' if entry.completed else '0'}{SEP}{entry.name}"


def has_line_break(name: str) -> bool:
    return "\n" in name or "\r" in name


def _log_persistence_error(err: PersistenceError) -> None:
    log(f"[habits] {err}")


class HabitStore:
    """Ordered habit list, rewritten to disk in full after every mutation.

    Names are the identity key and are not forced unique; lookups act on the
    first entry with a matching name.
    """

    def __init__(self, path: Path | None = None, on_error: ErrorHook | None = None):
        self.path = path if path else config.HABITS_PATH
        self.on_error = on_error or _log_persistence_error
        self._entries: list[HabitEntry] = []
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    @property
    def entries(self) -> list[HabitEntry]:
        return [dataclasses.replace(e) for e in self._entries]

    def find(self, name: str) -> HabitEntry | None:
        entry = self._find(name)
        return dataclasses.replace(entry) if entry else None

    def _find(self, name: str) -> HabitEntry | None:
        return next((e for e in self._entries if e.name == name), None)

    def _emit(self, event: HabitEvent) -> None:
        snapshot = self.entries
        for listener in self._listeners:
            listener(event, snapshot)

    def add(self, name: str) -> HabitEntry | None:
        name = name.strip()
        if not name or has_line_break(name):
            return None
        entry = HabitEntry(name=name)
        self._entries.append(entry)
        self.save()
        return dataclasses.replace(entry)

    def rename(self, old: str, new: str) -> bool:
        new = new.strip()
        entry = self._find(old)
        if not new or has_line_break(new) or entry is None:
            return False
        if new == old:
            return True
        entry.name = new
        self.save()
        self._emit(Renamed(old=old, new=new))
        return True

    def set_completion(self, name: str, completed: bool) -> bool:
        entry = self._find(name)
        if entry is None:
            return False
        entry.completed = completed
        self.save()
        self._emit(CompletionChanged(name=name, completed=completed))
        return True

    def remove(self, name: str) -> bool:
        entry = self._find(name)
        if entry is None:
            return False
        self._entries.remove(entry)
        self.save()
        self._emit(Removed(name=name))
        return True

    def clear_completions(self) -> int:
        """Uncheck every entry with a single save. Streak listeners are not notified."""
        cleared = sum(1 for e in self._entries if e.completed)
        for e in self._entries:
            e.completed = False
        self.save()
        return cleared

    def load(self) -> "HabitStore":
        try:
            lines = read_records(self.path)
        except OSError as e:
            log(f"[habits] load failed, starting empty: {e}")
            self._entries = []
            return self
        entries: list[HabitEntry] = []
        for lineno, line in enumerate(lines, start=1):
            try:
                entries.append(parse_habit_line(line, lineno))
            except MalformedRecord as e:
                log(f"[habits] skipped {e}")
        self._entries = entries
        return self

    def save(self) -> bool:
        try:
            write_records(self.path, (format_habit_line(e) for e in self._entries))
        except OSError as e:
            self.on_error(PersistenceError(self.path, e))
            return False
        return True


# ── cli ──────────────────────────────────────────────────────────────────────


def _join(ref: list[str]) -> str:
    return " ".join(ref).strip()


@cli("ritual", flags={"name": []})
def add(name: list[str]) -> None:
    """Add a habit"""
    from .app import open_ritual

    view = open_ritual().add_habit(_join(name))
    print(f"□ {view.name}")


@cli("ritual")
def rename(old: str, new: str) -> None:
    """Rename a habit, carrying its streak"""
    from .app import open_ritual

    open_ritual().rename_habit(old, new)
    print(f"→ {new.strip()}")


@cli("ritual", flags={"name": []})
def rm(name: list[str]) -> None:
    """Delete a habit and its streak"""
    from .app import open_ritual

    ref = _join(name)
    open_ritual().delete_habit(ref)
    print(f"removed: {ref}")


@cli("ritual", flags={"name": []})
def check(name: list[str]) -> None:
    """Mark a habit done for today"""
    from .app import open_ritual
    from .lib.format import format_habit

    ref = _join(name)
    app = open_ritual()
    app.toggle_habit(ref, True)
    view = next(v for v in app.habits() if v.name == ref)
    print(format_habit(view))


@cli("ritual", flags={"name": []})
def uncheck(name: list[str]) -> None:
    """Clear today's checkmark (streaks are kept)"""
    from .app import open_ritual
    from .lib.format import format_habit

    ref = _join(name)
    app = open_ritual()
    app.toggle_habit(ref, False)
    view = next(v for v in app.habits() if v.name == ref)
    print(format_habit(view))


@cli("ritual")
def habits() -> None:
    """List habits with today's checkmarks and streaks"""
    from .app import open_ritual
    from .lib.format import format_habit

    views = open_ritual().habits()
    if not views:
        print("no habits yet")
        return
    for v in views:
        print(format_habit(v))
