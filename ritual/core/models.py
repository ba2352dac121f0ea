import dataclasses
from datetime import date
from enum import Enum


@dataclasses.dataclass
class HabitEntry:
    name: str
    completed: bool = False


@dataclasses.dataclass
class StreakRecord:
    habit_key: str
    streak: int = 0
    last_completed: date | None = None


@dataclasses.dataclass(frozen=True)
class HabitView:
    name: str
    completed: bool
    streak: int


class Phase(Enum):
    WORK = "work"
    BREAK = "break"

    @property
    def other(self) -> "Phase":
        return Phase.BREAK if self is Phase.WORK else Phase.WORK


@dataclasses.dataclass(frozen=True)
class PomodoroState:
    phase: Phase = Phase.WORK
    remaining: int = 25 * 60
    running: bool = False
    paused: bool = False
    work_minutes: int = 25
    break_minutes: int = 5

    def minutes_for(self, phase: Phase) -> int:
        return self.work_minutes if phase is Phase.WORK else self.break_minutes


# ── habit store events ───────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class Renamed:
    old: str
    new: str


@dataclasses.dataclass(frozen=True)
class Removed:
    name: str


@dataclasses.dataclass(frozen=True)
class CompletionChanged:
    name: str
    completed: bool


HabitEvent = Renamed | Removed | CompletionChanged
