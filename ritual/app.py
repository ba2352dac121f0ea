"""Command/observation surface the presentation layer binds to.

Input is validated here; the stores below only ever see trimmed, non-empty
names and in-range durations.
"""

from collections.abc import Callable
from datetime import date

from . import config
from .core.errors import NotFoundError, PersistenceError, ValidationError
from .core.models import HabitView, PomodoroState, StreakRecord
from .habits import HabitStore, has_line_break
from .lib import clock
from .lib.log import log
from .pomodoro import PhaseComplete, PomodoroEngine, initial_state
from .rollover import RolloverScheduler
from .streaks import StreakTracker

__all__ = [
    "Ritual",
    "open_ritual",
    "validate_break_minutes",
    "validate_work_minutes",
]


def _validate_minutes(label: str, minutes: int, bounds: tuple[int, int]) -> int:
    lo, hi = bounds
    if not lo <= minutes <= hi:
        raise ValidationError(f"{label} minutes must be between {lo} and {hi}, got {minutes}")
    return minutes


def validate_work_minutes(minutes: int) -> int:
    return _validate_minutes("work", minutes, config.WORK_MINUTES_RANGE)


def validate_break_minutes(minutes: int) -> int:
    return _validate_minutes("break", minutes, config.BREAK_MINUTES_RANGE)


def _require_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("habit name cannot be empty")
    if has_line_break(name):
        raise ValidationError("habit name cannot contain line breaks")
    return name


class Ritual:
    def __init__(
        self,
        habits: HabitStore,
        streaks: StreakTracker,
        pomodoro: PomodoroEngine | None = None,
        today: Callable[[], date] = clock.today,
        last_rollover: date | None = None,
        on_rollover: Callable[[date], None] | None = None,
    ):
        self.store = habits
        self.tracker = streaks
        self.engine = pomodoro or PomodoroEngine()
        self.store.subscribe(self.tracker.handle)
        self.rollover = RolloverScheduler(
            clear=self.store.clear_completions,
            today=today,
            last_date=last_rollover,
            on_observed=on_rollover,
        )

    # commands

    def add_habit(self, name: str) -> HabitView:
        entry = self.store.add(_require_name(name))
        if entry is None:
            raise ValidationError("habit name cannot be empty")
        return HabitView(entry.name, entry.completed, self.tracker.get(entry.name))

    def rename_habit(self, old: str, new: str) -> None:
        new = _require_name(new)
        if self.store.find(old) is None:
            raise NotFoundError(f"no habit named '{old}'")
        if old == new:
            return
        self.store.rename(old, new)

    def delete_habit(self, name: str) -> None:
        if not self.store.remove(name):
            raise NotFoundError(f"no habit named '{name}'")

    def toggle_habit(self, name: str, completed: bool) -> None:
        if not self.store.set_completion(name, completed):
            raise NotFoundError(f"no habit named '{name}'")

    def pomodoro_start(self) -> PomodoroState:
        return self.engine.start()

    def pomodoro_pause(self) -> PomodoroState:
        return self.engine.pause()

    def pomodoro_stop(self) -> PomodoroState:
        return self.engine.stop()

    def set_work_minutes(self, minutes: int) -> PomodoroState:
        return self.engine.set_work_minutes(validate_work_minutes(minutes))

    def set_break_minutes(self, minutes: int) -> PomodoroState:
        return self.engine.set_break_minutes(validate_break_minutes(minutes))

    # timeline

    def refresh(self) -> None:
        """Reload both stores from disk, picking up edits made by other processes."""
        self.store.load()
        self.tracker.load()

    def tick(self) -> PomodoroState:
        return self.engine.tick()

    def poll_rollover(self) -> bool:
        return self.rollover.poll()

    # observations

    def habits(self) -> list[HabitView]:
        return [
            HabitView(e.name, e.completed, self.tracker.get(e.name)) for e in self.store.entries
        ]

    def streaks(self) -> list[StreakRecord]:
        return self.tracker.records()

    @property
    def pomodoro(self) -> PomodoroState:
        return self.engine.state

    def on_phase_complete(self, callback: Callable[[PhaseComplete], None]) -> None:
        self.engine.on_phase_complete(callback)

    def on_streaks_changed(self, callback: Callable[[list[StreakRecord]], None]) -> None:
        self.tracker.subscribe(callback)


def _record_rollover(day: date) -> None:
    try:
        config.set_rollover_date(day)
    except OSError as e:
        log(f"[rollover] {PersistenceError(config.CONFIG_PATH, e)}")


def open_ritual() -> Ritual:
    """Load both stores from disk and apply any rollover missed while nothing was running."""
    app = Ritual(
        HabitStore(config.HABITS_PATH).load(),
        StreakTracker(config.STREAKS_PATH).load(),
        PomodoroEngine(initial_state(config.get_work_minutes(), config.get_break_minutes())),
        last_rollover=config.get_rollover_date(),
        on_rollover=_record_rollover,
    )
    app.poll_rollover()
    if config.get_rollover_date() is None:
        _record_rollover(app.rollover.state.last_date)
    return app
