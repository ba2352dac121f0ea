"""Pomodoro timer as a pure state machine.

`transition(state, event)` returns the next state plus the side effects the
driver must carry out. Nothing here touches a clock, so tests drive it with
plain `Tick()` events.
"""

import dataclasses
from collections.abc import Callable

from fncli import cli

from . import config
from .core.models import Phase, PomodoroState
from .lib.log import log

__all__ = [
    "Pause",
    "PhaseComplete",
    "PomodoroEngine",
    "SetBreak",
    "SetWork",
    "Start",
    "StartTicking",
    "Stop",
    "StopTicking",
    "Tick",
    "initial_state",
    "transition",
]


# ── events ───────────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class Start:
    pass


@dataclasses.dataclass(frozen=True)
class Pause:
    pass


@dataclasses.dataclass(frozen=True)
class Stop:
    pass


@dataclasses.dataclass(frozen=True)
class Tick:
    pass


@dataclasses.dataclass(frozen=True)
class SetWork:
    minutes: int


@dataclasses.dataclass(frozen=True)
class SetBreak:
    minutes: int


Event = Start | Pause | Stop | Tick | SetWork | SetBreak


# ── effects ──────────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class StartTicking:
    pass


@dataclasses.dataclass(frozen=True)
class StopTicking:
    pass


@dataclasses.dataclass(frozen=True)
class PhaseComplete:
    finished: Phase
    next: Phase


Effect = StartTicking | StopTicking | PhaseComplete


def _clamp(minutes: int, bounds: tuple[int, int]) -> int:
    return max(bounds[0], min(bounds[1], minutes))


def initial_state(
    work_minutes: int = config.DEFAULT_WORK_MINUTES,
    break_minutes: int = config.DEFAULT_BREAK_MINUTES,
) -> PomodoroState:
    work_minutes = _clamp(work_minutes, config.WORK_MINUTES_RANGE)
    break_minutes = _clamp(break_minutes, config.BREAK_MINUTES_RANGE)
    return PomodoroState(
        phase=Phase.WORK,
        remaining=work_minutes * 60,
        work_minutes=work_minutes,
        break_minutes=break_minutes,
    )


def _set_duration(state: PomodoroState, phase: Phase, minutes: int) -> PomodoroState:
    if phase is Phase.WORK:
        state = dataclasses.replace(state, work_minutes=_clamp(minutes, config.WORK_MINUTES_RANGE))
    else:
        state = dataclasses.replace(
            state, break_minutes=_clamp(minutes, config.BREAK_MINUTES_RANGE)
        )
    if state.phase is phase and not state.running:
        state = dataclasses.replace(state, remaining=state.minutes_for(phase) * 60)
    return state


def _tick(state: PomodoroState) -> tuple[PomodoroState, list[Effect]]:
    if not state.running:
        return state, []
    if not state.paused and state.remaining > 0:
        state = dataclasses.replace(state, remaining=state.remaining - 1)
    if state.remaining > 0:
        return state, []
    finished = state.phase
    nxt = finished.other
    state = dataclasses.replace(state, phase=nxt, remaining=state.minutes_for(nxt) * 60)
    return state, [PhaseComplete(finished=finished, next=nxt)]


def transition(state: PomodoroState, event: Event) -> tuple[PomodoroState, list[Effect]]:
    if isinstance(event, Start):
        if state.running:
            # ticking continues while paused, so starting again only resumes
            return dataclasses.replace(state, paused=False), []
        return dataclasses.replace(state, running=True, paused=False), [StartTicking()]
    if isinstance(event, Pause):
        return dataclasses.replace(state, paused=True), []
    if isinstance(event, Stop):
        effects: list[Effect] = [StopTicking()] if state.running else []
        stopped = dataclasses.replace(
            state,
            phase=Phase.WORK,
            remaining=state.work_minutes * 60,
            running=False,
            paused=False,
        )
        return stopped, effects
    if isinstance(event, Tick):
        return _tick(state)
    if isinstance(event, SetWork):
        return _set_duration(state, Phase.WORK, event.minutes), []
    if isinstance(event, SetBreak):
        return _set_duration(state, Phase.BREAK, event.minutes), []
    raise TypeError(f"unknown pomodoro event: {event!r}")


class PomodoroEngine:
    """Holds the current state and runs effects through registered callbacks."""

    def __init__(self, state: PomodoroState | None = None):
        self.state = state or initial_state()
        self._on_phase_complete: list[Callable[[PhaseComplete], None]] = []
        self._on_ticking: list[Callable[[bool], None]] = []

    def on_phase_complete(self, callback: Callable[[PhaseComplete], None]) -> None:
        self._on_phase_complete.append(callback)

    def on_ticking(self, callback: Callable[[bool], None]) -> None:
        """Called with True when the one-second tick should start and False when it should stop."""
        self._on_ticking.append(callback)

    def dispatch(self, event: Event) -> PomodoroState:
        self.state, effects = transition(self.state, event)
        for effect in effects:
            if isinstance(effect, PhaseComplete):
                log(f"[pomodoro] {effect.finished.value} done, {effect.next.value} next")
                for cb in self._on_phase_complete:
                    cb(effect)
            else:
                ticking = isinstance(effect, StartTicking)
                for tcb in self._on_ticking:
                    tcb(ticking)
        return self.state

    def start(self) -> PomodoroState:
        return self.dispatch(Start())

    def pause(self) -> PomodoroState:
        return self.dispatch(Pause())

    def stop(self) -> PomodoroState:
        return self.dispatch(Stop())

    def tick(self) -> PomodoroState:
        return self.dispatch(Tick())

    def set_work_minutes(self, minutes: int) -> PomodoroState:
        return self.dispatch(SetWork(minutes))

    def set_break_minutes(self, minutes: int) -> PomodoroState:
        return self.dispatch(SetBreak(minutes))


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("ritual pomodoro", name="run", default=True)
def pomodoro_run(work: int | None = None, break_: int | None = None) -> None:
    """Run the timer in the foreground (ctrl-c to stop)"""
    from .daemon import run_pomodoro

    run_pomodoro(work=work, break_=break_)


@cli("ritual pomodoro", name="set")
def pomodoro_set(work: int | None = None, break_: int | None = None) -> None:
    """Save default work/break minutes"""
    from .app import validate_break_minutes, validate_work_minutes

    if work is not None:
        config.set_work_minutes(validate_work_minutes(work))
    if break_ is not None:
        config.set_break_minutes(validate_break_minutes(break_))
    print(f"work {config.get_work_minutes()}m / break {config.get_break_minutes()}m")


@cli("ritual pomodoro", name="show")
def pomodoro_show() -> None:
    """Show saved work/break minutes"""
    print(f"work {config.get_work_minutes()}m / break {config.get_break_minutes()}m")
