"""Daily rollover: clear checkmarks when the polled calendar date changes.

The trigger is any date change seen by polling, not a fixed hour. The 03:00
countdown below is display only and can disagree with when the reset
actually happens.
"""

import dataclasses
from collections.abc import Callable
from datetime import date, datetime, timedelta

from fncli import cli

from . import config
from .lib import clock
from .lib.log import log

__all__ = [
    "ClearCompletions",
    "RolloverScheduler",
    "RolloverState",
    "check",
    "next_reset",
]


@dataclasses.dataclass(frozen=True)
class RolloverState:
    last_date: date


@dataclasses.dataclass(frozen=True)
class ClearCompletions:
    day: date


def check(state: RolloverState, today: date) -> tuple[RolloverState, list[ClearCompletions]]:
    if today == state.last_date:
        return state, []
    return RolloverState(last_date=today), [ClearCompletions(day=today)]


class RolloverScheduler:
    """Drives `check` from a periodic poll and applies its effects to the habit store."""

    def __init__(
        self,
        clear: Callable[[], int],
        today: Callable[[], date] = clock.today,
        last_date: date | None = None,
        on_observed: Callable[[date], None] | None = None,
    ):
        self._clear = clear
        self._today = today
        self._on_observed = on_observed
        self.state = RolloverState(last_date=last_date or today())

    def observe(self, day: date) -> None:
        """Adopt a date already rolled over by another process."""
        self.state = RolloverState(last_date=day)

    def poll(self) -> bool:
        """One polling step. Returns True when a rollover happened."""
        self.state, effects = check(self.state, self._today())
        for effect in effects:
            cleared = self._clear()
            log(f"[rollover] new day {effect.day.isoformat()}, cleared {cleared} checkmark(s)")
            if self._on_observed:
                self._on_observed(effect.day)
        return bool(effects)


def next_reset(now: datetime, hour: int = config.DEFAULT_RESET_HOUR) -> datetime:
    reset = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if now >= reset:
        reset += timedelta(days=1)
    return reset


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("ritual")
def reset() -> None:
    """Show time until the next nightly reset"""
    from .lib.format import format_countdown

    now = clock.now()
    print(format_countdown(next_reset(now, config.get_reset_hour()) - now))
