"""Single-threaded cooperative scheduler.

Every periodic job runs on one timeline, one callback at a time, so the stores
need no locks. Due times advance by whole intervals from the first deadline
rather than from when a callback finished, so slow callbacks do not add drift.
"""

import dataclasses
import threading
import time
from collections.abc import Callable

from .log import log

__all__ = ["Timeline"]

MAX_CATCHUP = 60


@dataclasses.dataclass
class _Job:
    name: str
    interval: float
    fn: Callable[[], None]
    due: float
    enabled: bool = True


class Timeline:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._jobs: dict[str, _Job] = {}

    def every(self, name: str, interval: float, fn: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._jobs[name] = _Job(name, interval, fn, self._clock() + interval)

    def pause(self, name: str) -> None:
        if job := self._jobs.get(name):
            job.enabled = False

    def resume(self, name: str) -> None:
        """Re-enable a job; its next firing is one full interval from now."""
        if job := self._jobs.get(name):
            job.enabled = True
            job.due = self._clock() + job.interval

    def is_enabled(self, name: str) -> bool:
        job = self._jobs.get(name)
        return bool(job and job.enabled)

    def run_pending(self) -> int:
        """Fire every due job, oldest deadline first. Returns the number of callbacks run."""
        fired = 0
        now = self._clock()
        for job in sorted(self._jobs.values(), key=lambda j: j.due):
            missed = 0
            while job.enabled and job.due <= now:
                if missed >= MAX_CATCHUP:
                    behind = int((now - job.due) / job.interval)
                    log(f"[{job.name}] fell {behind} ticks behind, skipping")
                    job.due = now + job.interval
                    break
                job.due += job.interval
                missed += 1
                fired += 1
                try:
                    job.fn()
                except Exception as e:
                    log(f"[{job.name}] error: {e}")
        return fired

    def next_due(self) -> float | None:
        dues = [j.due for j in self._jobs.values() if j.enabled]
        return min(dues) if dues else None

    def run(self, stop: threading.Event) -> None:
        while not stop.is_set():
            self.run_pending()
            due = self.next_due()
            wait = 1.0 if due is None else max(0.0, due - self._clock())
            stop.wait(wait)
