from datetime import timedelta

from ritual.core.models import HabitView, Phase, PomodoroState, StreakRecord

from . import ansi

__all__ = [
    "format_clock",
    "format_countdown",
    "format_habit",
    "format_pomodoro",
    "format_streak_table",
]


def format_clock(seconds: int) -> str:
    """mm:ss; minutes are not wrapped into hours."""
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins:02d}:{secs:02d}"


def format_countdown(remaining: timedelta) -> str:
    total_minutes = int(remaining.total_seconds()) // 60
    hours, minutes = divmod(total_minutes, 60)
    text = f"next reset in {hours}h {minutes:02d}m"
    return ansi.orange(text) if total_minutes <= 60 else ansi.gray(text)


def format_habit(view: HabitView) -> str:
    check = ansi.green("✓") if view.completed else "□"
    streak = ansi.dim(f"streak {view.streak}") if view.streak else ""
    name = ansi.gray(view.name) if view.completed else view.name
    return f"  {check} {name}  {streak}".rstrip()


def format_pomodoro(state: PomodoroState) -> str:
    label = "work" if state.phase is Phase.WORK else "break"
    clock = format_clock(state.remaining)
    clock = ansi.green(clock) if state.phase is Phase.BREAK else ansi.white(clock)
    flag = ""
    if state.paused:
        flag = ansi.yellow("  paused")
    elif not state.running:
        flag = ansi.dim("  stopped")
    return f"{label} {clock}{flag}"


def format_streak_table(records: list[StreakRecord]) -> str:
    if not records:
        return "no streaks yet"
    width = max(5, *(len(r.habit_key) for r in records))
    lines = [ansi.bold(f"{'habit':<{width}}  streak  last")]
    for r in sorted(records, key=lambda r: (-r.streak, r.habit_key)):
        last = r.last_completed.isoformat() if r.last_completed else "-"
        lines.append(f"{r.habit_key:<{width}}  {r.streak:>6}  {ansi.dim(last)}")
    return "\n".join(lines)
