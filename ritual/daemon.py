import os
import signal
import sys
import threading
from typing import Any

from fncli import cli

from . import config
from .app import Ritual, open_ritual
from .lib.errors import echo
from .lib.format import format_pomodoro
from .lib.log import log
from .lib.timeline import Timeline
from .pomodoro import PhaseComplete

TICK_SECONDS = 1.0


def _install_stop_handlers(stop: threading.Event) -> None:
    def handle_signal(signum, frame):
        log("shutdown signal received")
        stop.set()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)


def build_timeline(app: Ritual, timeline: Timeline | None = None) -> Timeline:
    """Rollover polling plus a pomodoro tick that is only enabled while the timer runs."""
    timeline = timeline or Timeline()

    def _poll() -> None:
        app.refresh()
        config.Config.reset()
        if (last := config.get_rollover_date()) is not None:
            app.rollover.observe(last)
        app.poll_rollover()

    timeline.every("rollover", config.get_poll_seconds(), _poll)
    timeline.every("pomodoro", TICK_SECONDS, app.tick)
    timeline.pause("pomodoro")

    def _ticking(on: bool) -> None:
        if on:
            timeline.resume("pomodoro")
        else:
            timeline.pause("pomodoro")

    app.engine.on_ticking(_ticking)
    return timeline


def _bell(done: PhaseComplete) -> None:
    sys.stdout.write("\a")
    sys.stdout.flush()


def _redraw(app: Ritual) -> None:
    sys.stdout.write(f"\r\033[K{format_pomodoro(app.pomodoro)}")
    sys.stdout.flush()


def run_pomodoro(work: int | None = None, break_: int | None = None) -> None:
    app = open_ritual()
    if work is not None:
        app.set_work_minutes(work)
    if break_ is not None:
        app.set_break_minutes(break_)

    stop = threading.Event()
    _install_stop_handlers(stop)
    timeline = build_timeline(app)
    app.on_phase_complete(_bell)

    state = app.pomodoro
    log(f"[pomodoro] started work={state.work_minutes}m break={state.break_minutes}m")
    app.pomodoro_start()
    timeline.every("display", TICK_SECONDS, lambda: _redraw(app))
    _redraw(app)
    timeline.run(stop)
    app.pomodoro_stop()
    sys.stdout.write("\n")
    log("[pomodoro] stopped")


def run() -> None:
    """Foreground daemon: keeps the daily rollover ticking while no UI is open."""
    stop = threading.Event()
    _install_stop_handlers(stop)
    config.RITUAL_DIR.mkdir(parents=True, exist_ok=True)
    try:
        config.PID_FILE.write_text(str(os.getpid()))
        app = open_ritual()
        timeline = build_timeline(app)

        log(f"daemon started (PID {os.getpid()}) poll={config.get_poll_seconds()}s")
        sys.stdout.write(f"ritual daemon started (PID {os.getpid()})\n")
        timeline.run(stop)
    finally:
        config.PID_FILE.unlink(missing_ok=True)
        log("daemon stopped")


def get_pid() -> int | None:
    if not config.PID_FILE.exists():
        return None
    try:
        return int(config.PID_FILE.read_text().strip())
    except (ValueError, FileNotFoundError):
        return None


def is_running() -> bool:
    pid = get_pid()
    if not pid:
        return False
    try:
        os.kill(pid, 0)
        return True
    except ProcessLookupError:
        config.PID_FILE.unlink(missing_ok=True)
        return False
    except PermissionError:
        return True


def status() -> dict[str, Any]:
    pid = get_pid()
    running = is_running()
    result: dict[str, Any] = {
        "running": running,
        "pid": pid if running else None,
        "last_rollover": config.get_rollover_date(),
        "log_file": str(config.LOG_FILE),
    }
    if config.LOG_FILE.exists():
        lines = config.LOG_FILE.read_text().strip().split("\n")
        result["last_log"] = lines[-10:]
    return result


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("ritual daemon", name="run")
def daemon_run() -> None:
    """Run the rollover daemon in the foreground"""
    if is_running():
        print(f"already running (pid {get_pid()})")
        return
    run()


@cli("ritual daemon", name="status", default=True)
def daemon_status() -> None:
    """Show daemon status"""
    info = status()
    last = info["last_rollover"]
    last_str = last.isoformat() if last else "never"
    if info["running"]:
        echo(f"running (pid {info['pid']}) | last rollover: {last_str}")
    else:
        echo(f"stopped | last rollover: {last_str}")
    for line in info.get("last_log", []):
        echo(f"  {line}")
