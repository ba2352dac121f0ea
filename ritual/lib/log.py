import contextlib
import time

from ritual import config

__all__ = ["log"]


def log(msg: str) -> None:
    """Append a timestamped line to the ritual log. A failing log write never raises."""
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    entry = f"{timestamp} {msg}\n"
    with contextlib.suppress(OSError):
        config.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with config.LOG_FILE.open("a") as f:
            f.write(entry)
