"""Flat `|`-delimited record files.

One record per line, no header, newline terminated. Writers replace the whole
file through a temp file in the same directory so a crash mid-write leaves the
previous version intact.
"""

import contextlib
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from .log import log

__all__ = ["SEP", "read_records", "write_records"]

SEP = "|"


def read_records(path: Path) -> list[str]:
    """Non-empty lines of `path`. Missing file reads as empty; other OSErrors propagate.

    Lines are decoded one at a time; a line that is not valid UTF-8 is logged
    and skipped.
    """
    if not path.exists():
        return []
    lines: list[str] = []
    for lineno, raw in enumerate(path.read_bytes().splitlines(), start=1):
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError:
            log(f"[records] skipped undecodable line {lineno} in {path.name}")
            continue
        if line.strip():
            lines.append(line)
    return lines



def write_records(path: Path, lines: Iterable[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp)
        raise
