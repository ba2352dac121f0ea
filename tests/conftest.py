import dataclasses
import io
from contextlib import redirect_stderr, redirect_stdout
from datetime import date
from pathlib import Path

import fncli
import pytest

import ritual
from ritual import config
from ritual.core.errors import RitualError
from ritual.lib import ansi

fncli.autodiscover(Path(ritual.__file__).parent, "ritual")


@dataclasses.dataclass
class Result:
    exit_code: int
    stdout: str
    stderr: str


class FnCLIRunner:
    def invoke(self, args: list[str]) -> Result:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            try:
                code = fncli.dispatch(["ritual", *args]) or 0
            except RitualError as e:
                err.write(f"{e}\n")
                code = 1
            except SystemExit as e:
                code = e.code if isinstance(e.code, int) else 1
        return Result(code, out.getvalue(), err.getvalue())


class FakeClock:
    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day


@pytest.fixture
def tmp_ritual_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "RITUAL_DIR", tmp_path)
    monkeypatch.setattr(config, "HABITS_PATH", tmp_path / "habits.txt")
    monkeypatch.setattr(config, "STREAKS_PATH", tmp_path / "streaks.txt")
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "config.yaml")
    monkeypatch.setattr(config, "LOG_FILE", tmp_path / "ritual.log")
    monkeypatch.setattr(config, "PID_FILE", tmp_path / "daemon.pid")
    config.Config.reset()
    ansi.use(ansi.PLAIN)
    yield tmp_path
    config.Config.reset()
    ansi.use(ansi.DEFAULT)


@pytest.fixture
def clock():
    return FakeClock(date(2026, 10, 19))
