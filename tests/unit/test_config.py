from datetime import date

from ritual import config


def test_defaults_without_file(tmp_ritual_dir):
    assert config.get_work_minutes() == 25
    assert config.get_break_minutes() == 5
    assert config.get_poll_seconds() == 60
    assert config.get_reset_hour() == 3
    assert config.get_rollover_date() is None


def test_set_persists_yaml(tmp_ritual_dir):
    config.set_work_minutes(50)
    config.set_break_minutes(10)
    config.Config.reset()

    assert config.get_work_minutes() == 50
    assert config.get_break_minutes() == 10
    assert "work_minutes: 50" in config.CONFIG_PATH.read_text()


def test_out_of_range_values_fall_back(tmp_ritual_dir):
    config.CONFIG_PATH.write_text("work_minutes: 500\nbreak_minutes: nope\nreset_hour: 30\n")
    assert config.get_work_minutes() == 25
    assert config.get_break_minutes() == 5
    assert config.get_reset_hour() == 3


def test_rollover_date_round_trip(tmp_ritual_dir):
    config.set_rollover_date(date(2026, 10, 19))
    config.Config.reset()
    assert config.get_rollover_date() == date(2026, 10, 19)


def test_unquoted_yaml_date_is_accepted(tmp_ritual_dir):
    config.CONFIG_PATH.write_text("rollover_date: 2026-10-19\n")
    assert config.get_rollover_date() == date(2026, 10, 19)


def test_broken_yaml_loads_empty(tmp_ritual_dir):
    config.CONFIG_PATH.write_text("work_minutes: [unterminated\n")
    assert config.get_work_minutes() == 25
