from datetime import date, timedelta

import pytest

from ritual import config
from ritual.core.errors import MalformedRecord
from ritual.core.models import HabitEntry, StreakRecord
from ritual.habits import HabitStore
from ritual.streaks import StreakTracker, parse_streak_line

TODAY = date(2026, 10, 19)


@pytest.fixture
def wired(tmp_ritual_dir, clock):
    store = HabitStore()
    tracker = StreakTracker(today=clock)
    store.subscribe(tracker.handle)
    return store, tracker


def test_partial_completion_does_not_count(wired):
    store, tracker = wired
    store.add("Read")
    store.add("Exercise")
    store.set_completion("Read", True)

    assert tracker.records() == []
    assert not config.STREAKS_PATH.exists()


def test_all_completed_increments_every_habit(wired):
    store, tracker = wired
    store.add("Read")
    store.add("Exercise")
    store.set_completion("Read", True)
    store.set_completion("Exercise", True)

    assert tracker.get("Read") == 1
    assert tracker.get("Exercise") == 1
    assert tracker.record("Read") == StreakRecord("Read", 1, TODAY)
    assert tracker.record("Exercise") == StreakRecord("Exercise", 1, TODAY)


def test_repeat_check_same_day_is_noop(wired):
    store, tracker = wired
    store.add("Read")
    store.add("Exercise")
    store.set_completion("Read", True)
    store.set_completion("Exercise", True)
    store.set_completion("Read", True)

    assert tracker.get("Read") == 1
    assert tracker.get("Exercise") == 1


def test_rapid_toggle_never_double_counts(wired):
    store, tracker = wired
    store.add("Read")
    store.set_completion("Read", True)
    for _ in range(5):
        store.set_completion("Read", False)
        store.set_completion("Read", True)

    assert tracker.get("Read") == 1


def test_uncheck_never_decrements(wired):
    store, tracker = wired
    store.add("Read")
    store.add("Exercise")
    store.set_completion("Read", True)
    store.set_completion("Exercise", True)
    store.set_completion("Exercise", False)

    assert tracker.get("Read") == 1
    assert tracker.get("Exercise") == 1


def test_next_day_increments_again(wired, clock):
    store, tracker = wired
    store.add("Read")
    store.set_completion("Read", True)
    clock.day = TODAY + timedelta(days=1)
    store.set_completion("Read", False)
    store.set_completion("Read", True)

    assert tracker.record("Read") == StreakRecord("Read", 2, TODAY + timedelta(days=1))


def test_day_guard_spans_all_habits(wired):
    store, tracker = wired
    store.add("Read")
    store.set_completion("Read", True)
    store.add("Exercise")
    store.set_completion("Exercise", True)

    assert tracker.get("Read") == 1
    assert tracker.get("Exercise") == 0


def test_empty_list_does_nothing(tmp_ritual_dir, clock):
    tracker = StreakTracker(today=clock)
    assert tracker.evaluate([]) is False


def test_evaluate_direct(tmp_ritual_dir, clock):
    tracker = StreakTracker(today=clock)
    assert tracker.evaluate([HabitEntry("Read", True), HabitEntry("Walk", False)]) is False
    assert tracker.evaluate([HabitEntry("Read", True), HabitEntry("Walk", True)]) is True
    assert tracker.evaluate([HabitEntry("Read", True), HabitEntry("Walk", True)]) is False


def test_duplicate_names_count_once_per_day(tmp_ritual_dir, clock):
    tracker = StreakTracker(today=clock)
    tracker.evaluate([HabitEntry("Read", True), HabitEntry("Read", True)])
    assert tracker.get("Read") == 1


def test_rename_moves_record(wired):
    store, tracker = wired
    store.add("Read")
    store.set_completion("Read", True)
    store.rename("Read", "Study")

    assert tracker.get("Read") == 0
    assert tracker.record("Study") == StreakRecord("Study", 1, TODAY)
    assert config.STREAKS_PATH.read_text() == "Study|1|2026-10-19\n"


def test_rename_untracked_is_noop(wired):
    store, tracker = wired
    store.add("Read")
    store.rename("Read", "Study")
    assert tracker.records() == []


def test_migrate_overwrites_existing_key(tmp_ritual_dir, clock):
    tracker = StreakTracker(today=clock)
    config.STREAKS_PATH.write_text("Read|4|2026-10-18\nStudy|9|2026-10-10\n")
    tracker.load()
    tracker.migrate("Read", "Study")

    assert [r.habit_key for r in tracker.records()] == ["Study"]
    assert tracker.record("Study") == StreakRecord("Study", 4, date(2026, 10, 18))
    assert "overwrote streak 9" in config.LOG_FILE.read_text()


def test_remove_drops_record(wired):
    store, tracker = wired
    store.add("Read")
    store.set_completion("Read", True)
    store.remove("Read")

    assert tracker.records() == []
    assert config.STREAKS_PATH.read_text() == ""


def test_observers_notified_on_increment(wired):
    store, tracker = wired
    seen = []
    tracker.subscribe(lambda records: seen.append([r.streak for r in records]))
    store.add("Read")
    store.set_completion("Read", True)
    store.set_completion("Read", True)

    assert seen == [[1]]


def test_round_trip(tmp_ritual_dir, clock):
    tracker = StreakTracker(today=clock)
    tracker.evaluate([HabitEntry("Read", True), HabitEntry("a|b", True)])

    loaded = StreakTracker(today=clock).load()
    assert loaded.records() == [
        StreakRecord("Read", 1, TODAY),
        StreakRecord("a|b", 1, TODAY),
    ]


def test_load_tolerates_bad_fields(tmp_ritual_dir):
    config.STREAKS_PATH.write_text("Read|x|2026-10-18\nWalk|3|not-a-date\nSolo\nYoga|2|\n")
    tracker = StreakTracker().load()

    assert tracker.records() == [
        StreakRecord("Read", 0, date(2026, 10, 18)),
        StreakRecord("Walk", 3, None),
        StreakRecord("Yoga", 2, None),
    ]


def test_load_skips_undecodable_bytes(tmp_ritual_dir):
    config.STREAKS_PATH.write_bytes(b"Read|2|2026-10-18\n\xff\xfe|5|\nWalk|1|\n")
    tracker = StreakTracker().load()

    assert tracker.records() == [
        StreakRecord("Read", 2, date(2026, 10, 18)),
        StreakRecord("Walk", 1, None),
    ]


def test_save_failure_keeps_memory(tmp_ritual_dir, clock):
    errors = []
    blocker = tmp_ritual_dir / "blocker"
    blocker.write_text("")
    tracker = StreakTracker(path=blocker / "streaks.txt", today=clock, on_error=errors.append)

    assert tracker.evaluate([HabitEntry("Read", True)]) is True
    assert tracker.get("Read") == 1
    assert len(errors) == 1


def test_parse_streak_line():
    assert parse_streak_line("Read|5|2026-01-02") == StreakRecord("Read", 5, date(2026, 1, 2))
    assert parse_streak_line("Read|5") == StreakRecord("Read", 5, None)
    with pytest.raises(MalformedRecord):
        parse_streak_line("Read")
    with pytest.raises(MalformedRecord):
        parse_streak_line("|5|")
