# tests/test_edits_validate.py

from __future__ import annotations

from datetime import datetime

import pytest

from gist_planner.core.errors import TaskNotFoundError, ValidationError
from gist_planner.planner import edits
from gist_planner.planner.models import Repeat, Weekday
from gist_planner.planner.validate import (
    TaskDraft,
    format_duration,
    parse_datetime,
    parse_duration,
    parse_repeat,
    parse_weekday,
)

from .fakes import make_task


@pytest.mark.parametrize(
    ("text", "expected"),
    [("90", 90), ("1:30", 90), ("01:05", 65), ("0", 0), ("", None), (None, None)],
)
def test_parse_duration(text, expected) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["-5", "abc", "1:75", "1:xx"])
def test_parse_duration_rejects_bad_input(text) -> None:
    with pytest.raises(ValidationError):
        parse_duration(text)


def test_format_duration() -> None:
    assert [format_duration(m) for m in (90, 60, 45, 0, None)] == ["1h 30m", "1h", "45m", "", ""]


def test_parse_datetime_formats() -> None:
    assert parse_datetime("2024-06-03 09:30") == datetime(2024, 6, 3, 9, 30)
    assert parse_datetime("2024-06-03T09:30") == datetime(2024, 6, 3, 9, 30)
    assert parse_datetime("2024-06-03") == datetime(2024, 6, 3)
    assert parse_datetime("  ") is None
    with pytest.raises(ValidationError):
        parse_datetime("June 3rd")


def test_parse_repeat_and_weekday() -> None:
    assert parse_repeat("Weekly") is Repeat.WEEKLY
    assert parse_repeat("") is Repeat.NONE
    assert parse_weekday("tuesday") is Weekday.TUE
    assert parse_weekday("") is None
    with pytest.raises(ValidationError):
        parse_repeat("monthly")
    with pytest.raises(ValidationError):
        parse_weekday("someday")


@pytest.mark.parametrize(
    "draft",
    [
        TaskDraft(title="   "),
        TaskDraft(title="x", duration_min=-1),
        TaskDraft(title="x", repeat=Repeat.DAILY),
        TaskDraft(
            title="x",
            start_at=datetime(2024, 6, 3, 9),
            repeat=Repeat.DAILY,
            repeat_until=datetime(2024, 6, 1),
        ),
    ],
)
def test_draft_validation_rejects(draft) -> None:
    with pytest.raises(ValidationError):
        draft.validate()


def test_new_task_sets_timestamps_and_done_flag() -> None:
    dated = edits.new_task(
        TaskDraft(title="  Dentist ", start_at=datetime(2024, 6, 3, 9)),
        now_ms=500,
        task_id="d1",
    )
    assert (dated.id, dated.title, dated.created_at, dated.updated_at) == ("d1", "Dentist", 500, 500)
    assert dated.done is False

    recurring = edits.new_task(
        TaskDraft(title="Gym", start_at=datetime(2024, 6, 3, 7), repeat=Repeat.WEEKLY),
        now_ms=500,
        task_id="g1",
    )
    assert recurring.done is None
    assert recurring.completion == {}

    undated = edits.new_task(TaskDraft(title="Bins", day=Weekday.TUE), now_ms=500, task_id="b1")
    assert undated.day is Weekday.TUE


def test_add_rejects_duplicate_id() -> None:
    tasks = [make_task("a")]
    with pytest.raises(ValidationError):
        edits.add_task(tasks, make_task("a"))
    assert [t.id for t in edits.add_task(tasks, make_task("b"))] == ["a", "b"]


def test_update_bumps_updated_at_and_keeps_identity() -> None:
    tasks = [make_task("a", created_at=100)]

    out = edits.update_task(tasks, "a", {"title": " renamed ", "repeat": "none"}, now_ms=900)

    assert out[0].title == "renamed"
    assert out[0].created_at == 100
    assert out[0].updated_at == 900
    # input list untouched
    assert tasks[0].title == "task a"


def test_update_rejects_unknown_or_invalid_fields() -> None:
    tasks = [make_task("a")]
    with pytest.raises(ValidationError):
        edits.update_task(tasks, "a", {"created_at": 5}, now_ms=1)
    with pytest.raises(ValidationError):
        edits.update_task(tasks, "a", {"title": ""}, now_ms=1)
    with pytest.raises(ValidationError):
        edits.update_task(tasks, "a", {"repeat": "daily"}, now_ms=1)
    with pytest.raises(TaskNotFoundError):
        edits.update_task(tasks, "zzz", {"title": "x"}, now_ms=1)


def test_remove_and_missing_task() -> None:
    tasks = [make_task("a"), make_task("b")]
    assert [t.id for t in edits.remove_task(tasks, "a")] == ["b"]
    with pytest.raises(TaskNotFoundError) as exc:
        edits.remove_task(tasks, "zzz")
    assert exc.value.task_id == "zzz"


def test_toggle_occurrence_marks_only_that_occurrence() -> None:
    gym = make_task("g", start_at=datetime(2024, 6, 3, 7), repeat=Repeat.WEEKLY)

    out = edits.toggle_occurrence([gym], "g", datetime(2024, 6, 10, 7), True, now_ms=77)

    assert out[0].completion == {"weekly:2024-06-10T07:00": True}
    assert out[0].updated_at == 77


def test_exclude_occurrence() -> None:
    daily = make_task("d", start_at=datetime(2024, 6, 3, 8), repeat=Repeat.DAILY)
    once = make_task("o", start_at=datetime(2024, 6, 3, 8))

    out = edits.exclude_occurrence([daily, once], "d", datetime(2024, 6, 5, 8), now_ms=9)
    assert out[0].exclude_dates == frozenset({"2024-06-05"})
    assert out[0].updated_at == 9

    out = edits.exclude_occurrence(out, "o", datetime(2024, 6, 3, 8), now_ms=10)
    assert [t.id for t in out] == ["d"]
