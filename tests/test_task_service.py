from __future__ import annotations

import json

import pytest

from darsino.domain.entities import AppState, JalaliDate, ReviewGapConfig
from darsino.domain.enums import (
    DateOption,
    StudyDateMode,
    TaskCategory,
    TaskPriority,
    Theme,
    TimeFormat,
    WeekDay,
)
from darsino.domain.errors import DuplicateTaskError, TaskValidationError
from darsino.domain.filters import TaskFilters
from darsino.services.task_service import TaskService


class FakeRepo:
    def __init__(self, data: dict | None = None) -> None:
        self.data: dict = dict(data or {})

    def get(self, key: str):
        return self.data.get(key)

    def set(self, key: str, value) -> bool:
        # Mirror the JSON round trip of the real store.
        self.data[key] = json.loads(json.dumps(value))
        return True

    def clear(self) -> None:
        self.data.clear()


def make_service(**state) -> tuple[TaskService, FakeRepo]:
    repo = FakeRepo()
    return TaskService(repo, AppState(**state)), repo


def study(title: str = "Chapter 1", **extra) -> dict:
    return {"title": title, "category": "study", "priority": "high", **extra}


def test_study_task_files_three_reviews() -> None:
    service, repo = make_service()

    task = service.add_task(study())

    assert [t.id for t in service.state.tasks["1403-01-01"]] == [task.id]
    for day, stage in ((2, 1), (4, 2), (8, 3)):
        (review,) = service.state.tasks[f"1403-01-{day:02d}"]
        assert review.review_of == task.id
        assert review.review_stage == stage
        assert review.checksum
    assert set(repo.data["tasks"]) == {"1403-01-01", "1403-01-02", "1403-01-04", "1403-01-08"}


def test_next_day_study_mode_shifts_reviews() -> None:
    service, _ = make_service()
    service.update_review_settings(1, 3, 7, study_date_mode=StudyDateMode.NEXT_DAY)

    service.add_task(study())

    assert sorted(service.state.tasks) == ["1403-01-01", "1403-01-03", "1403-01-05", "1403-01-09"]


def test_custom_gaps_are_used() -> None:
    service, _ = make_service()
    service.update_review_settings(2, 10, 30)

    service.add_task(study(), DateOption.CUSTOM, (25, 6, 1403))

    assert sorted(service.state.tasks) == ["1403-06-25", "1403-06-27", "1403-07-04", "1403-07-24"]


def test_general_task_has_no_reviews() -> None:
    service, _ = make_service()

    service.add_task({"title": "Groceries"})

    assert list(service.state.tasks) == ["1403-01-01"]
    task = service.state.tasks["1403-01-01"][0]
    assert task.category == TaskCategory.GENERAL
    assert task.priority == TaskPriority.MEDIUM


def test_tomorrow_option_uses_calendar_rollover() -> None:
    service, _ = make_service(current_date=JalaliDate(year=1402, month=12, day=29))

    service.add_task({"title": "New year"}, DateOption.TOMORROW)

    assert "1403-01-01" in service.state.tasks


def test_duplicate_task_needs_confirmation() -> None:
    service, _ = make_service()
    service.add_task({"title": "Read", "time": "08:00"})

    with pytest.raises(DuplicateTaskError):
        service.add_task({"title": "Read", "time": "08:00"})

    service.add_task({"title": "Read", "time": "08:00"}, allow_duplicate=True)
    assert len(service.state.tasks["1403-01-01"]) == 2


@pytest.mark.parametrize(
    "data",
    [
        {"title": ""},
        {"title": "   "},
        {"title": "x" * 201},
        {"title": "ok", "description": "d" * 501},
        {"title": "ok", "time": "25:00"},
        {"title": "ok", "time": "7pm"},
        {"title": "ok", "priority": "urgent"},
    ],
)
def test_invalid_task_input_is_rejected(data: dict) -> None:
    service, repo = make_service()
    with pytest.raises(TaskValidationError):
        service.add_task(data)
    assert "tasks" not in repo.data


def test_markup_is_stripped_and_time_normalised() -> None:
    service, _ = make_service()

    task = service.add_task({"title": "<b>Math</b>", "description": "<script>x()</script>ch. 2", "time": "9:05"})

    assert task.title == "Math"
    assert task.description == "ch. 2"
    assert task.time == "09:05"


@pytest.mark.parametrize("custom", [(31, 12, 1403), (30, 12, 1402), (1, 1, 1399), (1, 13, 1403), None])
def test_invalid_custom_date_is_rejected(custom) -> None:
    service, _ = make_service()
    with pytest.raises(TaskValidationError):
        service.add_task({"title": "Exam"}, DateOption.CUSTOM, custom)


def test_set_current_date_persists_and_resets_counter() -> None:
    service, repo = make_service(day_counter=4)

    service.set_current_date("31", "6", "1403", "friday")

    assert service.state.current_date == JalaliDate(year=1403, month=6, day=31)
    assert service.state.current_week_day == WeekDay.FRIDAY
    assert service.state.day_counter == 0
    assert repo.data["currentDay"] == 31
    assert repo.data["currentWeekDay"] == "friday"


@pytest.mark.parametrize(
    "args",
    [(30, 12, 1402, "friday"), (1, 1, 1399, "friday"), (1, 1, 1403, "funday"), ("", 1, 1403, "friday")],
)
def test_set_current_date_rejects_bad_input(args) -> None:
    service, _ = make_service()
    with pytest.raises(TaskValidationError):
        service.set_current_date(*args)


def test_go_to_next_day_advances_date_week_day_and_counter() -> None:
    service, repo = make_service()
    service.set_current_date(31, 6, 1403, WeekDay.FRIDAY)

    service.go_to_next_day()

    assert service.state.current_date == JalaliDate(year=1403, month=7, day=1)
    assert service.state.current_week_day == WeekDay.SATURDAY
    assert service.state.day_counter == 1
    assert repo.data["currentMonth"] == 7
    assert repo.data["dayCounter"] == 1


def test_load_restores_persisted_state() -> None:
    service, repo = make_service()
    service.set_current_date(10, 2, 1403, "monday")
    service.update_display_settings(theme="dark", time_format="12h")
    task = service.add_task(study())

    reloaded = TaskService(repo)
    reloaded.load()

    assert reloaded.has_stored_date is True
    assert reloaded.state.current_date == JalaliDate(year=1403, month=2, day=10)
    assert reloaded.state.current_week_day == WeekDay.MONDAY
    assert reloaded.state.settings.theme == Theme.DARK
    assert reloaded.state.settings.time_format == TimeFormat.H12
    assert reloaded.find_task(task.id) == ("1403-02-10", task)
    assert len(reloaded.study_schedule()) == 3


def test_load_without_stored_date_asks_for_one() -> None:
    service = TaskService(FakeRepo({"settings": {"review1Gap": 2, "alarmVolume": 400}}))
    service.load()

    assert service.has_stored_date is False
    assert service.state.settings.review_gaps == ReviewGapConfig(2, 3, 7)
    assert service.state.settings.alarm_volume == 70


def test_list_tasks_filters_and_orders() -> None:
    service, _ = make_service()
    late = service.add_task({"title": "Evening run", "time": "19:00", "priority": "low"})
    early = service.add_task({"title": "Morning math", "time": "07:30", "priority": "high"})
    untimed = service.add_task({"title": "Call home", "description": "math homework help"})
    service.toggle_completed(late.id)

    assert [t.id for t in service.list_tasks()] == [early.id, late.id, untimed.id]
    assert [t.id for t in service.list_tasks(filters=TaskFilters(search="MATH"))] == [early.id, untimed.id]
    assert [t.id for t in service.list_tasks(filters=TaskFilters(priority="high"))] == [early.id]
    assert [t.id for t in service.list_tasks(filters=TaskFilters(status="completed"))] == [late.id]
    assert [t.id for t in service.list_tasks(filters=TaskFilters(status="pending"))] == [early.id, untimed.id]


def test_toggle_update_and_delete() -> None:
    service, _ = make_service()
    task = service.add_task({"title": "Draft"})

    assert service.toggle_completed(task.id).completed is True
    updated = service.update_task(task.id, {"title": "Final", "category": "work", "priority": "high"})
    assert updated.title == "Final"
    assert updated.completed is True
    assert updated.checksum != task.checksum

    assert service.delete_tasks({task.id}) == 1
    assert service.find_task(task.id) is None
    assert service.toggle_completed("missing") is None
    assert service.update_task("missing", {"title": "x"}) is None


def test_stats_and_schedule() -> None:
    service, _ = make_service()
    service.add_task({"title": "Errand"})
    origin = service.add_task(study())
    service.go_to_next_day()

    assert service.quick_stats() == {"total": 1, "completed": 0, "pending": 1, "study": 1}

    schedule = service.study_schedule()
    assert [(date.day, task.review_stage) for date, task in schedule] == [(2, 1), (4, 2), (8, 3)]

    service.toggle_completed(f"{origin.id}-r1")
    stats = service.study_stats()
    assert stats == {
        "study_tasks": 1,
        "reviews": 3,
        "completed_reviews": 1,
        "pending_reviews": 2,
        "reviews_today": 1,
    }
    assert len(service.study_schedule()) == 2


def test_archive_lists_another_day() -> None:
    service, _ = make_service()
    service.add_task({"title": "Old"}, DateOption.CUSTOM, (3, 1, 1403))

    assert [t.title for t in service.archive(3, 1, 1403)] == ["Old"]
    assert service.archive(4, 1, 1403) == []


@pytest.mark.parametrize("gaps", [(3, 3, 7), (7, 3, 1), (1, 3, 400), (-1, 3, 7)])
def test_review_settings_reject_bad_gaps(gaps) -> None:
    service, _ = make_service()
    with pytest.raises(TaskValidationError):
        service.update_review_settings(*gaps)
    assert service.state.settings.review_gaps == ReviewGapConfig()


def test_alarm_settings_validation() -> None:
    service, repo = make_service()
    service.update_alarm_settings("chime", 10, 40)
    assert repo.data["settings"]["alarmSound"] == "chime"
    assert repo.data["settings"]["alarmDuration"] == 10

    with pytest.raises(TaskValidationError):
        service.update_alarm_settings("chime", 0, 40)
    with pytest.raises(TaskValidationError):
        service.update_alarm_settings("siren", 5, 40)


def test_export_then_import_round_trip(tmp_path) -> None:
    service, _ = make_service()
    service.set_current_date(5, 3, 1403, "sunday")
    service.update_review_settings(2, 4, 8)
    service.add_task(study("سوره بقره"))

    path = service.export_bundle(tmp_path)
    assert path.name == "darsino-backup-1403-03-05.json"

    fresh, repo = make_service()
    warnings = fresh.import_bundle(path)

    assert warnings == []
    assert fresh.state.tasks == service.state.tasks
    assert fresh.state.settings.review_gaps == ReviewGapConfig(2, 4, 8)
    assert "tasks" in repo.data and "settings" in repo.data


def test_import_merges_per_date(tmp_path) -> None:
    service, _ = make_service()
    kept = service.add_task({"title": "Keep me"}, DateOption.CUSTOM, (2, 2, 1403))
    service.add_task({"title": "Replace me"})

    bundle = {
        "tasks": {"1403-01-01": [{"id": "a", "title": "Imported"}, {"title": "no id"}]},
        "settings": {"theme": "dark"},
    }
    path = tmp_path / "backup.json"
    path.write_text(json.dumps(bundle), encoding="utf-8")

    warnings = service.import_bundle(path)

    assert warnings
    assert [t.title for t in service.state.tasks["1403-01-01"]] == ["Imported"]
    assert service.find_task(kept.id) is not None
    assert service.state.settings.theme == Theme.DARK


def test_clear_all_data() -> None:
    service, repo = make_service()
    service.set_current_date(1, 1, 1403, "saturday")
    service.add_task({"title": "x"})

    service.clear_all_data()

    assert repo.data == {}
    assert service.state.tasks == {}
    assert service.has_stored_date is False


def test_imported_times_are_validated(tmp_path) -> None:
    service, _ = make_service()
    bundle = {
        "tasks": {
            "1403-01-01": [
                {"id": "a", "title": "numeric", "time": 1230},
                {"id": "b", "title": "bad", "time": "31:99"},
                {"id": "c", "title": "short", "time": "7:05"},
                {"id": "d", "title": "late", "time": "21:00"},
            ]
        }
    }
    path = tmp_path / "backup.json"
    path.write_text(json.dumps(bundle), encoding="utf-8")

    service.import_bundle(path)

    tasks = service.list_tasks()
    assert [(t.id, t.time) for t in tasks] == [("c", "07:05"), ("d", "21:00"), ("a", None), ("b", None)]
