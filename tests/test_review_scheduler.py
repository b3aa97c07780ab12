from __future__ import annotations

from datetime import datetime

from darsino.domain.entities import JalaliDate, ReviewGapConfig, TaskEntity
from darsino.domain.enums import StudyDateMode, TaskCategory, TaskPriority
from darsino.services.review_scheduler import (
    build_review_schedule,
    build_review_tasks,
    resolve_study_base_date,
)


def make_task(category: TaskCategory = TaskCategory.STUDY) -> TaskEntity:
    return TaskEntity(
        id="1700000000000-abc123def",
        title="Chapter 3",
        time="18:00",
        description="Thermodynamics",
        priority=TaskPriority.HIGH,
        category=category,
        completed=True,
        created_at=datetime(2024, 3, 20, 8, 0),
        checksum="Q2hhcHRlcjNU",
    )


def test_default_gaps_schedule() -> None:
    base = JalaliDate(year=1403, month=1, day=1)
    schedule = build_review_schedule(make_task(), base, ReviewGapConfig())
    assert schedule == (
        JalaliDate(year=1403, month=1, day=2),
        JalaliDate(year=1403, month=1, day=4),
        JalaliDate(year=1403, month=1, day=8),
    )


def test_each_review_is_offset_from_the_base_date() -> None:
    base = JalaliDate(year=1403, month=6, day=28)
    schedule = build_review_schedule(make_task(), base, ReviewGapConfig(1, 3, 7))
    assert schedule == (
        JalaliDate(year=1403, month=6, day=29),
        JalaliDate(year=1403, month=6, day=31),
        JalaliDate(year=1403, month=7, day=4),
    )


def test_schedule_crosses_year_end() -> None:
    base = JalaliDate(year=1402, month=12, day=27)
    schedule = build_review_schedule(make_task(), base, ReviewGapConfig(2, 5, 10))
    assert schedule == (
        JalaliDate(year=1402, month=12, day=29),
        JalaliDate(year=1403, month=1, day=3),
        JalaliDate(year=1403, month=1, day=8),
    )


def test_increasing_gaps_give_strictly_increasing_dates() -> None:
    base = JalaliDate(year=1403, month=11, day=20)
    first, second, third = build_review_schedule(make_task(), base, ReviewGapConfig(1, 30, 90))
    assert base < first < second < third


def test_non_monotonic_gaps_are_not_reordered() -> None:
    base = JalaliDate(year=1403, month=1, day=1)
    schedule = build_review_schedule(make_task(), base, ReviewGapConfig(7, 3, 1))
    assert [date.day for date in schedule] == [8, 4, 2]


def test_non_study_task_gets_no_schedule() -> None:
    base = JalaliDate(year=1403, month=1, day=1)
    assert build_review_schedule(make_task(TaskCategory.WORK), base, ReviewGapConfig()) == ()
    assert build_review_tasks(make_task(TaskCategory.GENERAL), base, ReviewGapConfig()) == []


def test_study_base_date_modes() -> None:
    date = JalaliDate(year=1403, month=6, day=31)
    assert resolve_study_base_date(date, StudyDateMode.SAME_DAY) == date
    assert resolve_study_base_date(date, StudyDateMode.NEXT_DAY) == JalaliDate(year=1403, month=7, day=1)
    assert resolve_study_base_date(date, "next_day") == JalaliDate(year=1403, month=7, day=1)


def test_review_tasks_point_back_to_origin() -> None:
    task = make_task()
    base = JalaliDate(year=1403, month=1, day=1)
    reviews = build_review_tasks(task, base, ReviewGapConfig())

    assert [date.day for date, _ in reviews] == [2, 4, 8]
    for stage, (_, review) in enumerate(reviews, start=1):
        assert review.review_of == task.id
        assert review.review_stage == stage
        assert review.id == f"{task.id}-r{stage}"
        assert review.title == f"مرور {stage}: Chapter 3"
        assert review.completed is False
        assert review.category == TaskCategory.STUDY
        assert review.time == task.time
