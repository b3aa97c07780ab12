"""Spaced-repetition review dates for study tasks.

A study task is reviewed three times. Each review date is an independent
offset from the base study date (not chained from the previous review), so
the default gaps ``(1, 3, 7)`` put reviews on days +1, +3 and +7.
"""
from __future__ import annotations

import logging
from dataclasses import replace

from darsino.domain.calendar import add_days
from darsino.domain.entities import JalaliDate, ReviewGapConfig, TaskEntity
from darsino.domain.enums import StudyDateMode, TaskCategory

logger = logging.getLogger(__name__)

ReviewSchedule = tuple[JalaliDate, ...]


def resolve_study_base_date(task_date: JalaliDate, mode: StudyDateMode | str) -> JalaliDate:
    if mode == StudyDateMode.NEXT_DAY:
        return add_days(task_date, 1)
    return task_date


def build_review_schedule(
    task: TaskEntity,
    base_date: JalaliDate,
    gaps: ReviewGapConfig,
) -> ReviewSchedule:
    # Callers only schedule study tasks; anything else gets no reviews.
    if task.category != TaskCategory.STUDY:
        logger.debug("Task %s is not a study task, no reviews scheduled", task.id)
        return ()
    return tuple(add_days(base_date, gap) for gap in gaps.as_tuple())


def build_review_tasks(
    task: TaskEntity,
    base_date: JalaliDate,
    gaps: ReviewGapConfig,
) -> list[tuple[JalaliDate, TaskEntity]]:
    schedule = build_review_schedule(task, base_date, gaps)
    reviews = []
    for stage, review_date in enumerate(schedule, start=1):
        review = replace(
            task,
            id=f"{task.id}-r{stage}",
            title=f"مرور {stage}: {task.title}",
            completed=False,
            checksum="",
            review_of=task.id,
            review_stage=stage,
        )
        reviews.append((review_date, review))
    return reviews
