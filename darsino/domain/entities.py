from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import (
    AlarmSound,
    StudyDateMode,
    TaskCategory,
    TaskPriority,
    Theme,
    TimeFormat,
    WeekDay,
)


@dataclass(frozen=True, order=True)
class JalaliDate:
    """A single day of the Persian calendar.

    Fields are declared year-first so that ordering is chronological; build
    instances with keywords, e.g. ``JalaliDate(day=1, month=1, year=1403)``.
    """

    year: int
    month: int
    day: int

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    @classmethod
    def from_key(cls, key: str) -> Optional["JalaliDate"]:
        parts = key.split("-")
        if len(parts) != 3:
            return None
        try:
            year, month, day = (int(part) for part in parts)
        except ValueError:
            return None
        return cls(year=year, month=month, day=day)


@dataclass(frozen=True)
class TaskEntity:
    id: str
    title: str
    time: str | None
    description: str
    priority: TaskPriority
    category: TaskCategory
    completed: bool
    created_at: datetime
    checksum: str = ""
    review_of: str | None = None
    review_stage: int | None = None

    @property
    def is_review(self) -> bool:
        return self.review_of is not None


@dataclass(frozen=True)
class ReviewGapConfig:
    gap1: int = 1
    gap2: int = 3
    gap3: int = 7

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.gap1, self.gap2, self.gap3)

    @property
    def is_increasing(self) -> bool:
        return 0 <= self.gap1 < self.gap2 < self.gap3


@dataclass(frozen=True)
class AppSettings:
    theme: Theme = Theme.SYSTEM
    time_format: TimeFormat = TimeFormat.H24
    review_gaps: ReviewGapConfig = field(default_factory=ReviewGapConfig)
    study_date_mode: StudyDateMode = StudyDateMode.SAME_DAY
    alarm_sound: AlarmSound = AlarmSound.BELL
    alarm_duration: int = 5
    alarm_volume: int = 70


@dataclass
class AppState:
    current_date: JalaliDate = field(
        default_factory=lambda: JalaliDate(year=1403, month=1, day=1)
    )
    current_week_day: WeekDay = WeekDay.SATURDAY
    day_counter: int = 0
    tasks: dict[str, list[TaskEntity]] = field(default_factory=dict)
    settings: AppSettings = field(default_factory=AppSettings)
