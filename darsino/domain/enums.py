from __future__ import annotations

from enum import StrEnum


class WeekDay(StrEnum):
    SATURDAY = "saturday"
    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskCategory(StrEnum):
    GENERAL = "general"
    STUDY = "study"
    WORK = "work"
    PERSONAL = "personal"


class DateOption(StrEnum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    CUSTOM = "custom"


class StudyDateMode(StrEnum):
    SAME_DAY = "same_day"
    NEXT_DAY = "next_day"


class Theme(StrEnum):
    SYSTEM = "system"
    LIGHT = "light"
    DARK = "dark"


class TimeFormat(StrEnum):
    H24 = "24h"
    H12 = "12h"


class AlarmSound(StrEnum):
    BELL = "bell"
    CHIME = "chime"
    DIGITAL = "digital"
