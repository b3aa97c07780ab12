from __future__ import annotations

from .calendar import MONTH_NAMES, WEEK_DAY_NAMES
from .entities import JalaliDate
from .enums import TaskCategory, TaskPriority, TimeFormat, WeekDay
from .validation import is_valid_time

PRIORITY_LABELS = {
    TaskPriority.LOW: "کم",
    TaskPriority.MEDIUM: "متوسط",
    TaskPriority.HIGH: "زیاد",
}

CATEGORY_LABELS = {
    TaskCategory.GENERAL: "عمومی",
    TaskCategory.STUDY: "مطالعه",
    TaskCategory.WORK: "کاری",
    TaskCategory.PERSONAL: "شخصی",
}


def format_date(date: JalaliDate, week_day: WeekDay | None = None) -> str:
    month_name = MONTH_NAMES[date.month] if 1 <= date.month <= 12 else str(date.month)
    label = f"{date.day} {month_name} {date.year}"
    if week_day is not None:
        label = f"{WEEK_DAY_NAMES[WeekDay(week_day)]} {label}"
    return label


def format_time(value: str | None, time_format: TimeFormat = TimeFormat.H24) -> str:
    if not is_valid_time(value):
        return ""
    hours, minutes = (int(part) for part in value.split(":"))
    if time_format == TimeFormat.H24:
        return f"{hours:02d}:{minutes:02d}"
    suffix = "ق.ظ" if hours < 12 else "ب.ظ"
    hours = hours % 12 or 12
    return f"{hours}:{minutes:02d} {suffix}"
