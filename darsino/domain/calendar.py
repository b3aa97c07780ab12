"""Jalali (Persian solar Hijri) calendar arithmetic.

Every function here is pure and fails soft: out-of-range input yields a fixed
conservative value instead of an exception, so a bad form field can never
crash a UI flow.
"""
from __future__ import annotations

from .entities import JalaliDate
from .enums import WeekDay
from .validation import validate_numeric_input

MIN_YEAR = 1300
MAX_YEAR = 1500
MAX_DAY_OFFSET = 365
FALLBACK_DATE = JalaliDate(year=1403, month=1, day=1)

# Jalali years that open a new sub-cycle of the 33-year intercalation scheme.
BREAKS: tuple[int, ...] = (
    -61, 9, 38, 199, 426, 686, 756, 818, 1111, 1181,
    1210, 1635, 2060, 2097, 2192, 2262, 2324, 2394, 2456, 3178,
)

WEEK_DAYS: tuple[WeekDay, ...] = tuple(WeekDay)

MONTH_NAMES: tuple[str, ...] = (
    "",
    "فروردین",
    "اردیبهشت",
    "خرداد",
    "تیر",
    "مرداد",
    "شهریور",
    "مهر",
    "آبان",
    "آذر",
    "دی",
    "بهمن",
    "اسفند",
)

WEEK_DAY_NAMES: dict[WeekDay, str] = {
    WeekDay.SATURDAY: "شنبه",
    WeekDay.SUNDAY: "یکشنبه",
    WeekDay.MONDAY: "دوشنبه",
    WeekDay.TUESDAY: "سه‌شنبه",
    WeekDay.WEDNESDAY: "چهارشنبه",
    WeekDay.THURSDAY: "پنج‌شنبه",
    WeekDay.FRIDAY: "جمعه",
}


def _sub_cycle(year: int) -> tuple[int, int]:
    """Return ``(start, length)`` of the breaks sub-cycle containing ``year``."""
    start = BREAKS[0]
    jump = 0
    for boundary in BREAKS[1:]:
        jump = boundary - start
        if year < boundary:
            break
        start = boundary
    return start, jump


def is_leap_year(year) -> bool:
    year = validate_numeric_input(year, MIN_YEAR, MAX_YEAR)
    if year is None:
        return False

    start, jump = _sub_cycle(year)
    position = year - start
    if jump - position < 6:
        position = position - jump + (jump + 4) // 33 * 33
    return ((position + 1) % 33 - 1) % 4 == 0


def days_in_month(month, year) -> int:
    month = validate_numeric_input(month, 1, 12)
    year = validate_numeric_input(year, MIN_YEAR, MAX_YEAR)
    if month is None or year is None:
        return 30

    if month <= 6:
        return 31
    if month <= 11:
        return 30
    return 30 if is_leap_year(year) else 29


def is_valid_date(date: JalaliDate) -> bool:
    day = validate_numeric_input(date.day, 1, 31)
    month = validate_numeric_input(date.month, 1, 12)
    year = validate_numeric_input(date.year, MIN_YEAR, MAX_YEAR)
    if day is None or month is None or year is None:
        return False
    return day <= days_in_month(month, year)


def add_days(date: JalaliDate, days) -> JalaliDate:
    """Shift ``date`` by ``days`` (between -365 and 365), carrying across months and years.

    A result outside the supported years collapses to ``FALLBACK_DATE``.
    """
    day = validate_numeric_input(date.day, 1, 31)
    month = validate_numeric_input(date.month, 1, 12)
    year = validate_numeric_input(date.year, MIN_YEAR, MAX_YEAR)
    remaining = validate_numeric_input(days, -MAX_DAY_OFFSET, MAX_DAY_OFFSET)
    if day is None or month is None or year is None or remaining is None:
        return FALLBACK_DATE

    day = min(day, days_in_month(month, year))

    while remaining > 0:
        left_in_month = days_in_month(month, year) - day
        if remaining <= left_in_month:
            day += remaining
            remaining = 0
        else:
            remaining -= left_in_month + 1
            day = 1
            month += 1
            if month > 12:
                month = 1
                year += 1
                if year > MAX_YEAR:
                    return FALLBACK_DATE

    while remaining < 0:
        if -remaining < day:
            day += remaining
            remaining = 0
        else:
            remaining += day
            month -= 1
            if month < 1:
                month = 12
                year -= 1
                if year < MIN_YEAR:
                    return FALLBACK_DATE
            day = days_in_month(month, year)

    return JalaliDate(year=year, month=month, day=day)


def next_week_day(week_day) -> WeekDay:
    try:
        index = WEEK_DAYS.index(WeekDay(week_day))
    except ValueError:
        index = -1
    return WEEK_DAYS[(index + 1) % len(WEEK_DAYS)]
