from __future__ import annotations

import logging
import time
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Protocol

from darsino.config import SETTINGS
from darsino.domain.calendar import MONTH_NAMES, add_days, days_in_month, next_week_day
from darsino.domain.entities import (
    AppSettings,
    AppState,
    JalaliDate,
    ReviewGapConfig,
    TaskEntity,
)
from darsino.domain.enums import (
    AlarmSound,
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
from darsino.domain.formatting import format_date
from darsino.domain.validation import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    normalize_time,
    sanitize_input,
    validate_numeric_input,
)
from darsino.infra.repository import (
    settings_from_record,
    settings_to_record,
    short_checksum,
    task_from_record,
    tasks_from_records,
    tasks_to_records,
)

from . import backup_service
from .review_scheduler import build_review_tasks, resolve_study_base_date

logger = logging.getLogger(__name__)

INPUT_MIN_YEAR = 1400
INPUT_MAX_YEAR = 1450

KEY_TASKS = "tasks"
KEY_SETTINGS = "settings"
DATE_KEYS = ("currentDay", "currentMonth", "currentYear", "currentWeekDay", "dayCounter")


class KeyValueStore(Protocol):
    def get(self, key: str): ...

    def set(self, key: str, value) -> bool: ...

    def clear(self) -> None: ...


def default_state() -> AppState:
    gaps = ReviewGapConfig(SETTINGS.review_gap_1, SETTINGS.review_gap_2, SETTINGS.review_gap_3)
    return AppState(settings=AppSettings(review_gaps=gaps))


def new_task_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def task_checksum(title: str, description: str, priority: str, category: str) -> str:
    return short_checksum(f"{title}{description}{priority}{category}", 12)


class TaskService:
    """Owns the application state and applies every user action to it."""

    def __init__(self, repo: KeyValueStore, state: AppState | None = None) -> None:
        self._repo = repo
        self.state = state or default_state()
        self.has_stored_date = False

    # -- loading and persistence -------------------------------------------------

    def load(self) -> None:
        stored_settings = self._repo.get(KEY_SETTINGS)
        if isinstance(stored_settings, dict):
            self.state.settings = settings_from_record(stored_settings, self.state.settings)

        stored_tasks = self._repo.get(KEY_TASKS)
        if isinstance(stored_tasks, dict):
            self.state.tasks = tasks_from_records(stored_tasks)

        self._load_stored_date()

    def _load_stored_date(self) -> None:
        day = validate_numeric_input(self._repo.get("currentDay"), 1, 31)
        month = validate_numeric_input(self._repo.get("currentMonth"), 1, 12)
        year = validate_numeric_input(self._repo.get("currentYear"), INPUT_MIN_YEAR, INPUT_MAX_YEAR)
        try:
            week_day = WeekDay(self._repo.get("currentWeekDay"))
        except ValueError:
            week_day = None
        if day is None or month is None or year is None or week_day is None:
            self.has_stored_date = False
            return

        self.state.current_date = JalaliDate(year=year, month=month, day=day)
        self.state.current_week_day = week_day
        self.state.day_counter = validate_numeric_input(self._repo.get("dayCounter"), 0, 100_000) or 0
        self.has_stored_date = True

    def save_tasks(self) -> bool:
        return self._repo.set(KEY_TASKS, tasks_to_records(self.state.tasks))

    def save_settings(self) -> bool:
        return self._repo.set(KEY_SETTINGS, settings_to_record(self.state.settings))

    def _save_date(self) -> None:
        state = self.state
        values = (
            state.current_date.day,
            state.current_date.month,
            state.current_date.year,
            state.current_week_day.value,
            state.day_counter,
        )
        for key, value in zip(DATE_KEYS, values):
            self._repo.set(key, value)

    # -- current date ------------------------------------------------------------

    def set_current_date(self, day, month, year, week_day) -> JalaliDate:
        date = self._validated_date(day, month, year)
        try:
            week_day = WeekDay(week_day)
        except ValueError as exc:
            raise TaskValidationError("لطفاً همه فیلدهای تاریخ را به درستی پر کنید") from exc

        self.state.current_date = date
        self.state.current_week_day = week_day
        self.state.day_counter = 0
        self.has_stored_date = True
        self._save_date()
        logger.info("Current date set to %s (%s)", date.key, week_day.value)
        return date

    def go_to_next_day(self) -> JalaliDate:
        state = self.state
        state.current_date = add_days(state.current_date, 1)
        state.current_week_day = next_week_day(state.current_week_day)
        state.day_counter += 1
        self._save_date()
        logger.info("Advanced to %s, day %s", state.current_date.key, state.day_counter)
        return state.current_date

    def current_date_label(self) -> str:
        return format_date(self.state.current_date, self.state.current_week_day)

    def _validated_date(self, day, month, year) -> JalaliDate:
        day_num = validate_numeric_input(day, 1, 31)
        month_num = validate_numeric_input(month, 1, 12)
        year_num = validate_numeric_input(year, INPUT_MIN_YEAR, INPUT_MAX_YEAR)
        if day_num is None or month_num is None or year_num is None:
            raise TaskValidationError("لطفاً تاریخ کامل و معتبر را وارد کنید")

        month_length = days_in_month(month_num, year_num)
        if day_num > month_length:
            raise TaskValidationError(f"ماه {MONTH_NAMES[month_num]} {month_length} روز دارد")
        return JalaliDate(year=year_num, month=month_num, day=day_num)

    # -- tasks -------------------------------------------------------------------

    def add_task(
        self,
        data: dict,
        date_option: DateOption | str = DateOption.TODAY,
        custom_date: tuple | None = None,
        allow_duplicate: bool = False,
    ) -> TaskEntity:
        normalized = self._normalize_data(data)
        task_date = self._resolve_task_date(date_option, custom_date)
        date_key = task_date.key
        bucket = self.state.tasks.setdefault(date_key, [])

        if not allow_duplicate and any(
            existing.title == normalized["title"]
            and existing.time == normalized["time"]
            and existing.description == normalized["description"]
            for existing in bucket
        ):
            raise DuplicateTaskError(date_key, normalized["title"])

        task = TaskEntity(
            id=new_task_id(),
            created_at=datetime.utcnow(),
            completed=False,
            checksum=task_checksum(
                normalized["title"],
                normalized["description"],
                normalized["priority"].value,
                normalized["category"].value,
            ),
            **normalized,
        )
        bucket.append(task)

        if task.category == TaskCategory.STUDY:
            self._file_reviews(task, task_date)

        self.save_tasks()
        logger.info("Task %s added on %s", task.id, date_key)
        return task

    def _file_reviews(self, task: TaskEntity, task_date: JalaliDate) -> None:
        settings = self.state.settings
        base_date = resolve_study_base_date(task_date, settings.study_date_mode)
        for review_date, review in build_review_tasks(task, base_date, settings.review_gaps):
            review = replace(
                review,
                checksum=task_checksum(
                    review.title, review.description, review.priority.value, review.category.value
                ),
            )
            self.state.tasks.setdefault(review_date.key, []).append(review)
            logger.debug("Review %s filed on %s", review.id, review_date.key)

    def _resolve_task_date(self, option: DateOption | str, custom_date: tuple | None) -> JalaliDate:
        current = self.state.current_date
        if option == DateOption.TODAY:
            return current
        if option == DateOption.TOMORROW:
            return add_days(current, 1)
        if not custom_date or len(custom_date) != 3:
            raise TaskValidationError("لطفاً تاریخ کامل و معتبر را وارد کنید")
        return self._validated_date(*custom_date)

    def _normalize_data(self, data: dict) -> dict:
        title = sanitize_input(str(data.get("title") or "").strip())
        if not title or len(title) > TITLE_MAX_LENGTH:
            raise TaskValidationError("لطفاً عنوان معتبر برای کار وارد کنید (۱-۲۰۰ کاراکتر)")

        description = sanitize_input(str(data.get("description") or "").strip())
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise TaskValidationError("توضیحات نمی‌تواند بیش از ۵۰۰ کاراکتر باشد")

        raw_time = str(data.get("time") or "").strip()
        time_value = normalize_time(raw_time)
        if raw_time and time_value is None:
            raise TaskValidationError("فرمت زمان نامعتبر است")

        try:
            priority = TaskPriority(data.get("priority") or TaskPriority.MEDIUM)
            category = TaskCategory(data.get("category") or TaskCategory.GENERAL)
        except ValueError as exc:
            raise TaskValidationError(str(exc)) from exc

        return {
            "title": title,
            "time": time_value,
            "description": description,
            "priority": priority,
            "category": category,
        }

    def find_task(self, task_id: str) -> tuple[str, TaskEntity] | None:
        for date_key, items in self.state.tasks.items():
            for task in items:
                if task.id == task_id:
                    return date_key, task
        return None

    def update_task(self, task_id: str, data: dict) -> TaskEntity | None:
        found = self.find_task(task_id)
        if not found:
            return None
        date_key, task = found
        normalized = self._normalize_data(data)
        updated = replace(
            task,
            checksum=task_checksum(
                normalized["title"],
                normalized["description"],
                normalized["priority"].value,
                normalized["category"].value,
            ),
            **normalized,
        )
        self._replace(date_key, updated)
        self.save_tasks()
        return updated

    def toggle_completed(self, task_id: str) -> TaskEntity | None:
        found = self.find_task(task_id)
        if not found:
            return None
        date_key, task = found
        updated = replace(task, completed=not task.completed)
        self._replace(date_key, updated)
        self.save_tasks()
        return updated

    def delete_tasks(self, task_ids) -> int:
        targets = set(task_ids)
        removed = 0
        for date_key in list(self.state.tasks):
            items = self.state.tasks[date_key]
            kept = [task for task in items if task.id not in targets]
            removed += len(items) - len(kept)
            self.state.tasks[date_key] = kept
        if removed:
            self.save_tasks()
            logger.info("Deleted %s task(s)", removed)
        return removed

    def _replace(self, date_key: str, updated: TaskEntity) -> None:
        self.state.tasks[date_key] = [
            updated if task.id == updated.id else task for task in self.state.tasks[date_key]
        ]

    # -- queries -----------------------------------------------------------------

    def list_tasks(self, date: JalaliDate | None = None, filters: TaskFilters | None = None) -> list[TaskEntity]:
        date = date or self.state.current_date
        filters = filters or TaskFilters()
        tasks = list(self.state.tasks.get(date.key, []))

        if filters.search:
            needle = filters.search.lower()
            tasks = [
                task
                for task in tasks
                if needle in task.title.lower() or needle in task.description.lower()
            ]
        if filters.priority != "all":
            tasks = [task for task in tasks if task.priority == filters.priority]
        if filters.status == "completed":
            tasks = [task for task in tasks if task.completed]
        elif filters.status == "pending":
            tasks = [task for task in tasks if not task.completed]

        return sorted(tasks, key=lambda task: (task.time is None, task.time or "", task.created_at))

    def archive(self, day, month, year) -> list[TaskEntity]:
        return self.list_tasks(self._validated_date(day, month, year))

    def quick_stats(self) -> dict[str, int]:
        tasks = self.state.tasks.get(self.state.current_date.key, [])
        completed = sum(1 for task in tasks if task.completed)
        return {
            "total": len(tasks),
            "completed": completed,
            "pending": len(tasks) - completed,
            "study": sum(1 for task in tasks if task.category == TaskCategory.STUDY),
        }

    def study_stats(self) -> dict[str, int]:
        today_key = self.state.current_date.key
        study = reviews = completed_reviews = reviews_today = 0
        for date_key, items in self.state.tasks.items():
            for task in items:
                if task.is_review:
                    reviews += 1
                    completed_reviews += int(task.completed)
                    reviews_today += int(date_key == today_key)
                elif task.category == TaskCategory.STUDY:
                    study += 1
        return {
            "study_tasks": study,
            "reviews": reviews,
            "completed_reviews": completed_reviews,
            "pending_reviews": reviews - completed_reviews,
            "reviews_today": reviews_today,
        }

    def study_schedule(self) -> list[tuple[JalaliDate, TaskEntity]]:
        current = self.state.current_date
        upcoming = []
        for date_key, items in self.state.tasks.items():
            date = JalaliDate.from_key(date_key)
            if date is None or date < current:
                continue
            upcoming.extend((date, task) for task in items if task.is_review and not task.completed)
        return sorted(upcoming, key=lambda entry: (entry[0], entry[1].review_stage or 0))

    # -- settings ----------------------------------------------------------------

    def update_review_settings(self, gap1, gap2, gap3, study_date_mode=None) -> ReviewGapConfig:
        values = [validate_numeric_input(gap, 0, 365) for gap in (gap1, gap2, gap3)]
        if any(value is None for value in values):
            raise TaskValidationError("فاصله‌های مرور باید بین ۰ تا ۳۶۵ روز باشند")
        gaps = ReviewGapConfig(*values)
        if not gaps.is_increasing:
            raise TaskValidationError("فاصله‌های مرور باید به ترتیب افزایشی باشند")

        mode = self.state.settings.study_date_mode
        if study_date_mode is not None:
            mode = self._enum(StudyDateMode, study_date_mode)
        self.state.settings = replace(self.state.settings, review_gaps=gaps, study_date_mode=mode)
        self.save_settings()
        return gaps

    def update_alarm_settings(self, sound, duration, volume) -> AppSettings:
        duration_num = validate_numeric_input(duration, 1, 30)
        volume_num = validate_numeric_input(volume, 0, 100)
        if duration_num is None or volume_num is None:
            raise TaskValidationError("تنظیمات هشدار نامعتبر است")
        self.state.settings = replace(
            self.state.settings,
            alarm_sound=self._enum(AlarmSound, sound),
            alarm_duration=duration_num,
            alarm_volume=volume_num,
        )
        self.save_settings()
        return self.state.settings

    def update_display_settings(self, theme=None, time_format=None) -> AppSettings:
        settings = self.state.settings
        if theme is not None:
            settings = replace(settings, theme=self._enum(Theme, theme))
        if time_format is not None:
            settings = replace(settings, time_format=self._enum(TimeFormat, time_format))
        self.state.settings = settings
        self.save_settings()
        return settings

    @staticmethod
    def _enum(enum_cls, value):
        try:
            return enum_cls(value)
        except ValueError as exc:
            raise TaskValidationError(str(exc)) from exc

    # -- backup ------------------------------------------------------------------

    def export_bundle(self, directory: Path) -> Path:
        return backup_service.write_bundle(self.state, directory)

    def import_bundle(self, path: Path) -> list[str]:
        result = backup_service.read_bundle(path)
        if result.tasks:
            imported = {
                date_key: [task_from_record(item) for item in items]
                for date_key, items in result.tasks.items()
            }
            self.state.tasks = {**self.state.tasks, **imported}
            self.save_tasks()
        if result.settings is not None:
            self.state.settings = settings_from_record(result.settings, self.state.settings)
            self.save_settings()
        logger.info("Imported %s date bucket(s) from %s", len(result.tasks), path)
        return result.warnings

    def clear_all_data(self) -> None:
        self._repo.clear()
        self.state = default_state()
        self.has_stored_date = False
        logger.warning("All stored data cleared")
