from __future__ import annotations

import hashlib
import json
import logging
import time
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from darsino.config import SETTINGS
from darsino.domain.entities import AppSettings, ReviewGapConfig, TaskEntity
from darsino.domain.enums import (
    AlarmSound,
    StudyDateMode,
    TaskCategory,
    TaskPriority,
    Theme,
    TimeFormat,
)
from darsino.domain.validation import normalize_time, validate_numeric_input

from .db import SessionLocal
from .models import StorageEntryModel

logger = logging.getLogger(__name__)

STORAGE_VERSION = "2.0"


def to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def short_checksum(text: str, length: int) -> str:
    """Leading ``length`` hex digits of the SHA-256 of the whole ``text``."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:length]


def _enum_or(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def task_to_record(task: TaskEntity) -> dict:
    record = {
        "id": task.id,
        "title": task.title,
        "time": task.time or "",
        "description": task.description,
        "priority": task.priority.value,
        "category": task.category.value,
        "completed": task.completed,
        "createdAt": task.created_at.isoformat(),
        "checksum": task.checksum,
    }
    if task.review_of is not None:
        record["reviewOf"] = task.review_of
        record["reviewStage"] = task.review_stage
    return record


def task_from_record(record: dict) -> TaskEntity:
    try:
        created_at = datetime.fromisoformat(str(record.get("createdAt")))
    except ValueError:
        created_at = datetime.utcnow()
    return TaskEntity(
        id=str(record["id"]),
        title=str(record["title"]),
        time=normalize_time(record.get("time")),
        description=str(record.get("description") or ""),
        priority=_enum_or(TaskPriority, record.get("priority"), TaskPriority.MEDIUM),
        category=_enum_or(TaskCategory, record.get("category"), TaskCategory.GENERAL),
        completed=bool(record.get("completed", False)),
        created_at=created_at,
        checksum=str(record.get("checksum") or ""),
        review_of=record.get("reviewOf"),
        review_stage=record.get("reviewStage"),
    )


def tasks_to_records(tasks: dict[str, list[TaskEntity]]) -> dict[str, list[dict]]:
    return {key: [task_to_record(task) for task in items] for key, items in tasks.items()}


def tasks_from_records(records: dict) -> dict[str, list[TaskEntity]]:
    tasks: dict[str, list[TaskEntity]] = {}
    for key, items in records.items():
        if not isinstance(items, list):
            continue
        loaded = []
        for item in items:
            if not isinstance(item, dict) or not item.get("id") or not isinstance(item.get("title"), str):
                continue
            loaded.append(task_from_record(item))
        tasks[key] = loaded
    return tasks


def settings_to_record(settings: AppSettings) -> dict:
    return {
        "theme": settings.theme.value,
        "timeFormat": settings.time_format.value,
        "review1Gap": settings.review_gaps.gap1,
        "review2Gap": settings.review_gaps.gap2,
        "review3Gap": settings.review_gaps.gap3,
        "studyDateMode": settings.study_date_mode.value,
        "alarmSound": settings.alarm_sound.value,
        "alarmDuration": settings.alarm_duration,
        "alarmVolume": settings.alarm_volume,
    }


def settings_from_record(record: dict, base: AppSettings | None = None) -> AppSettings:
    """Merge a stored settings record over ``base``; invalid fields keep the base value."""
    base = base or AppSettings()
    gaps = base.review_gaps

    def number(key: str, minimum: int, maximum: int, default: int) -> int:
        value = validate_numeric_input(record.get(key), minimum, maximum)
        return default if value is None else value

    return AppSettings(
        theme=_enum_or(Theme, record.get("theme"), base.theme),
        time_format=_enum_or(TimeFormat, record.get("timeFormat"), base.time_format),
        review_gaps=ReviewGapConfig(
            gap1=number("review1Gap", 0, 365, gaps.gap1),
            gap2=number("review2Gap", 0, 365, gaps.gap2),
            gap3=number("review3Gap", 0, 365, gaps.gap3),
        ),
        study_date_mode=_enum_or(StudyDateMode, record.get("studyDateMode"), base.study_date_mode),
        alarm_sound=_enum_or(AlarmSound, record.get("alarmSound"), base.alarm_sound),
        alarm_duration=number("alarmDuration", 1, 30, base.alarm_duration),
        alarm_volume=number("alarmVolume", 0, 100, base.alarm_volume),
    )


class StorageRepository:
    """Key/value persistence with a checksummed envelope and a write rate limit."""

    def __init__(
        self,
        session_factory=SessionLocal,
        rate_limit: int = SETTINGS.storage_rate_limit,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session_factory = session_factory
        self._rate_limit = rate_limit
        self._clock = clock
        self._window_start = clock()
        self._operations = 0

    def get(self, key: str) -> Optional[Any]:
        try:
            with self._session_factory() as session:
                entry = session.get(StorageEntryModel, key)
                payload = entry.payload if entry else None
        except SQLAlchemyError:
            logger.exception("Storage read error for %s", key)
            return None
        if payload is None:
            return None

        try:
            data = json.loads(payload)
        except ValueError:
            logger.error("Storage payload for %s is not valid JSON", key)
            return None

        if isinstance(data, dict) and {"content", "checksum", "version"} <= data.keys():
            expected = short_checksum(to_json(data["content"]), 16)
            if expected != data["checksum"]:
                logger.warning("Data integrity check failed for: %s", key)
                return None
            return data["content"]
        return data

    def set(self, key: str, value: Any) -> bool:
        if not self._consume_operation():
            logger.warning("Storage rate limit exceeded")
            return False

        content = to_json(value)
        payload = to_json({
            "content": value,
            "timestamp": int(time.time() * 1000),
            "checksum": short_checksum(content, 16),
            "version": STORAGE_VERSION,
        })
        try:
            with self._session_factory() as session:
                entry = session.get(StorageEntryModel, key)
                if entry:
                    entry.payload = payload
                else:
                    session.add(StorageEntryModel(key=key, payload=payload))
                session.commit()
        except SQLAlchemyError:
            logger.exception("Secure storage error for %s", key)
            return False
        return True

    def delete(self, key: str) -> None:
        with self._session_factory() as session:
            entry = session.get(StorageEntryModel, key)
            if not entry:
                return
            session.delete(entry)
            session.commit()

    def clear(self) -> None:
        with self._session_factory() as session:
            session.execute(delete(StorageEntryModel))
            session.commit()

    def _consume_operation(self) -> bool:
        now = self._clock()
        if now - self._window_start >= 1.0:
            self._window_start = now
            self._operations = 0
        self._operations += 1
        return self._operations <= self._rate_limit
