"""Export and import of the JSON backup bundle.

The bundle carries a signature and a checksum, but both are tamper hints
only: a mismatch produces a warning, never a refusal.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from darsino.config import SETTINGS
from darsino.domain.entities import AppState, JalaliDate
from darsino.domain.errors import BackupError
from darsino.infra.repository import (
    settings_to_record,
    short_checksum,
    tasks_to_records,
    to_json,
)

logger = logging.getLogger(__name__)

BUNDLE_VERSION = "5.0"
SIGNATURE_PREFIX = "darsino-secure-"
SIGNATURE_MARKER = "darsino"

WARNING_SIGNATURE = "فایل احتمالاً از منبع نامعتبر است"
WARNING_CHECKSUM = "یکپارچگی فایل تأیید نشد"


@dataclass
class ImportResult:
    tasks: dict[str, list[dict]] = field(default_factory=dict)
    settings: dict | None = None
    warnings: list[str] = field(default_factory=list)


def bundle_checksum(tasks: dict, settings: dict) -> str:
    return short_checksum(to_json(tasks) + to_json(settings), 32)


def build_bundle(state: AppState, now_ms: int | None = None) -> dict:
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    tasks = tasks_to_records(state.tasks)
    settings = settings_to_record(state.settings)
    return {
        "tasks": tasks,
        "settings": settings,
        "currentDay": state.current_date.day,
        "currentMonth": state.current_date.month,
        "currentYear": state.current_date.year,
        "currentWeekDay": state.current_week_day.value,
        "dayCounter": state.day_counter,
        "version": BUNDLE_VERSION,
        "exportDate": datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc).isoformat(),
        "signature": base64.b64encode(f"{SIGNATURE_PREFIX}{now_ms}".encode("utf-8")).decode("ascii"),
        "checksum": bundle_checksum(tasks, settings),
    }


def export_filename(date: JalaliDate) -> str:
    return f"darsino-backup-{date.year}-{date.month:02d}-{date.day:02d}.json"


def write_bundle(state: AppState, directory: Path) -> Path:
    path = Path(directory) / export_filename(state.current_date)
    bundle = build_bundle(state)
    path.write_text(json.dumps(bundle, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Backup written to %s", path)
    return path


def _signature_ok(signature) -> bool:
    if not isinstance(signature, str) or not signature:
        return False
    if SIGNATURE_MARKER in signature:
        return True

    try:
        decoded = base64.b64decode(signature, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return False
    return SIGNATURE_MARKER in decoded


def parse_bundle(text: str) -> ImportResult:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise BackupError("فایل معتبر نیست یا خراب شده") from exc
    if not isinstance(data, dict):
        raise BackupError("فایل معتبر نیست یا خراب شده")

    result = ImportResult()

    if not _signature_ok(data.get("signature")):
        result.warnings.append(WARNING_SIGNATURE)

    tasks = data.get("tasks")
    settings = data.get("settings")
    if data.get("checksum") and tasks and settings:
        if bundle_checksum(tasks, settings) != data["checksum"]:
            result.warnings.append(WARNING_CHECKSUM)

    if isinstance(tasks, dict):
        for date_key, items in tasks.items():
            if not isinstance(items, list):
                continue
            result.tasks[date_key] = [
                item
                for item in items
                if isinstance(item, dict) and item.get("id") and isinstance(item.get("title"), str)
            ]

    if isinstance(settings, dict):
        result.settings = settings

    for warning in result.warnings:
        logger.warning("Import warning: %s", warning)
    return result


def read_bundle(path: Path) -> ImportResult:
    path = Path(path)
    if path.suffix.lower() != ".json":
        raise BackupError("فقط فایل‌های JSON پذیرفته می‌شوند")
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise BackupError("خطا در خواندن فایل") from exc
    if size > SETTINGS.import_max_mb * 1024 * 1024:
        raise BackupError(f"حجم فایل بیش از {SETTINGS.import_max_mb} مگابایت مجاز نیست")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise BackupError("خطا در خواندن فایل") from exc
    return parse_bundle(text)
