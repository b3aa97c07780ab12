from __future__ import annotations

import base64
import json
from datetime import datetime

import pytest

from darsino.domain.entities import AppState, JalaliDate, TaskEntity
from darsino.domain.enums import TaskCategory, TaskPriority, WeekDay
from darsino.domain.errors import BackupError
from darsino.services.backup_service import (
    WARNING_CHECKSUM,
    WARNING_SIGNATURE,
    build_bundle,
    export_filename,
    parse_bundle,
    read_bundle,
    write_bundle,
)


def make_state() -> AppState:
    task = TaskEntity(
        id="1700000000000-abc123def",
        title="فیزیک",
        time="18:00",
        description="",
        priority=TaskPriority.HIGH,
        category=TaskCategory.STUDY,
        completed=False,
        created_at=datetime(2024, 3, 20, 8, 0),
        checksum="2YHbjNiy24w=",
    )
    return AppState(
        current_date=JalaliDate(year=1403, month=7, day=9),
        current_week_day=WeekDay.MONDAY,
        day_counter=12,
        tasks={"1403-07-09": [task]},
    )


def test_bundle_fields() -> None:
    bundle = build_bundle(make_state(), now_ms=1_700_000_000_000)

    assert bundle["version"] == "5.0"
    assert (bundle["currentDay"], bundle["currentMonth"], bundle["currentYear"]) == (9, 7, 1403)
    assert bundle["currentWeekDay"] == "monday"
    assert bundle["dayCounter"] == 12
    assert bundle["exportDate"].startswith("2023-11-14T22:13:20")
    assert base64.b64decode(bundle["signature"]).decode() == "darsino-secure-1700000000000"
    assert len(bundle["checksum"]) == 32
    assert bundle["tasks"]["1403-07-09"][0]["title"] == "فیزیک"


def test_export_filename_pads_month_and_day() -> None:
    assert export_filename(JalaliDate(year=1403, month=1, day=5)) == "darsino-backup-1403-01-05.json"


def test_fresh_bundle_imports_without_warnings(tmp_path) -> None:
    path = write_bundle(make_state(), tmp_path)

    result = read_bundle(path)

    assert result.warnings == []
    assert list(result.tasks) == ["1403-07-09"]
    assert result.settings["review1Gap"] == 1


def test_tampered_bundle_warns_but_imports() -> None:
    bundle = build_bundle(make_state())
    bundle["tasks"]["1403-07-09"][0]["title"] = "changed"
    bundle["signature"] = "bm90LW91cnM="

    result = parse_bundle(json.dumps(bundle))

    assert result.warnings == [WARNING_SIGNATURE, WARNING_CHECKSUM]
    assert result.tasks["1403-07-09"][0]["title"] == "changed"


def test_malformed_tasks_are_dropped() -> None:
    text = json.dumps({
        "tasks": {
            "1403-01-01": [{"id": "a", "title": "ok"}, {"title": "no id"}, {"id": "b", "title": 5}, "junk"],
            "1403-01-02": "junk",
        },
    })

    result = parse_bundle(text)

    assert result.tasks == {"1403-01-01": [{"id": "a", "title": "ok"}]}
    assert result.settings is None
    assert WARNING_SIGNATURE in result.warnings


@pytest.mark.parametrize("text", ["{oops", "[1, 2]", "null"])
def test_unreadable_bundle_raises(text: str) -> None:
    with pytest.raises(BackupError):
        parse_bundle(text)


def test_only_json_files_are_read(tmp_path) -> None:
    path = tmp_path / "backup.txt"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(BackupError):
        read_bundle(path)


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(BackupError):
        read_bundle(tmp_path / "missing.json")


def test_change_at_the_end_of_the_payload_is_detected() -> None:
    bundle = build_bundle(make_state())
    bundle["settings"]["alarmVolume"] = 0

    result = parse_bundle(json.dumps(bundle))

    assert result.warnings == [WARNING_CHECKSUM]
