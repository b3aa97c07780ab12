from __future__ import annotations


class DarsinoError(Exception):
    """Base class for errors surfaced to the user."""


class TaskValidationError(DarsinoError, ValueError):
    """Raised when task or date input fails validation."""


class DuplicateTaskError(DarsinoError):
    """Raised when an identical task already exists on the target date."""

    def __init__(self, date_key: str, title: str) -> None:
        super().__init__("کار مشابهی وجود دارد. آیا مایل به اضافه کردن هستید؟")
        self.date_key = date_key
        self.title = title


class BackupError(DarsinoError, ValueError):
    """Raised when a backup bundle cannot be read."""
