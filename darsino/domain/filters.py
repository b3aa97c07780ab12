from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TaskFilters:
    search: str | None = None
    priority: str = "all"
    status: str = "all"
