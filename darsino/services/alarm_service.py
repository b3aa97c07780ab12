from __future__ import annotations

import logging

from darsino.domain.entities import AppState, TaskEntity

logger = logging.getLogger(__name__)


class AlarmService:
    """Tracks which timed tasks of the current day have already rung."""

    def __init__(self) -> None:
        self._fired: set[str] = set()

    def due_tasks(self, state: AppState, now: str) -> list[TaskEntity]:
        tasks = state.tasks.get(state.current_date.key, [])
        due = [
            task
            for task in tasks
            if task.time == now and not task.completed and task.id not in self._fired
        ]
        for task in due:
            self._fired.add(task.id)
            logger.info("Alarm for task %s at %s", task.id, now)
        return due

    def reset(self) -> None:
        self._fired.clear()
