from __future__ import annotations

from PySide6.QtCore import QSize, Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QCheckBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from darsino.domain.entities import TaskEntity
from darsino.domain.enums import TaskCategory, TaskPriority, TimeFormat
from darsino.domain.formatting import CATEGORY_LABELS, PRIORITY_LABELS, format_time

PRIORITY_OPTIONS = [(PRIORITY_LABELS[priority], priority.value) for priority in TaskPriority]
CATEGORY_OPTIONS = [(CATEGORY_LABELS[category], category.value) for category in TaskCategory]

PRIORITY_COLORS = {
    TaskPriority.LOW: "#7CC4A1",
    TaskPriority.MEDIUM: "#E0B25B",
    TaskPriority.HIGH: "#E24A4A",
}


class TaskItemWidget(QWidget):
    def __init__(self, task: TaskEntity, time_format: TimeFormat, on_select=None, parent=None):
        super().__init__(parent)
        self.task = task
        self._on_select = on_select

        self.setObjectName("TaskCard")
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.setMinimumHeight(64)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 8, 12, 8)
        layout.setSpacing(8)

        self.select_check = QCheckBox()
        self.select_check.toggled.connect(self._handle_select)

        title = QLabel(task.title)
        title.setProperty("class", "task-title")
        title.setWordWrap(True)
        if task.completed:
            font = title.font()
            font.setStrikeOut(True)
            title.setFont(font)

        meta_parts = []
        time_label = format_time(task.time, time_format)
        if time_label:
            meta_parts.append(time_label)
        meta_parts.append(CATEGORY_LABELS.get(task.category, task.category.value))
        if task.is_review:
            meta_parts.append(f"مرحله مرور {task.review_stage}")
        if task.completed:
            meta_parts.append("انجام شده")
        meta = QLabel(" | ".join(meta_parts))
        meta.setProperty("class", "task-meta")
        meta.setWordWrap(True)

        text = QVBoxLayout()
        text.setSpacing(4)
        text.addWidget(title)
        text.addWidget(meta)
        if task.description:
            description = QLabel(task.description)
            description.setProperty("class", "task-meta")
            description.setWordWrap(True)
            text.addWidget(description)

        priority = QLabel(PRIORITY_LABELS.get(task.priority, task.priority.value))
        priority.setProperty("class", "task-priority")
        priority.setStyleSheet(
            f"background-color: {PRIORITY_COLORS.get(task.priority, '#9CA3AF')};"
        )
        priority.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)

        layout.addWidget(self.select_check, 0, Qt.AlignTop)
        layout.addLayout(text, 1)
        layout.addWidget(priority, 0, Qt.AlignTop)

    def _handle_select(self, checked: bool) -> None:
        if self._on_select:
            self._on_select(self.task.id, checked)


class TaskListWidget(QListWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setSpacing(6)

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.sync_item_sizes()

    def sync_item_sizes(self) -> None:
        viewport_width = self.viewport().width()
        for index in range(self.count()):
            item = self.item(index)
            widget = self.itemWidget(item)
            if widget:
                widget.setMaximumWidth(viewport_width)
                widget.adjustSize()
                item.setSizeHint(QSize(viewport_width, widget.sizeHint().height()))
