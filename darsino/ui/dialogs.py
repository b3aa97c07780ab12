from __future__ import annotations

from PySide6.QtCore import Qt, QTimer, QUrl
from PySide6.QtMultimedia import QSoundEffect
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QSpinBox,
    QTextEdit,
    QVBoxLayout,
)

from darsino.domain.calendar import MONTH_NAMES, WEEK_DAY_NAMES
from darsino.domain.entities import JalaliDate, TaskEntity
from darsino.domain.enums import AlarmSound, WeekDay
from darsino.domain.errors import TaskValidationError
from darsino.services.task_service import TaskService

from .sounds import tone_path
from .widgets import CATEGORY_OPTIONS, PRIORITY_OPTIONS


def build_date_inputs(date: JalaliDate) -> tuple[QSpinBox, QComboBox, QSpinBox]:
    day = QSpinBox()
    day.setRange(1, 31)
    day.setValue(date.day)

    month = QComboBox()
    for number, name in enumerate(MONTH_NAMES[1:], start=1):
        month.addItem(name, number)
    month.setCurrentIndex(date.month - 1)

    year = QSpinBox()
    year.setRange(1400, 1450)
    year.setValue(min(max(date.year, 1400), 1450))
    return day, month, year


class DateDialog(QDialog):
    def __init__(self, service: TaskService, parent=None):
        super().__init__(parent)
        self.service = service
        self.setWindowTitle("تنظیم تاریخ امروز")
        self.setLayoutDirection(Qt.RightToLeft)

        state = service.state
        self.day_input, self.month_input, self.year_input = build_date_inputs(state.current_date)

        self.week_day_input = QComboBox()
        for week_day in WeekDay:
            self.week_day_input.addItem(WEEK_DAY_NAMES[week_day], week_day.value)
        self.week_day_input.setCurrentIndex(self.week_day_input.findData(state.current_week_day.value))

        form = QFormLayout()
        form.addRow("روز", self.day_input)
        form.addRow("ماه", self.month_input)
        form.addRow("سال", self.year_input)
        form.addRow("روز هفته", self.week_day_input)

        save_button = QPushButton("ثبت تاریخ")
        save_button.clicked.connect(self.save)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(save_button)

    def save(self) -> None:
        try:
            self.service.set_current_date(
                self.day_input.value(),
                self.month_input.currentData(),
                self.year_input.value(),
                self.week_day_input.currentData(),
            )
        except TaskValidationError as exc:
            QMessageBox.warning(self, "خطا", str(exc))
            return
        self.accept()


class EditTaskDialog(QDialog):
    def __init__(self, service: TaskService, task: TaskEntity, parent=None):
        super().__init__(parent)
        self.service = service
        self.task = task
        self.setWindowTitle("ویرایش کار")
        self.setLayoutDirection(Qt.RightToLeft)
        self.resize(420, 360)

        self.title_input = QLineEdit(task.title)
        self.title_input.setMaxLength(200)
        self.time_input = QLineEdit(task.time or "")
        self.time_input.setPlaceholderText("HH:MM")
        self.description_input = QTextEdit()
        self.description_input.setPlainText(task.description)

        self.priority_combo = QComboBox()
        for label, value in PRIORITY_OPTIONS:
            self.priority_combo.addItem(label, value)
        self.priority_combo.setCurrentIndex(self.priority_combo.findData(task.priority.value))

        self.category_combo = QComboBox()
        for label, value in CATEGORY_OPTIONS:
            self.category_combo.addItem(label, value)
        self.category_combo.setCurrentIndex(self.category_combo.findData(task.category.value))

        form = QFormLayout()
        form.addRow("عنوان", self.title_input)
        form.addRow("زمان", self.time_input)
        form.addRow("توضیحات", self.description_input)
        form.addRow("اولویت", self.priority_combo)
        form.addRow("دسته", self.category_combo)

        save_button = QPushButton("ذخیره")
        save_button.clicked.connect(self.save)
        close_button = QPushButton("انصراف")
        close_button.setProperty("variant", "ghost")
        close_button.clicked.connect(self.reject)

        buttons = QHBoxLayout()
        buttons.addWidget(save_button)
        buttons.addWidget(close_button)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addLayout(buttons)

    def save(self) -> None:
        try:
            self.service.update_task(
                self.task.id,
                {
                    "title": self.title_input.text(),
                    "time": self.time_input.text(),
                    "description": self.description_input.toPlainText(),
                    "priority": self.priority_combo.currentData(),
                    "category": self.category_combo.currentData(),
                },
            )
        except TaskValidationError as exc:
            QMessageBox.warning(self, "خطا", str(exc))
            return
        self.accept()


class AlarmDialog(QDialog):
    """Rings for the configured duration until stopped."""

    def __init__(self, message: str, sound: AlarmSound, duration: int, volume: int, parent=None):
        super().__init__(parent)
        self.setWindowTitle("یادآوری")
        self.setLayoutDirection(Qt.RightToLeft)
        self.setFixedSize(360, 220)

        self.remaining = duration
        self.duration = duration
        self.effect = None
        if volume > 0:
            self.effect = QSoundEffect(self)
            self.effect.setSource(QUrl.fromLocalFile(str(tone_path(AlarmSound(sound)))))
            self.effect.setVolume(volume / 100)

        self.timer = QTimer(self)
        self.timer.setInterval(1000)
        self.timer.timeout.connect(self._tick)

        label = QLabel(message)
        label.setWordWrap(True)
        label.setObjectName("AlarmMessage")

        self.progress = QProgressBar()
        self.progress.setRange(0, 100)
        self.progress.setTextVisible(False)

        stop_button = QPushButton("توقف هشدار")
        stop_button.setProperty("variant", "danger")
        stop_button.clicked.connect(self.stop)

        card = QFrame()
        card.setObjectName("AlarmCard")
        card_layout = QVBoxLayout(card)
        card_layout.setContentsMargins(16, 16, 16, 16)
        card_layout.setSpacing(12)
        card_layout.addWidget(label)
        card_layout.addWidget(self.progress)
        card_layout.addWidget(stop_button)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.addWidget(card)

        self._update_progress()
        self._ring()
        self.timer.start()

    def stop(self) -> None:
        self.timer.stop()
        if self.effect:
            self.effect.stop()
        self.accept()

    def _tick(self) -> None:
        self.remaining -= 1
        self._update_progress()
        if self.remaining <= 0:
            self.timer.stop()
            return
        self._ring()

    def _ring(self) -> None:
        if self.effect:
            self.effect.play()

    def _update_progress(self) -> None:
        value = int((self.remaining / self.duration) * 100) if self.duration else 0
        self.progress.setValue(max(0, min(100, value)))
