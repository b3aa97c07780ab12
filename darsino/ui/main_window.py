from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QTabWidget,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from darsino.config import SETTINGS
from darsino.domain.entities import TaskEntity
from darsino.domain.enums import (
    AlarmSound,
    DateOption,
    StudyDateMode,
    Theme,
    TimeFormat,
)
from darsino.domain.errors import BackupError, DuplicateTaskError, TaskValidationError
from darsino.domain.filters import TaskFilters
from darsino.domain.formatting import format_date, format_time
from darsino.infra.repository import StorageRepository
from darsino.services.alarm_service import AlarmService
from darsino.services.task_service import TaskService

from .dialogs import AlarmDialog, DateDialog, EditTaskDialog, build_date_inputs
from .widgets import CATEGORY_OPTIONS, PRIORITY_OPTIONS, TaskItemWidget, TaskListWidget

logger = logging.getLogger(__name__)

DATE_OPTIONS = [
    ("امروز", DateOption.TODAY.value),
    ("فردا", DateOption.TOMORROW.value),
    ("تاریخ دلخواه", DateOption.CUSTOM.value),
]

PRIORITY_FILTERS = [("همه اولویت‌ها", "all")] + PRIORITY_OPTIONS

STATUS_FILTERS = [
    ("همه", "all"),
    ("انجام شده", "completed"),
    ("در انتظار", "pending"),
]

THEME_OPTIONS = [
    ("سیستم", Theme.SYSTEM.value),
    ("روشن", Theme.LIGHT.value),
    ("تیره", Theme.DARK.value),
]

TIME_FORMAT_OPTIONS = [
    ("۲۴ ساعته", TimeFormat.H24.value),
    ("۱۲ ساعته", TimeFormat.H12.value),
]

STUDY_DATE_OPTIONS = [
    ("همان روز", StudyDateMode.SAME_DAY.value),
    ("روز بعد", StudyDateMode.NEXT_DAY.value),
]

SOUND_OPTIONS = [
    ("زنگ", AlarmSound.BELL.value),
    ("ناقوس", AlarmSound.CHIME.value),
    ("دیجیتال", AlarmSound.DIGITAL.value),
]


def _select_data(combo: QComboBox, value) -> None:
    index = combo.findData(value)
    if index >= 0:
        combo.setCurrentIndex(index)


class MainWindow(QWidget):
    def __init__(self, on_theme_changed=None):
        super().__init__()
        self.setWindowTitle("درسینو")
        self.setLayoutDirection(Qt.RightToLeft)
        self.resize(1100, 760)

        self.service = TaskService(StorageRepository())
        self.service.load()
        self.alarms = AlarmService()
        self.selected_ids: set[str] = set()
        self._on_theme_changed = on_theme_changed

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.addLayout(self._build_header())

        self.tabs = QTabWidget()
        self.tabs.addTab(self._build_tasks_tab(), "کارها")
        self.tabs.addTab(self._build_study_tab(), "برنامه مطالعه")
        self.tabs.addTab(self._build_archive_tab(), "آرشیو")
        self.tabs.addTab(self._build_settings_tab(), "تنظیمات")
        layout.addWidget(self.tabs)

        self.alarm_timer = QTimer(self)
        self.alarm_timer.setInterval(SETTINGS.alarm_check_seconds * 1000)
        self.alarm_timer.timeout.connect(self.check_alarms)
        self.alarm_timer.start()

        QShortcut(QKeySequence("Ctrl+N"), self, self.title_input.setFocus)
        QShortcut(QKeySequence("Ctrl+Right"), self, self.go_to_next_day)

        self.update_settings_ui()
        self.refresh_all()
        if not self.service.has_stored_date:
            QTimer.singleShot(0, self.show_date_dialog)

    # -- layout ------------------------------------------------------------------

    def _build_header(self) -> QHBoxLayout:
        header = QHBoxLayout()
        self.date_label = QLabel("")
        self.date_label.setProperty("class", "panel-title")
        self.counter_label = QLabel("")
        self.counter_label.setProperty("class", "stats-badge")

        set_date_button = QPushButton("تنظیم تاریخ")
        set_date_button.setProperty("variant", "secondary")
        set_date_button.clicked.connect(self.show_date_dialog)

        next_day_button = QPushButton("روز بعد")
        next_day_button.clicked.connect(self.go_to_next_day)

        header.addWidget(self.date_label)
        header.addWidget(self.counter_label)
        header.addStretch()
        header.addWidget(set_date_button)
        header.addWidget(next_day_button)
        return header

    def _build_tasks_tab(self) -> QWidget:
        tab = QWidget()
        layout = QHBoxLayout(tab)

        form_frame = QFrame()
        form_frame.setObjectName("TaskForm")
        form = QFormLayout(form_frame)

        self.title_input = QLineEdit()
        self.title_input.setMaxLength(200)
        self.title_input.setPlaceholderText("عنوان کار")
        self.time_input = QLineEdit()
        self.time_input.setPlaceholderText("HH:MM")
        self.description_input = QTextEdit()
        self.description_input.setMaximumHeight(100)

        self.priority_combo = QComboBox()
        for label, value in PRIORITY_OPTIONS:
            self.priority_combo.addItem(label, value)
        self.priority_combo.setCurrentIndex(1)

        self.category_combo = QComboBox()
        for label, value in CATEGORY_OPTIONS:
            self.category_combo.addItem(label, value)

        self.date_option_combo = QComboBox()
        for label, value in DATE_OPTIONS:
            self.date_option_combo.addItem(label, value)
        self.date_option_combo.currentIndexChanged.connect(self.toggle_custom_date)

        self.custom_day, self.custom_month, self.custom_year = build_date_inputs(
            self.service.state.current_date
        )
        custom_row = QHBoxLayout()
        custom_row.addWidget(self.custom_day)
        custom_row.addWidget(self.custom_month)
        custom_row.addWidget(self.custom_year)
        self.custom_date_frame = QFrame()
        self.custom_date_frame.setLayout(custom_row)
        self.custom_date_frame.setVisible(False)

        add_button = QPushButton("افزودن کار")
        add_button.clicked.connect(self.add_task)

        form.addRow("عنوان", self.title_input)
        form.addRow("زمان", self.time_input)
        form.addRow("توضیحات", self.description_input)
        form.addRow("اولویت", self.priority_combo)
        form.addRow("دسته", self.category_combo)
        form.addRow("تاریخ", self.date_option_combo)
        form.addRow("", self.custom_date_frame)
        form.addRow(add_button)

        list_frame = QFrame()
        list_layout = QVBoxLayout(list_frame)

        filters = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("جستجو")
        self._search_timer = QTimer(self)
        self._search_timer.setSingleShot(True)
        self._search_timer.setInterval(300)
        self._search_timer.timeout.connect(self.refresh_tasks)
        self.search_input.textChanged.connect(lambda _text: self._search_timer.start())

        self.priority_filter = QComboBox()
        for label, value in PRIORITY_FILTERS:
            self.priority_filter.addItem(label, value)
        self.priority_filter.currentIndexChanged.connect(self.refresh_tasks)

        self.status_filter = QComboBox()
        for label, value in STATUS_FILTERS:
            self.status_filter.addItem(label, value)
        self.status_filter.currentIndexChanged.connect(self.refresh_tasks)

        filters.addWidget(self.search_input, 1)
        filters.addWidget(self.priority_filter)
        filters.addWidget(self.status_filter)

        self.stats_label = QLabel("")
        self.stats_label.setProperty("class", "stats-badge")

        self.task_list = TaskListWidget()
        self.task_list.setObjectName("TaskList")
        self.task_list.itemDoubleClicked.connect(self.on_task_double_clicked)

        actions = QHBoxLayout()
        toggle_button = QPushButton("انجام شد / نشد")
        toggle_button.setProperty("variant", "secondary")
        toggle_button.clicked.connect(self.toggle_selected)
        edit_button = QPushButton("ویرایش")
        edit_button.setProperty("variant", "secondary")
        edit_button.clicked.connect(self.edit_selected)
        delete_button = QPushButton("حذف")
        delete_button.setProperty("variant", "danger")
        delete_button.clicked.connect(self.delete_selected)
        actions.addWidget(toggle_button)
        actions.addWidget(edit_button)
        actions.addWidget(delete_button)
        actions.addStretch()

        list_layout.addLayout(filters)
        list_layout.addWidget(self.stats_label)
        list_layout.addWidget(self.task_list)
        list_layout.addLayout(actions)

        layout.addWidget(form_frame, 2)
        layout.addWidget(list_frame, 3)
        return tab

    def _build_study_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)
        self.study_stats_label = QLabel("")
        self.study_stats_label.setProperty("class", "stats-badge")
        self.study_list = QListWidget()
        self.study_list.setObjectName("StudyList")
        layout.addWidget(self.study_stats_label)
        layout.addWidget(self.study_list)
        return tab

    def _build_archive_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)
        self.archive_day, self.archive_month, self.archive_year = build_date_inputs(
            self.service.state.current_date
        )
        load_button = QPushButton("نمایش")
        load_button.clicked.connect(self.load_archive)

        row = QHBoxLayout()
        row.addWidget(self.archive_day)
        row.addWidget(self.archive_month)
        row.addWidget(self.archive_year)
        row.addWidget(load_button)
        row.addStretch()

        self.archive_list = TaskListWidget()
        layout.addLayout(row)
        layout.addWidget(self.archive_list)
        return tab

    def _build_settings_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        display = QFormLayout()
        self.theme_combo = QComboBox()
        for label, value in THEME_OPTIONS:
            self.theme_combo.addItem(label, value)
        self.theme_combo.currentIndexChanged.connect(self.change_display_settings)
        self.time_format_combo = QComboBox()
        for label, value in TIME_FORMAT_OPTIONS:
            self.time_format_combo.addItem(label, value)
        self.time_format_combo.currentIndexChanged.connect(self.change_display_settings)
        display.addRow("پوسته", self.theme_combo)
        display.addRow("قالب زمان", self.time_format_combo)

        review = QFormLayout()
        self.gap_inputs = []
        for index in range(3):
            spin = QSpinBox()
            spin.setRange(0, 365)
            spin.setSuffix(" روز")
            self.gap_inputs.append(spin)
            review.addRow(f"فاصله مرور {index + 1}", spin)
        self.study_date_combo = QComboBox()
        for label, value in STUDY_DATE_OPTIONS:
            self.study_date_combo.addItem(label, value)
        review.addRow("مبنای مرور", self.study_date_combo)
        save_review = QPushButton("ذخیره تنظیمات مرور")
        save_review.clicked.connect(self.save_review_settings)
        review.addRow(save_review)

        alarm = QFormLayout()
        self.sound_combo = QComboBox()
        for label, value in SOUND_OPTIONS:
            self.sound_combo.addItem(label, value)
        self.duration_input = QSpinBox()
        self.duration_input.setRange(1, 30)
        self.duration_input.setSuffix(" ثانیه")
        self.volume_input = QSpinBox()
        self.volume_input.setRange(0, 100)
        self.volume_input.setSuffix("%")
        test_alarm = QPushButton("آزمایش هشدار")
        test_alarm.setProperty("variant", "secondary")
        test_alarm.clicked.connect(self.test_alarm)
        save_alarm = QPushButton("ذخیره تنظیمات هشدار")
        save_alarm.clicked.connect(self.save_alarm_settings)
        alarm.addRow("صدا", self.sound_combo)
        alarm.addRow("مدت", self.duration_input)
        alarm.addRow("بلندی", self.volume_input)
        alarm_buttons = QHBoxLayout()
        alarm_buttons.addWidget(test_alarm)
        alarm_buttons.addWidget(save_alarm)
        alarm.addRow(alarm_buttons)

        data = QHBoxLayout()
        export_button = QPushButton("پشتیبان‌گیری")
        export_button.setProperty("variant", "secondary")
        export_button.clicked.connect(self.export_data)
        import_button = QPushButton("بازیابی")
        import_button.setProperty("variant", "secondary")
        import_button.clicked.connect(self.import_data)
        clear_button = QPushButton("پاک کردن همه داده‌ها")
        clear_button.setProperty("variant", "danger")
        clear_button.clicked.connect(self.clear_all_data)
        data.addWidget(export_button)
        data.addWidget(import_button)
        data.addWidget(clear_button)
        data.addStretch()

        for title, section in (
            ("نمایش", display),
            ("مرور هوشمند", review),
            ("هشدار", alarm),
            ("داده‌ها", data),
        ):
            label = QLabel(title)
            label.setProperty("class", "section-title")
            layout.addWidget(label)
            layout.addLayout(section)
        layout.addStretch()
        return tab

    # -- refresh -----------------------------------------------------------------

    def refresh_all(self) -> None:
        self.update_current_date_display()
        self.refresh_tasks()
        self.render_study_schedule()

    def update_current_date_display(self) -> None:
        state = self.service.state
        self.date_label.setText(self.service.current_date_label())
        self.counter_label.setText(f"روز {state.day_counter}")

    def refresh_tasks(self) -> None:
        filters = TaskFilters(
            search=self.search_input.text().strip() or None,
            priority=self.priority_filter.currentData(),
            status=self.status_filter.currentData(),
        )
        tasks = self.service.list_tasks(filters=filters)
        self.selected_ids.clear()
        self._fill_list(self.task_list, tasks, self.on_task_checked)

        stats = self.service.quick_stats()
        self.stats_label.setText(
            f"کل: {stats['total']} • انجام شده: {stats['completed']} • "
            f"در انتظار: {stats['pending']} • مطالعه: {stats['study']}"
        )

    def _fill_list(self, list_widget: TaskListWidget, tasks: list[TaskEntity], on_select=None) -> None:
        time_format = self.service.state.settings.time_format
        list_widget.clear()
        for task in tasks:
            item = QListWidgetItem()
            item.setData(Qt.UserRole, task.id)
            widget = TaskItemWidget(task, time_format, on_select)
            list_widget.addItem(item)
            list_widget.setItemWidget(item, widget)
            item.setSizeHint(widget.sizeHint())
        list_widget.sync_item_sizes()

    def render_study_schedule(self) -> None:
        stats = self.service.study_stats()
        self.study_stats_label.setText(
            f"کارهای مطالعه: {stats['study_tasks']} • مرورهای امروز: {stats['reviews_today']} • "
            f"مرورهای باقی‌مانده: {stats['pending_reviews']} • مرورهای انجام شده: {stats['completed_reviews']}"
        )
        time_format = self.service.state.settings.time_format
        self.study_list.clear()
        for review_date, task in self.service.study_schedule():
            time_label = format_time(task.time, time_format)
            text = f"{format_date(review_date)} - {task.title}"
            if time_label:
                text = f"{text} ({time_label})"
            self.study_list.addItem(text)

    def update_settings_ui(self) -> None:
        settings = self.service.state.settings
        for combo in (self.theme_combo, self.time_format_combo):
            combo.blockSignals(True)
        _select_data(self.theme_combo, settings.theme.value)
        _select_data(self.time_format_combo, settings.time_format.value)
        for combo in (self.theme_combo, self.time_format_combo):
            combo.blockSignals(False)

        for spin, gap in zip(self.gap_inputs, settings.review_gaps.as_tuple()):
            spin.setValue(gap)
        _select_data(self.study_date_combo, settings.study_date_mode.value)
        _select_data(self.sound_combo, settings.alarm_sound.value)
        self.duration_input.setValue(settings.alarm_duration)
        self.volume_input.setValue(settings.alarm_volume)

    # -- date --------------------------------------------------------------------

    def show_date_dialog(self) -> None:
        dialog = DateDialog(self.service, self)
        if dialog.exec():
            self.alarms.reset()
            self.refresh_all()

    def go_to_next_day(self) -> None:
        self.service.go_to_next_day()
        self.alarms.reset()
        self.refresh_all()

    # -- tasks -------------------------------------------------------------------

    def toggle_custom_date(self) -> None:
        self.custom_date_frame.setVisible(self.date_option_combo.currentData() == DateOption.CUSTOM.value)

    def add_task(self) -> None:
        data = {
            "title": self.title_input.text(),
            "time": self.time_input.text(),
            "description": self.description_input.toPlainText(),
            "priority": self.priority_combo.currentData(),
            "category": self.category_combo.currentData(),
        }
        option = self.date_option_combo.currentData()
        custom = (self.custom_day.value(), self.custom_month.currentData(), self.custom_year.value())
        try:
            try:
                self.service.add_task(data, option, custom)
            except DuplicateTaskError as exc:
                confirm = QMessageBox.question(self, "تأیید عملیات", str(exc))
                if confirm != QMessageBox.Yes:
                    return
                self.service.add_task(data, option, custom, allow_duplicate=True)
        except TaskValidationError as exc:
            QMessageBox.warning(self, "خطا", str(exc))
            return

        self.title_input.clear()
        self.time_input.clear()
        self.description_input.clear()
        self.category_combo.setCurrentIndex(0)
        self.date_option_combo.setCurrentIndex(0)
        self.refresh_all()

    def on_task_checked(self, task_id: str, checked: bool) -> None:
        if checked:
            self.selected_ids.add(task_id)
        else:
            self.selected_ids.discard(task_id)

    def on_task_double_clicked(self, item: QListWidgetItem) -> None:
        self._open_editor(item.data(Qt.UserRole))

    def toggle_selected(self) -> None:
        for task_id in list(self.selected_ids):
            self.service.toggle_completed(task_id)
        self.refresh_all()

    def edit_selected(self) -> None:
        if len(self.selected_ids) != 1:
            QMessageBox.information(self, "ویرایش", "لطفاً فقط یک کار را انتخاب کنید")
            return
        self._open_editor(next(iter(self.selected_ids)))

    def _open_editor(self, task_id: str) -> None:
        found = self.service.find_task(task_id)
        if not found:
            return
        dialog = EditTaskDialog(self.service, found[1], self)
        if dialog.exec():
            self.refresh_all()

    def delete_selected(self) -> None:
        if not self.selected_ids:
            return
        confirm = QMessageBox.question(
            self,
            "تأیید عملیات",
            f"{len(self.selected_ids)} کار حذف شود؟",
        )
        if confirm != QMessageBox.Yes:
            return
        self.service.delete_tasks(self.selected_ids)
        self.refresh_all()

    def load_archive(self) -> None:
        try:
            tasks = self.service.archive(
                self.archive_day.value(),
                self.archive_month.currentData(),
                self.archive_year.value(),
            )
        except TaskValidationError as exc:
            QMessageBox.warning(self, "خطا", str(exc))
            return
        self._fill_list(self.archive_list, tasks)

    # -- settings ----------------------------------------------------------------

    def change_display_settings(self) -> None:
        settings = self.service.update_display_settings(
            theme=self.theme_combo.currentData(),
            time_format=self.time_format_combo.currentData(),
        )
        if self._on_theme_changed:
            self._on_theme_changed(settings.theme)
        self.refresh_all()

    def save_review_settings(self) -> None:
        try:
            self.service.update_review_settings(
                *(spin.value() for spin in self.gap_inputs),
                study_date_mode=self.study_date_combo.currentData(),
            )
        except TaskValidationError as exc:
            QMessageBox.warning(self, "خطا", str(exc))
            return
        QMessageBox.information(self, "تنظیمات", "تنظیمات مرور ذخیره شد")

    def save_alarm_settings(self) -> None:
        try:
            self.service.update_alarm_settings(
                self.sound_combo.currentData(),
                self.duration_input.value(),
                self.volume_input.value(),
            )
        except TaskValidationError as exc:
            QMessageBox.warning(self, "خطا", str(exc))
            return
        QMessageBox.information(self, "تنظیمات", "تنظیمات هشدار ذخیره شد")

    def test_alarm(self) -> None:
        AlarmDialog(
            "این یک هشدار آزمایشی است",
            AlarmSound(self.sound_combo.currentData()),
            self.duration_input.value(),
            self.volume_input.value(),
            self,
        ).exec()

    def check_alarms(self) -> None:
        now = datetime.now().strftime("%H:%M")
        settings = self.service.state.settings
        for task in self.alarms.due_tasks(self.service.state, now):
            AlarmDialog(
                f"زمان انجام کار: {task.title}",
                settings.alarm_sound,
                settings.alarm_duration,
                settings.alarm_volume,
                self,
            ).exec()

    # -- data --------------------------------------------------------------------

    def export_data(self) -> None:
        directory = QFileDialog.getExistingDirectory(self, "پشتیبان‌گیری", str(Path.home()))
        if not directory:
            return
        try:
            path = self.service.export_bundle(Path(directory))
        except OSError:
            logger.exception("Export failed")
            QMessageBox.warning(self, "خطا", "خطا در ایجاد فایل پشتیبان")
            return
        QMessageBox.information(self, "پشتیبان‌گیری", f"فایل پشتیبان ذخیره شد:\n{path}")

    def import_data(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self,
            "بازیابی",
            str(Path.home()),
            "JSON Files (*.json)",
        )
        if not path:
            return
        try:
            warnings = self.service.import_bundle(Path(path))
        except BackupError as exc:
            QMessageBox.warning(self, "خطا", str(exc))
            return
        for warning in warnings:
            QMessageBox.warning(self, "هشدار", warning)
        self.update_settings_ui()
        if self._on_theme_changed:
            self._on_theme_changed(self.service.state.settings.theme)
        self.refresh_all()
        QMessageBox.information(self, "بازیابی", "داده‌ها با موفقیت بازیابی شدند")

    def clear_all_data(self) -> None:
        confirm = QMessageBox.question(
            self,
            "تأیید عملیات",
            "همه داده‌ها برای همیشه پاک شوند؟",
        )
        if confirm != QMessageBox.Yes:
            return
        self.service.clear_all_data()
        self.alarms.reset()
        self.update_settings_ui()
        self.refresh_all()
        self.show_date_dialog()
