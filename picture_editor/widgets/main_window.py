"""Main application window — ties together all widgets."""

import logging
import os

from PyQt6.QtWidgets import (
    QMainWindow, QSplitter, QToolBar, QStatusBar, QFileDialog, QMessageBox,
    QLabel, QWidget, QVBoxLayout, QHBoxLayout, QApplication, QLineEdit,
    QPushButton, QGroupBox, QComboBox, QPlainTextEdit, QTabWidget,
)
from PyQt6.QtCore import Qt, QSize
from PyQt6.QtGui import QAction, QIntValidator

from ..editor_session import EditorSession
from ..layer_store import BATCH_ATTRIBUTES, UP, DOWN
from ..picture_codec import DecodeError
from ..plugins_js import PluginsFileError
from ..settings import EditorSettings
from .image_browser import ImageBrowser, ThumbnailCache
from .layer_editor import LayerEditor
from .layer_list import LayerListWidget
from .target_layer_dialog import TargetLayerDialog

log = logging.getLogger(__name__)

DARK_STYLESHEET = """
QMainWindow, QDialog, QWidget {
    background-color: #1e1e2e;
    color: #cdd6f4;
}
QMenuBar, QToolBar {
    background-color: #181825;
    color: #cdd6f4;
    border-bottom: 1px solid #313244;
}
QMenuBar::item:selected, QToolBar QToolButton:hover {
    background-color: #313244;
}
QMenu {
    background-color: #1e1e2e;
    color: #cdd6f4;
    border: 1px solid #313244;
}
QMenu::item:selected {
    background-color: #45475a;
}
QTreeWidget, QTableWidget, QListWidget, QPlainTextEdit, QLineEdit, QComboBox {
    background-color: #181825;
    color: #cdd6f4;
    border: 1px solid #313244;
    selection-background-color: #45475a;
}
QHeaderView::section {
    background-color: #1e1e2e;
    color: #cdd6f4;
    border: 1px solid #313244;
    padding: 4px;
}
QPushButton {
    background-color: #313244;
    color: #cdd6f4;
    border: 1px solid #45475a;
    padding: 5px 15px;
    border-radius: 3px;
}
QPushButton:hover {
    background-color: #45475a;
}
QPushButton:disabled {
    color: #6c7086;
}
QStatusBar {
    background-color: #181825;
    color: #a6adc8;
}
QGroupBox {
    border: 1px solid #313244;
    border-radius: 4px;
    margin-top: 8px;
    padding-top: 16px;
}
QGroupBox::title {
    subcontrol-origin: margin;
    left: 10px;
}
QTabBar::tab {
    background-color: #181825;
    color: #a6adc8;
    padding: 6px 16px;
    border: 1px solid #313244;
}
QTabBar::tab:selected {
    background-color: #1e1e2e;
    color: #cdd6f4;
}
QSplitter::handle {
    background-color: #313244;
}
QCheckBox::indicator {
    width: 16px;
    height: 16px;
    border: 1px solid #45475a;
    border-radius: 3px;
    background-color: #181825;
}
QCheckBox::indicator:checked {
    background-color: #89b4fa;
    border-color: #89b4fa;
}
QMessageBox QLabel {
    min-width: 320px;
}
"""


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, settings: EditorSettings = None):
        super().__init__()
        self.setWindowTitle("Stand Picture Editor — CharacterPictureManager")
        self.setMinimumSize(1280, 760)

        self.settings = settings or EditorSettings.load()
        self.session = EditorSession(self.settings)
        self.thumbnails = ThumbnailCache(self.settings.thumbnail_size)
        self._current_uid = ""

        self._build_ui()
        self._build_menubar()
        self._build_toolbar()
        self._build_statusbar()
        self._connect_signals()

        self._apply_dark_mode()
        self._refresh_layers()

    # ── UI Setup ───────────────────────────────────────────────────

    def _build_ui(self):
        splitter = QSplitter(Qt.Orientation.Horizontal)

        # Left column: filter + layer list + bulk actions
        left = QWidget()
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(4, 4, 4, 4)

        filter_row = QHBoxLayout()
        filter_row.addWidget(QLabel("Actor ID:"))
        self.filter_edit = QLineEdit()
        self.filter_edit.setPlaceholderText("all")
        self.filter_edit.setValidator(QIntValidator(0, 99999, self.filter_edit))
        self.filter_edit.returnPressed.connect(self._apply_filter)
        filter_row.addWidget(self.filter_edit, 1)
        self.filter_btn = QPushButton("Filter")
        self.filter_btn.clicked.connect(self._apply_filter)
        filter_row.addWidget(self.filter_btn)
        self.clear_filter_btn = QPushButton("Show All")
        self.clear_filter_btn.clicked.connect(self._clear_filter)
        filter_row.addWidget(self.clear_filter_btn)
        left_layout.addLayout(filter_row)

        self.layer_list = LayerListWidget()
        left_layout.addWidget(self.layer_list, 1)

        layer_btns = QHBoxLayout()
        self.add_layer_btn = QPushButton("+ Layer")
        self.add_layer_btn.clicked.connect(self._add_layer)
        layer_btns.addWidget(self.add_layer_btn)
        self.layer_up_btn = QPushButton("↑")
        self.layer_up_btn.clicked.connect(lambda: self._move_layer(UP))
        layer_btns.addWidget(self.layer_up_btn)
        self.layer_down_btn = QPushButton("↓")
        self.layer_down_btn.clicked.connect(lambda: self._move_layer(DOWN))
        layer_btns.addWidget(self.layer_down_btn)
        layer_btns.addStretch()
        self.delete_layer_btn = QPushButton("Delete Layer")
        self.delete_layer_btn.clicked.connect(self._delete_layer)
        layer_btns.addWidget(self.delete_layer_btn)
        left_layout.addLayout(layer_btns)

        left_layout.addWidget(self._build_bulk_panel())
        splitter.addWidget(left)

        # Middle: editor for the current layer
        self.layer_editor = LayerEditor(self.session)
        self.layer_editor.thumbnail_provider = self.thumbnails.get
        self.layer_editor.confirm_deletes = self.settings.confirm_deletes
        splitter.addWidget(self.layer_editor)

        # Right: image browser + raw PictureList text
        self.side_tabs = QTabWidget()
        self.image_browser = ImageBrowser(self.session, self.thumbnails)
        self.side_tabs.addTab(self.image_browser, "Images")
        self.side_tabs.addTab(self._build_raw_panel(), "PictureList Text")
        splitter.addWidget(self.side_tabs)

        splitter.setSizes([340, 560, 380])
        self.setCentralWidget(splitter)

    def _build_bulk_panel(self) -> QGroupBox:
        group = QGroupBox("Checked Layers")
        layout = QVBoxLayout(group)

        row = QHBoxLayout()
        self.selected_label = QLabel("0 checked")
        row.addWidget(self.selected_label)
        row.addStretch()
        self.duplicate_btn = QPushButton("Duplicate")
        self.duplicate_btn.clicked.connect(self._duplicate_selected)
        row.addWidget(self.duplicate_btn)
        self.clear_sel_btn = QPushButton("Uncheck All")
        self.clear_sel_btn.clicked.connect(self._clear_selection)
        row.addWidget(self.clear_sel_btn)
        layout.addLayout(row)

        batch_row = QHBoxLayout()
        self.batch_combo = QComboBox()
        for key, label in BATCH_ATTRIBUTES.items():
            self.batch_combo.addItem(label, userData=key)
        batch_row.addWidget(self.batch_combo)
        self.batch_value = QLineEdit()
        self.batch_value.setPlaceholderText("value")
        self.batch_value.setValidator(QIntValidator(0, 99999, self.batch_value))
        batch_row.addWidget(self.batch_value, 1)
        self.batch_btn = QPushButton("Apply")
        self.batch_btn.clicked.connect(self._batch_apply)
        batch_row.addWidget(self.batch_btn)
        layout.addLayout(batch_row)
        return group

    def _build_raw_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.addWidget(QLabel("Paste a PictureList parameter value, or export the current one:"))
        self.raw_edit = QPlainTextEdit()
        self.raw_edit.setLineWrapMode(QPlainTextEdit.LineWrapMode.WidgetWidth)
        layout.addWidget(self.raw_edit, 1)

        btn_row = QHBoxLayout()
        load_btn = QPushButton("Load")
        load_btn.clicked.connect(self._load_text)
        btn_row.addWidget(load_btn)
        export_btn = QPushButton("Export")
        export_btn.clicked.connect(self._export_text)
        btn_row.addWidget(export_btn)
        btn_row.addStretch()
        copy_btn = QPushButton("Copy to Clipboard")
        copy_btn.clicked.connect(self._copy_export)
        btn_row.addWidget(copy_btn)
        layout.addLayout(btn_row)
        return panel

    def _build_menubar(self):
        menubar = self.menuBar()

        # ── Project menu ──────────────────────────────────────────
        project_menu = menubar.addMenu("Project")

        self.open_action = QAction("Open Project...", self)
        self.open_action.setShortcut("Ctrl+O")
        self.open_action.triggered.connect(self._open_project)
        project_menu.addAction(self.open_action)

        self.save_action = QAction("Save to plugins.js", self)
        self.save_action.setShortcut("Ctrl+S")
        self.save_action.triggered.connect(self._save_to_project)
        self.save_action.setEnabled(False)
        project_menu.addAction(self.save_action)

        self.rescan_action = QAction("Rescan Images", self)
        self.rescan_action.setShortcut("F5")
        self.rescan_action.triggered.connect(self._rescan_images)
        self.rescan_action.setEnabled(False)
        project_menu.addAction(self.rescan_action)

        project_menu.addSeparator()
        exit_action = QAction("Exit", self)
        exit_action.triggered.connect(self.close)
        project_menu.addAction(exit_action)

        # ── Text menu ─────────────────────────────────────────────
        text_menu = menubar.addMenu("Text")

        self.load_action = QAction("Load from Text", self)
        self.load_action.triggered.connect(self._load_text)
        text_menu.addAction(self.load_action)

        self.export_action = QAction("Export to Text", self)
        self.export_action.setShortcut("Ctrl+E")
        self.export_action.triggered.connect(self._export_text)
        text_menu.addAction(self.export_action)

        self.copy_action = QAction("Copy Export", self)
        self.copy_action.setShortcut("Ctrl+Shift+C")
        self.copy_action.triggered.connect(self._copy_export)
        text_menu.addAction(self.copy_action)

        # ── Options ───────────────────────────────────────────────
        options_menu = menubar.addMenu("Options")

        self.dark_action = QAction("Dark Mode", self)
        self.dark_action.setCheckable(True)
        self.dark_action.setChecked(self.settings.dark_mode)
        self.dark_action.toggled.connect(self._toggle_dark_mode)
        options_menu.addAction(self.dark_action)

        self.confirm_action = QAction("Confirm Deletes", self)
        self.confirm_action.setCheckable(True)
        self.confirm_action.setChecked(self.settings.confirm_deletes)
        self.confirm_action.toggled.connect(self._toggle_confirm_deletes)
        options_menu.addAction(self.confirm_action)

    def _build_toolbar(self):
        toolbar = QToolBar("Quick Actions")
        toolbar.setIconSize(QSize(20, 20))
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        toolbar.addAction(self.open_action)
        toolbar.addAction(self.save_action)
        toolbar.addSeparator()
        toolbar.addAction(self.export_action)
        toolbar.addAction(self.copy_action)

    def _build_statusbar(self):
        self.statusbar = QStatusBar()
        self.setStatusBar(self.statusbar)
        self.count_label = QLabel("")
        self.statusbar.addPermanentWidget(self.count_label)

    def _connect_signals(self):
        self.layer_list.layer_selected.connect(self._on_layer_selected)
        self.layer_list.check_toggled.connect(self._on_check_toggled)
        self.layer_editor.layers_changed.connect(self._refresh_layers)
        self.layer_editor.status_message.connect(self._notify)
        self.image_browser.add_requested.connect(self._add_selected_images)

    # ── Rendering ──────────────────────────────────────────────────

    def _refresh_layers(self):
        """Re-render the list from the store and keep the editor in step."""
        store = self.session.store
        visible = self.session.visible_layers()
        if not store.is_visible(self._current_uid):
            self._current_uid = visible[0].uid if visible else ""
        self.layer_list.set_layers(visible, store.selected_ids, self._current_uid)
        self.layer_editor.set_layer(self._current_uid)

        n_checked = len(store.selected_ids)
        self.selected_label.setText(f"{n_checked} checked")
        self.duplicate_btn.setEnabled(n_checked > 0)
        self.batch_btn.setEnabled(n_checked > 0)

        shown = f"{len(visible)}/{len(store)}" if store.is_filtered else str(len(store))
        self.count_label.setText(f"Layers: {shown}")

    def _notify(self, message: str):
        self.statusbar.showMessage(message, 5000)

    def _on_layer_selected(self, uid: str):
        self._current_uid = uid
        self.layer_editor.set_layer(uid)

    def _on_check_toggled(self, uid: str, checked: bool):
        self.session.toggle_select(uid, checked)
        self._refresh_layers()

    # ── Filter / selection ─────────────────────────────────────────

    def _apply_filter(self):
        if not self.session.apply_filter(self.filter_edit.text()):
            self._notify("Enter an actor ID to filter by")
            return
        self._refresh_layers()

    def _clear_filter(self):
        self.filter_edit.clear()
        self.session.clear_filter()
        self._refresh_layers()

    def _clear_selection(self):
        self.session.clear_selection()
        self._refresh_layers()

    def _duplicate_selected(self):
        copies = self.session.duplicate_selected()
        if copies:
            self._notify(f"Duplicated {len(copies)} layer(s)")
            self._refresh_layers()

    def _batch_apply(self):
        key = self.batch_combo.currentData()
        changed = self.session.batch_set_attribute(key, self.batch_value.text())
        if changed:
            self._notify(f"Set {BATCH_ATTRIBUTES[key]} = {self.batch_value.text().strip()} "
                         f"on {changed} layer(s)")
            self._refresh_layers()

    # ── Layer actions ──────────────────────────────────────────────

    def _add_layer(self):
        layer = self.session.add_layer()
        self._current_uid = layer.uid
        self._refresh_layers()

    def _move_layer(self, direction):
        if self.session.move_layer(self.layer_list.current_uid(), direction):
            self._refresh_layers()

    def _delete_layer(self):
        request = self.session.request_delete_layer(self.layer_list.current_uid())
        if request is None:
            return
        if self.settings.confirm_deletes:
            reply = QMessageBox.question(
                self, "Delete Layer", request.message,
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                request.cancel()
                return
        request.confirm()
        self._refresh_layers()

    def _add_selected_images(self):
        request = self.session.request_add_selected_images()
        if request is None:
            return
        dialog = TargetLayerDialog(request, self)
        if dialog.exec() != TargetLayerDialog.DialogCode.Accepted:
            request.cancel()
            return
        layer, added = request.resolve(dialog.get_target())
        if layer is None:
            self._notify("Target layer no longer exists")
        else:
            self._current_uid = layer.uid
            self._notify(f"Added {added} image(s) to {layer.label()}")
        self.image_browser.update_selection()
        self._refresh_layers()

    # ── Text load / export ─────────────────────────────────────────

    def _load_text(self):
        self.side_tabs.setCurrentIndex(1)
        try:
            count = self.session.load(self.raw_edit.toPlainText())
        except DecodeError as exc:
            QMessageBox.warning(self, "Invalid PictureList", str(exc))
            return
        if count < 0:
            self._notify("Nothing to load")
            return
        self._current_uid = ""
        self._refresh_layers()
        self._notify(f"Loaded {count} layer(s)")

    def _export_text(self):
        self.raw_edit.setPlainText(self.session.export())
        self.side_tabs.setCurrentIndex(1)
        self._notify(f"Exported {len(self.session.store)} layer(s)")

    def _copy_export(self):
        text = self.session.copy_export_to_clipboard(QApplication.clipboard())
        self.raw_edit.setPlainText(text)
        self._notify("PictureList copied to clipboard")

    # ── Project ────────────────────────────────────────────────────

    def _open_project(self):
        """Open an RPG Maker MV/MZ project folder."""
        start = self.settings.last_project_dir if os.path.isdir(self.settings.last_project_dir) else ""
        path = QFileDialog.getExistingDirectory(
            self, "Select RPG Maker MV/MZ Project Folder", start
        )
        if not path:
            return
        try:
            count = self.session.open_project(path)
        except PluginsFileError as exc:
            QMessageBox.warning(self, "Cannot Open Project", str(exc))
            return
        except DecodeError as exc:
            QMessageBox.warning(self, "Invalid PictureList",
                                f"The {self.settings.parameter_name} parameter could not be read:\n{exc}")
            return

        self.thumbnails.set_project(path, self.settings.pictures_subdir,
                                    self.session.encryption_key)
        self.settings.save()
        self.save_action.setEnabled(True)
        self.rescan_action.setEnabled(True)
        self.setWindowTitle(f"Stand Picture Editor — {os.path.basename(path)}")
        self._current_uid = ""
        self._refresh_layers()
        self.image_browser.refresh()
        self._notify(f"Loaded {count} layer(s), {len(self.session.available_images)} image(s)")

    def _save_to_project(self):
        try:
            path = self.session.save_to_project()
        except (PluginsFileError, OSError, RuntimeError) as exc:
            QMessageBox.critical(self, "Save Failed", str(exc))
            return
        self._notify(f"Saved to {path}")

    def _rescan_images(self):
        self.session.scan_available_images()
        self.image_browser.refresh()
        self._notify(f"Found {len(self.session.available_images)} image(s)")

    # ── Options ────────────────────────────────────────────────────

    def _apply_dark_mode(self):
        app = QApplication.instance()
        if self.settings.dark_mode:
            app.setStyleSheet(DARK_STYLESHEET)
        else:
            app.setStyleSheet("")

    def _toggle_dark_mode(self, checked: bool):
        self.settings.dark_mode = checked
        self._apply_dark_mode()
        self.settings.save()

    def _toggle_confirm_deletes(self, checked: bool):
        self.settings.confirm_deletes = checked
        self.layer_editor.confirm_deletes = checked
        self.settings.save()

    def closeEvent(self, event):
        """Stop the thumbnail worker and persist settings."""
        self.image_browser.shutdown()
        self.settings.save()
        super().closeEvent(event)
