"""Layer editor — attribute form plus the layer's image (FileList) table."""

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFormLayout, QGridLayout, QGroupBox,
    QLineEdit, QCheckBox, QPushButton, QLabel, QTableWidget, QTableWidgetItem,
    QHeaderView, QAbstractItemView, QComboBox, QMessageBox,
)
from PyQt6.QtCore import Qt, QSize, pyqtSignal
from PyQt6.QtGui import QIntValidator

from ..layer_store import LayerStore, UP, DOWN
from ..picture_model import VARIABLE_OPERATORS

# (external key, label) for the plain text inputs of the layer form
_LAYER_FIELDS = [
    ("Name", "Layer Name"),
    ("ActorId", "Actor ID"),
    ("Opacity", "Opacity"),
    ("X", "X"),
    ("Y", "Y"),
    ("ScaleX", "Scale X (%)"),
    ("ScaleY", "Scale Y (%)"),
]

_SWITCH_FIELDS = [
    ("ShowPictureSwitch", "Layer Switch"),
    ("UnFocusSwitch", "Unfocus Switch"),
    ("MirrorSwitch", "Invert Switch"),
    ("TouchSwitch", "Touch Switch"),
]

# File table columns: (external key, header)
_FILE_COLUMNS = [
    ("FileName", "File Name"),
    ("Switch", "Switch ID"),
    ("Variable", "Variable ID"),
    ("VariableType", "Op"),
    ("VariableOperand", "Operand"),
    ("Armor", "Armor ID"),
    ("Note", "Memo (Note)"),
]
_COL_OPERATOR = 3

_NUMERIC_KEYS = {"ActorId", "Opacity", "X", "Y", "ScaleX", "ScaleY",
                 "ShowPictureSwitch", "UnFocusSwitch", "MirrorSwitch", "TouchSwitch"}


class LayerEditor(QWidget):
    """Edits the layer currently picked in the layer list."""

    layers_changed = pyqtSignal()        # list rows need a refresh
    status_message = pyqtSignal(str)

    def __init__(self, session, parent=None):
        super().__init__(parent)
        self.session = session
        self.thumbnail_provider = None   # callable(picture) -> QIcon | None
        self.confirm_deletes = True
        self._uid = ""
        self._populating = False
        self._build_ui()
        self.set_layer("")

    def _build_ui(self):
        layout = QVBoxLayout(self)

        # ── Layer attributes ─────────────────────────────────────
        attr_group = QGroupBox("Layer")
        form = QFormLayout(attr_group)
        self._inputs = {}
        for key, label in _LAYER_FIELDS:
            edit = QLineEdit()
            if key in _NUMERIC_KEYS and key not in ("X", "Y"):
                edit.setValidator(QIntValidator(0, 99999, edit))
            edit.editingFinished.connect(lambda k=key: self._on_layer_edited(k))
            form.addRow(f"{label}:", edit)
            self._inputs[key] = edit

        self.shake_check = QCheckBox("Exempt from screen shake")
        self.shake_check.toggled.connect(self._on_shake_toggled)
        form.addRow("", self.shake_check)

        switch_grid = QGridLayout()
        for i, (key, label) in enumerate(_SWITCH_FIELDS):
            edit = QLineEdit()
            edit.setValidator(QIntValidator(0, 99999, edit))
            edit.editingFinished.connect(lambda k=key: self._on_layer_edited(k))
            switch_grid.addWidget(QLabel(label), 0, i)
            switch_grid.addWidget(edit, 1, i)
            self._inputs[key] = edit
        form.addRow(switch_grid)

        self.variable_edit = QLineEdit()
        self.variable_edit.setValidator(QIntValidator(0, 99999, self.variable_edit))
        self.variable_edit.setToolTip(
            "Sets the Variable ID on every image of this layer.\n"
            "Shows the first image's value."
        )
        self.variable_edit.editingFinished.connect(self._on_variable_edited)
        form.addRow("Layer Variable ID:", self.variable_edit)

        layout.addWidget(attr_group)

        # ── Images ───────────────────────────────────────────────
        files_group = QGroupBox("Images (FileList)")
        files_layout = QVBoxLayout(files_group)

        self.file_table = QTableWidget()
        self.file_table.setColumnCount(len(_FILE_COLUMNS))
        self.file_table.setHorizontalHeaderLabels([h for _, h in _FILE_COLUMNS])
        self.file_table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.file_table.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.file_table.setIconSize(QSize(40, 40))
        header = self.file_table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(len(_FILE_COLUMNS) - 1, QHeaderView.ResizeMode.Stretch)
        self.file_table.itemChanged.connect(self._on_file_item_changed)
        files_layout.addWidget(self.file_table)

        btn_row = QHBoxLayout()
        self.add_file_btn = QPushButton("+ Add Image")
        self.add_file_btn.clicked.connect(self._add_file)
        btn_row.addWidget(self.add_file_btn)

        self.file_up_btn = QPushButton("↑")
        self.file_up_btn.clicked.connect(lambda: self._move_file(UP))
        btn_row.addWidget(self.file_up_btn)

        self.file_down_btn = QPushButton("↓")
        self.file_down_btn.clicked.connect(lambda: self._move_file(DOWN))
        btn_row.addWidget(self.file_down_btn)

        btn_row.addStretch()

        self.delete_file_btn = QPushButton("Delete")
        self.delete_file_btn.clicked.connect(self._delete_file)
        btn_row.addWidget(self.delete_file_btn)

        self.split_btn = QPushButton("Move to New Layer ↗")
        self.split_btn.setToolTip("Move the selected image into a copy of this layer")
        self.split_btn.clicked.connect(self._split_file)
        btn_row.addWidget(self.split_btn)

        files_layout.addLayout(btn_row)
        layout.addWidget(files_group, 1)

    # ── Population ───────────────────────────────────────────────

    def set_layer(self, uid: str):
        """Show *uid* (or an empty, disabled form when it is unknown)."""
        layer = self.session.store.get_layer(uid)
        self._uid = uid if layer is not None else ""
        self.setEnabled(layer is not None)
        self._populating = True
        for key, edit in self._inputs.items():
            edit.setText(layer.get(key) if layer is not None else "")
        self.shake_check.setChecked(layer is not None and layer.out_of_shake == "true")
        self.variable_edit.setText(LayerStore.layer_variable_id(layer) if layer is not None else "")
        self._populating = False
        self._refresh_files()

    def _refresh_files(self, select_row: int = -1):
        layer = self.session.store.get_layer(self._uid)
        files = layer.files if layer is not None else []
        self._populating = True
        self.file_table.setRowCount(len(files))
        for row, f in enumerate(files):
            for col, (key, _) in enumerate(_FILE_COLUMNS):
                if col == _COL_OPERATOR:
                    self.file_table.setCellWidget(row, col, self._operator_combo(row, f.variable_type))
                    continue
                item = QTableWidgetItem(f.get(key))
                if key == "Variable":
                    item.setToolTip(f.condition_summary() or "No variable condition")
                if col == 0:
                    item.setToolTip(f.file_name)
                    if self.thumbnail_provider is not None:
                        icon = self.thumbnail_provider(f.file_name)
                        if icon is not None:
                            item.setIcon(icon)
                self.file_table.setItem(row, col, item)
            self.file_table.setRowHeight(row, 44)
        self._populating = False
        if 0 <= select_row < len(files):
            self.file_table.selectRow(select_row)

    def _operator_combo(self, row: int, current: str) -> QComboBox:
        combo = QComboBox()
        for code, (symbol, name) in VARIABLE_OPERATORS.items():
            combo.addItem(symbol, userData=code)
            combo.setItemData(combo.count() - 1, name, Qt.ItemDataRole.ToolTipRole)
        idx = combo.findData(current)
        combo.setCurrentIndex(idx if idx >= 0 else 0)
        combo.currentIndexChanged.connect(
            lambda _i, r=row, c=combo: self._on_operator_changed(r, c.currentData()))
        return combo

    def _current_file_row(self) -> int:
        rows = self.file_table.selectionModel().selectedRows()
        return rows[0].row() if rows else -1

    # ── Layer edits ──────────────────────────────────────────────

    def _on_layer_edited(self, key: str):
        if self._populating or not self._uid:
            return
        value = self._inputs[key].text()
        layer = self.session.store.get_layer(self._uid)
        if layer is None or layer.get(key) == value:
            return
        self.session.update_layer(self._uid, key, value)
        if key in ("Name", "ActorId"):
            self.layers_changed.emit()

    def _on_shake_toggled(self, checked: bool):
        if self._populating or not self._uid:
            return
        self.session.update_layer(self._uid, "OutOfShake", "true" if checked else "false")

    def _on_variable_edited(self):
        if self._populating or not self._uid:
            return
        value = self.variable_edit.text().strip() or "0"
        changed = self.session.set_layer_variable_id(self._uid, value)
        if changed:
            self.status_message.emit(f"Variable ID set to {value} on {changed} image(s)")
            self._refresh_files()
        else:
            self.status_message.emit("Layer has no images, variable ID not stored")

    # ── File edits ───────────────────────────────────────────────

    def _on_file_item_changed(self, item: QTableWidgetItem):
        if self._populating or not self._uid:
            return
        key = _FILE_COLUMNS[item.column()][0]
        self.session.update_file(self._uid, item.row(), key, item.text())
        if key == "FileName":
            self._refresh_files(item.row())
        elif key == "Variable" and item.row() == 0:
            self._populating = True
            self.variable_edit.setText(item.text())
            self._populating = False
        if key in ("Variable", "VariableOperand"):
            self._update_condition_tip(item.row())

    def _on_operator_changed(self, row: int, code: str):
        if self._populating or not self._uid:
            return
        self.session.update_file(self._uid, row, "VariableType", code)
        self._update_condition_tip(row)

    def _update_condition_tip(self, row: int):
        layer = self.session.store.get_layer(self._uid)
        item = self.file_table.item(row, 2)
        if layer is None or item is None or row >= len(layer.files):
            return
        item.setToolTip(layer.files[row].condition_summary() or "No variable condition")

    def _add_file(self):
        index = self.session.add_file(self._uid)
        if index >= 0:
            self._refresh_files(index)
            self.layers_changed.emit()

    def _move_file(self, direction):
        row = self._current_file_row()
        if self.session.move_file(self._uid, row, direction):
            self._refresh_files(row - 1 if direction == UP else row + 1)

    def _delete_file(self):
        request = self.session.request_delete_file(self._uid, self._current_file_row())
        if request is None:
            return
        if self.confirm_deletes:
            reply = QMessageBox.question(
                self, "Delete Image", request.message,
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                request.cancel()
                return
        request.confirm()
        self.set_layer(self._uid)
        self.layers_changed.emit()

    def _split_file(self):
        new_layer = self.session.split_file(self._uid, self._current_file_row())
        if new_layer is None:
            return
        self.status_message.emit(f"Created layer {new_layer.name!r}")
        self.set_layer(self._uid)
        self.layers_changed.emit()
