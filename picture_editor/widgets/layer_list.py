"""Layer list widget — the filtered view of the picture layers."""

from PyQt6.QtWidgets import QTreeWidget, QTreeWidgetItem, QAbstractItemView
from PyQt6.QtCore import pyqtSignal, Qt
from PyQt6.QtGui import QColor


class LayerListWidget(QTreeWidget):
    """Shows visible layers with a checkbox for bulk selection."""

    layer_selected = pyqtSignal(str)          # uid of the clicked layer
    check_toggled = pyqtSignal(str, bool)     # uid, checked

    _SELECTED_BG = QColor(37, 99, 235, 70)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setHeaderLabels(["Layer", "Actor", "Images"])
        self.setColumnWidth(0, 260)
        self.setColumnWidth(1, 60)
        self.setRootIsDecorated(False)
        self.setMinimumWidth(320)
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self._populating = False
        self.currentItemChanged.connect(self._on_current_changed)
        self.itemChanged.connect(self._on_item_changed)

    def set_layers(self, layers: list, selected_ids: set, current_uid: str = ""):
        """Rebuild rows from the visible layers, keeping the current row."""
        self._populating = True
        self.setUpdatesEnabled(False)
        self.clear()
        current_item = None
        for row, layer in enumerate(layers):
            item = QTreeWidgetItem(self, [
                f"{row + 1}: {layer.name or 'Unnamed'}",
                layer.actor_id,
                str(len(layer.files)),
            ])
            item.setData(0, Qt.ItemDataRole.UserRole, layer.uid)
            item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            checked = layer.uid in selected_ids
            item.setCheckState(0, Qt.CheckState.Checked if checked else Qt.CheckState.Unchecked)
            if checked:
                for col in range(3):
                    item.setBackground(col, self._SELECTED_BG)
            if layer.uid == current_uid:
                current_item = item
        if current_item is not None:
            self.setCurrentItem(current_item)
        self.setUpdatesEnabled(True)
        self._populating = False

    def current_uid(self) -> str:
        item = self.currentItem()
        return item.data(0, Qt.ItemDataRole.UserRole) if item else ""

    def _on_current_changed(self, current, _previous):
        if self._populating or current is None:
            return
        self.layer_selected.emit(current.data(0, Qt.ItemDataRole.UserRole))

    def _on_item_changed(self, item: QTreeWidgetItem, column: int):
        if self._populating or column != 0:
            return
        checked = item.checkState(0) == Qt.CheckState.Checked
        self.check_toggled.emit(item.data(0, Qt.ItemDataRole.UserRole), checked)
