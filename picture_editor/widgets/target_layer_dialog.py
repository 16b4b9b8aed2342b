"""Dialog for choosing which layer receives the selected images."""

from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QComboBox,
    QListWidget,
)

from ..editor_session import NEW_LAYER, TargetLayerRequest


class TargetLayerDialog(QDialog):
    """Lists the visible layers plus a "new layer" choice."""

    def __init__(self, request: TargetLayerRequest, parent=None):
        super().__init__(parent)
        self.request = request
        self.setWindowTitle("Add Images to Layer")
        self.setMinimumSize(420, 320)
        self._build_ui()

    def _build_ui(self):
        layout = QVBoxLayout(self)

        layout.addWidget(QLabel(f"Images to add ({len(self.request.images)}):"))
        images = QListWidget()
        images.addItems(self.request.images)
        images.setMaximumHeight(140)
        layout.addWidget(images)

        layout.addWidget(QLabel("Target layer:"))
        self.target_combo = QComboBox()
        self.target_combo.addItem("Create a new layer", userData=NEW_LAYER)
        for uid, label in self.request.choices:
            self.target_combo.addItem(label, userData=uid)
        layout.addWidget(self.target_combo)

        btn_row = QHBoxLayout()
        btn_row.addStretch()

        add_btn = QPushButton("Add")
        add_btn.setDefault(True)
        add_btn.clicked.connect(self.accept)
        btn_row.addWidget(add_btn)

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        btn_row.addWidget(cancel_btn)

        layout.addLayout(btn_row)

    def get_target(self) -> str:
        """Chosen layer uid, or NEW_LAYER."""
        return self.target_combo.currentData()
