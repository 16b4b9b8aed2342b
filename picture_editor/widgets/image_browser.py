"""Image browser — pick pictures from img/pictures and add them to a layer."""

import logging

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QPushButton,
    QListWidget, QListWidgetItem, QListView, QAbstractItemView,
)
from PyQt6.QtCore import Qt, QThread, QObject, pyqtSignal, QSize
from PyQt6.QtGui import QPixmap, QIcon, QColor

from ..picture_scanner import load_thumbnail, resolve_picture_file

log = logging.getLogger(__name__)

_SELECTED_BG = QColor(37, 99, 235, 90)


class ThumbnailCache:
    """QIcons for plugin picture references, decoded once per project."""

    def __init__(self, size: int = 96):
        self.size = size
        self.project_dir = ""
        self.subdir = "pictures"
        self.encryption_key = ""
        self._icons = {}

    def set_project(self, project_dir: str, subdir: str, encryption_key: str):
        self.project_dir = project_dir
        self.subdir = subdir
        self.encryption_key = encryption_key
        self._icons.clear()

    def put(self, picture: str, png_bytes: bytes) -> QIcon:
        pm = QPixmap()
        pm.loadFromData(png_bytes)
        icon = QIcon(pm)
        self._icons[picture] = icon
        return icon

    def get(self, picture: str):
        """Cached icon, loading it now if needed. None when unavailable."""
        if picture in self._icons:
            return self._icons[picture]
        path = resolve_picture_file(self.project_dir, picture, self.subdir) if self.project_dir else None
        if not path:
            return None
        try:
            data = load_thumbnail(path, self.size, self.encryption_key)
        except (OSError, ValueError) as exc:
            log.debug("No thumbnail for %s: %s", picture, exc)
            return None
        return self.put(picture, data)

    def has(self, picture: str) -> bool:
        return picture in self._icons


# ── Worker ───────────────────────────────────────────────────────

class _ThumbnailWorker(QObject):
    """Background thumbnail decoding for the browser grid."""
    thumb_ready = pyqtSignal(str, bytes)    # picture, PNG bytes
    all_done = pyqtSignal()

    def __init__(self, jobs: list, size: int, encryption_key: str):
        super().__init__()
        self.jobs = jobs                    # [(picture, file path)]
        self.size = size
        self.encryption_key = encryption_key
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def run(self):
        for picture, path in self.jobs:
            if self._cancelled:
                break
            try:
                data = load_thumbnail(path, self.size, self.encryption_key)
            except (OSError, ValueError) as exc:
                log.debug("No thumbnail for %s: %s", picture, exc)
                continue
            self.thumb_ready.emit(picture, data)
        self.all_done.emit()


class ImageBrowser(QWidget):
    """Thumbnail grid over the session's image catalog."""

    add_requested = pyqtSignal()

    def __init__(self, session, thumbnails: ThumbnailCache, parent=None):
        super().__init__(parent)
        self.session = session
        self.thumbnails = thumbnails
        self._thread = None
        self._worker = None
        self._build_ui()

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        top = QHBoxLayout()
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Filter by path...")
        self.search_edit.textChanged.connect(self._apply_search)
        top.addWidget(self.search_edit, 1)
        self.count_label = QLabel("")
        top.addWidget(self.count_label)
        layout.addLayout(top)

        size = self.thumbnails.size
        self.grid = QListWidget()
        self.grid.setViewMode(QListView.ViewMode.IconMode)
        self.grid.setResizeMode(QListView.ResizeMode.Adjust)
        self.grid.setMovement(QListView.Movement.Static)
        self.grid.setIconSize(QSize(size, size))
        self.grid.setGridSize(QSize(size + 40, size + 40))
        self.grid.setWordWrap(True)
        self.grid.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self.grid.itemClicked.connect(self._on_item_clicked)
        layout.addWidget(self.grid, 1)

        btn_row = QHBoxLayout()
        self.clear_btn = QPushButton("Clear Selection")
        self.clear_btn.clicked.connect(self._clear_selection)
        btn_row.addWidget(self.clear_btn)
        btn_row.addStretch()
        self.add_btn = QPushButton("Add Selected to Layer (0)")
        self.add_btn.setEnabled(False)
        self.add_btn.clicked.connect(self.add_requested.emit)
        btn_row.addWidget(self.add_btn)
        layout.addLayout(btn_row)

    # ── Population ───────────────────────────────────────────────

    def refresh(self):
        """Rebuild the grid from ``session.available_images``."""
        self._stop_worker()
        self.grid.clear()
        jobs = []
        for picture in self.session.available_images:
            item = QListWidgetItem(picture.rsplit("/", 1)[-1])
            item.setData(Qt.ItemDataRole.UserRole, picture)
            item.setToolTip(picture)
            if self.thumbnails.has(picture):
                item.setIcon(self.thumbnails.get(picture))
            elif self.session.project_dir:
                path = resolve_picture_file(self.session.project_dir, picture,
                                            self.session.settings.pictures_subdir)
                if path:
                    jobs.append((picture, path))
            self.grid.addItem(item)
        self._apply_search(self.search_edit.text())
        self.update_selection()
        if jobs:
            self._start_worker(jobs)

    def update_selection(self):
        """Sync highlight and the add button with the session's selection."""
        for i in range(self.grid.count()):
            item = self.grid.item(i)
            picked = item.data(Qt.ItemDataRole.UserRole) in self.session.selected_images
            item.setBackground(_SELECTED_BG if picked else QColor(0, 0, 0, 0))
        n = len(self.session.selected_images)
        self.add_btn.setText(f"Add Selected to Layer ({n})")
        self.add_btn.setEnabled(n > 0)
        self.count_label.setText(f"{len(self.session.available_images)} images")

    def _apply_search(self, text: str):
        needle = text.strip().lower()
        for i in range(self.grid.count()):
            item = self.grid.item(i)
            picture = item.data(Qt.ItemDataRole.UserRole)
            item.setHidden(bool(needle) and needle not in picture.lower())

    def _on_item_clicked(self, item: QListWidgetItem):
        self.session.toggle_image(item.data(Qt.ItemDataRole.UserRole))
        self.update_selection()

    def _clear_selection(self):
        self.session.clear_image_selection()
        self.update_selection()

    # ── Thumbnail loading ────────────────────────────────────────

    def _start_worker(self, jobs: list):
        self._thread = QThread()
        self._worker = _ThumbnailWorker(jobs, self.thumbnails.size, self.session.encryption_key)
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.thumb_ready.connect(self._on_thumb_ready)
        self._worker.all_done.connect(self._thread.quit)
        self._thread.start()

    def _stop_worker(self):
        if self._worker is not None:
            self._worker.cancel()
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait()
        self._thread = None
        self._worker = None

    def _on_thumb_ready(self, picture: str, data: bytes):
        icon = self.thumbnails.put(picture, data)
        for i in range(self.grid.count()):
            item = self.grid.item(i)
            if item.data(Qt.ItemDataRole.UserRole) == picture:
                item.setIcon(icon)
                break

    def shutdown(self):
        self._stop_worker()
