"""Editor session — the UI-facing operations over one LayerStore.

Widgets never touch the store directly; they call the session, then
re-render from ``visible_layers()``.  Steps that wait on the user (delete
confirmation, choosing a target layer for images) are returned as request
objects the view resolves or cancels, so nothing mutates until the user has
answered.
"""

import logging
from typing import Optional

from .layer_store import BATCH_ATTRIBUTES, LayerStore
from .picture_codec import DecodeError, decode_picture_list, encode_picture_list
from .picture_scanner import normalize_picture_paths, read_encryption_key, scan_pictures
from .plugins_js import read_plugin_parameter, write_plugin_parameter
from .settings import EditorSettings

log = logging.getLogger(__name__)

NEW_LAYER = "new"


class RequestClosed(RuntimeError):
    """A pending request was answered twice, or after being cancelled."""


class _PendingRequest:
    """A user-interaction step: resolved once, or cancelled with no effect."""

    def __init__(self, message: str):
        self.message = message
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def cancel(self):
        if self._open:
            self._open = False
            log.debug("Request cancelled: %s", self.message.splitlines()[0])

    def _close(self):
        if not self._open:
            raise RequestClosed("Request already answered or cancelled")
        self._open = False


class ConfirmRequest(_PendingRequest):
    """Yes/no confirmation in front of a destructive action."""

    def __init__(self, message: str, action):
        super().__init__(message)
        self._action = action

    def confirm(self):
        """Run the action and return its result."""
        self._close()
        return self._action()


class TargetLayerRequest(_PendingRequest):
    """Asks which layer receives the selected images (or a new one)."""

    def __init__(self, message: str, choices: list, images: list, apply):
        super().__init__(message)
        self.choices = choices      # [(uid, label)] for the visible layers
        self.images = images
        self._apply = apply

    def resolve(self, target: str):
        """Add the images to *target* (uid or NEW_LAYER).

        Returns ``(layer, added_count)``; ``(None, 0)`` if the layer vanished.
        """
        self._close()
        return self._apply(target)


class EditorSession:
    """Owns the layer collection, image catalog and project binding."""

    def __init__(self, settings: EditorSettings = None):
        self.settings = settings or EditorSettings()
        self.store = LayerStore()
        self.project_dir = ""
        self.encryption_key = ""
        self.available_images: list[str] = []
        self.selected_images: dict = {}   # insertion-ordered set of image paths
        self.export_text = ""

    # ── Load / export ────────────────────────────────────────────

    def load(self, text: str) -> int:
        """Replace the collection with decoded *text*.

        Blank input is ignored (returns -1). Raises DecodeError and keeps the
        current collection when the text is malformed.
        """
        if not text or not text.strip():
            return -1
        try:
            layers = decode_picture_list(text)
        except DecodeError as exc:
            log.warning("Load failed, keeping %d layers: %s", len(self.store), exc)
            raise
        self.store.replace_all(layers)
        log.info("Loaded %d layers", len(layers))
        return len(layers)

    def export(self) -> str:
        """Encode the full collection; the filter never limits an export."""
        self.export_text = encode_picture_list(self.store.layers)
        log.info("Exported %d layers", len(self.store))
        return self.export_text

    def copy_export_to_clipboard(self, clipboard) -> str:
        """Export and hand the text to *clipboard* (anything with setText)."""
        text = self.export()
        clipboard.setText(text)
        return text

    # ── Project (js/plugins.js) ──────────────────────────────────

    def open_project(self, project_dir: str) -> int:
        """Load the PictureList parameter from a game's plugins.js."""
        text = read_plugin_parameter(project_dir, self.settings.plugin_name,
                                     self.settings.parameter_name)
        count = self.load(text) if text.strip() else 0
        if count <= 0:
            self.store.replace_all([])
            count = 0
        self.project_dir = project_dir
        self.encryption_key = read_encryption_key(project_dir)
        self.settings.last_project_dir = project_dir
        self.selected_images.clear()
        self.scan_available_images()
        return count

    def save_to_project(self) -> str:
        """Write the full collection back into the project's plugins.js."""
        if not self.project_dir:
            raise RuntimeError("No project is open")
        text = self.export()
        return write_plugin_parameter(self.project_dir, self.settings.plugin_name,
                                      self.settings.parameter_name, text)

    # ── View ─────────────────────────────────────────────────────

    def visible_layers(self) -> list:
        return self.store.visible_layers()

    def apply_filter(self, actor_id) -> bool:
        return self.store.set_filter(actor_id)

    def clear_filter(self):
        self.store.clear_filter()

    def toggle_select(self, uid: str, checked: bool) -> bool:
        return self.store.toggle_select(uid, checked)

    def clear_selection(self):
        self.store.clear_selection()

    # ── Layer operations ─────────────────────────────────────────

    def add_layer(self):
        return self.store.add_layer()

    def request_delete_layer(self, uid: str) -> Optional[ConfirmRequest]:
        if self.store.get_layer(uid) is None:
            return None
        return ConfirmRequest("Remove this entire layer and all its images?",
                              lambda: self.store.delete_layer(uid))

    def move_layer(self, uid: str, direction) -> bool:
        return self.store.move_layer(uid, direction)

    def update_layer(self, uid: str, key: str, value) -> bool:
        return self.store.update_layer(uid, key, value)

    def set_layer_variable_id(self, uid: str, value) -> int:
        return self.store.set_layer_variable_id(uid, value)

    def duplicate_selected(self) -> list:
        if not self.store.selected_ids:
            return []
        return self.store.duplicate_layers(self.store.selected_ids)

    def batch_set_attribute(self, key: str, value) -> int:
        """Set a switch / actor id on every selected layer."""
        changed = self.store.batch_set_attribute(self.store.selected_ids, key, value)
        if changed:
            log.info("Updated %s for %d layers", BATCH_ATTRIBUTES[key], changed)
        return changed

    # ── File operations ──────────────────────────────────────────

    def add_file(self, uid: str) -> int:
        return self.store.add_file(uid)

    def request_delete_file(self, uid: str, index: int) -> Optional[ConfirmRequest]:
        layer = self.store.get_layer(uid)
        if layer is None or not 0 <= index < len(layer.files):
            return None
        picture = layer.files[index]
        return ConfirmRequest("Remove this image?",
                              lambda: self._delete_file_record(uid, picture))

    def _delete_file_record(self, uid: str, picture) -> bool:
        """Delete *picture* wherever it now sits; False once it is gone."""
        layer = self.store.get_layer(uid)
        if layer is None:
            return False
        for i, candidate in enumerate(layer.files):
            if candidate is picture:
                return self.store.delete_file(uid, i)
        log.debug("Delete ignored: image is no longer in layer %s", uid)
        return False

    def move_file(self, uid: str, index: int, direction) -> bool:
        return self.store.move_file(uid, index, direction)

    def update_file(self, uid: str, index: int, key: str, value) -> bool:
        return self.store.update_file(uid, index, key, value)

    def split_file(self, uid: str, index: int):
        return self.store.split_file_to_new_layer(uid, index)

    # ── Image browser ────────────────────────────────────────────

    def scan_available_images(self, names=None) -> list:
        """Refresh the image catalog.

        *names* is an explicit directory listing (relative paths with
        extensions); without it the open project's img/pictures is walked.
        """
        if names is not None:
            images = normalize_picture_paths(names)
        elif self.project_dir:
            images = scan_pictures(self.project_dir, self.settings.pictures_subdir)
        else:
            images = []
        self.available_images = images
        known = set(images)
        for path in [p for p in self.selected_images if p not in known]:
            del self.selected_images[path]
        log.info("Found %d picture files", len(images))
        return images

    def toggle_image(self, path: str) -> bool:
        """Flip an image's browser selection. Returns the new state."""
        if path in self.selected_images:
            del self.selected_images[path]
            return False
        self.selected_images[path] = True
        return True

    def clear_image_selection(self):
        self.selected_images.clear()

    def request_add_selected_images(self) -> Optional[TargetLayerRequest]:
        """Start adding the selected images; None when nothing is selected."""
        if not self.selected_images:
            log.debug("Add images ignored: no image selected")
            return None
        visible = self.store.visible_layers()
        choices = [(layer.uid, f"{i + 1}: {layer.label()}")
                   for i, layer in enumerate(visible)]
        if choices:
            message = ("Select layer to add images to:\n"
                       + "\n".join(label for _, label in choices)
                       + "\n\nPick a layer, or create a new one for the images.")
        else:
            message = ("No layers found.\n\n"
                       "Leave empty to create a new layer and add images to it.")
        return TargetLayerRequest(message, choices, list(self.selected_images),
                                  self._add_images_to)

    def _add_images_to(self, target: str):
        images = list(self.selected_images)
        if target == NEW_LAYER:
            layer = self.store.add_layer()
        else:
            layer = self.store.get_layer(target)
            if layer is None:
                log.debug("Add images ignored: target layer %s is gone", target)
                return None, 0
        added = self.store.add_files(layer.uid, images)
        self.selected_images.clear()
        log.info("Added %d image(s) to layer %r", added, layer.name)
        return layer, added
