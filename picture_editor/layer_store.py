"""Layer store — the ordered layer collection, filter and selection state.

All mutations work on the backing ``layers`` list.  The filtered view is a
pure projection and never changes the collection.  Index and id problems are
treated as no-ops (falsy return values) because the UI may still hold rows
for layers deleted a moment earlier.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Optional

from .picture_model import PictureFile, PictureLayer

log = logging.getLogger(__name__)

UP = "up"
DOWN = "down"

# Attributes the bulk-edit panel may set on every selected layer
BATCH_ATTRIBUTES = {
    "ShowPictureSwitch": "Layer Switch",
    "UnFocusSwitch": "Unfocus Switch",
    "MirrorSwitch": "Invert Switch",
    "ActorId": "Actor ID",
}


def _step(direction) -> int:
    if direction in (UP, -1):
        return -1
    if direction in (DOWN, 1):
        return 1
    raise ValueError(f"Unknown direction: {direction!r}")


@dataclass
class LayerStore:
    """Holds every picture layer of the loaded PictureList."""
    layers: list = field(default_factory=list)
    filter_actor_id: Optional[str] = None
    selected_ids: set = field(default_factory=set)

    def __post_init__(self):
        self._build_index()

    def _build_index(self):
        """Rebuild the uid lookup after a structural change."""
        self._by_id = {layer.uid: layer for layer in self.layers}

    # ── Lookup & projection ──────────────────────────────────────

    def __len__(self) -> int:
        return len(self.layers)

    def get_layer(self, uid: str) -> Optional[PictureLayer]:
        return self._by_id.get(uid)

    def position_of(self, uid: str) -> int:
        """Absolute index of a layer in the backing list, -1 if unknown."""
        layer = self._by_id.get(uid)
        if layer is None:
            return -1
        for i, candidate in enumerate(self.layers):
            if candidate is layer:
                return i
        return -1

    @property
    def is_filtered(self) -> bool:
        return self.filter_actor_id is not None

    def visible_layers(self) -> list:
        """Layers shown under the current filter, in backing order."""
        if self.filter_actor_id is None:
            return list(self.layers)
        return [l for l in self.layers if l.actor_id.strip() == self.filter_actor_id]

    def is_visible(self, uid: str) -> bool:
        layer = self._by_id.get(uid)
        if layer is None:
            return False
        return self.filter_actor_id is None or layer.actor_id.strip() == self.filter_actor_id

    def replace_all(self, layers: list):
        """Swap in a freshly loaded collection; filter and selection reset."""
        self.layers = list(layers)
        self.filter_actor_id = None
        self.selected_ids.clear()
        self._build_index()

    # ── Filter ───────────────────────────────────────────────────

    def set_filter(self, actor_id) -> bool:
        """Restrict the view to one actor. Blank input is ignored."""
        value = "" if actor_id is None else str(actor_id).strip()
        if not value:
            log.debug("Filter ignored: blank actor id")
            return False
        self.filter_actor_id = value
        self.selected_ids.clear()
        return True

    def clear_filter(self):
        self.filter_actor_id = None
        self.selected_ids.clear()

    # ── Selection ────────────────────────────────────────────────

    def toggle_select(self, uid: str, checked: bool) -> bool:
        """Select or deselect a visible layer."""
        if checked:
            if not self.is_visible(uid):
                return False
            self.selected_ids.add(uid)
            return True
        if uid in self.selected_ids:
            self.selected_ids.discard(uid)
            return True
        return False

    def clear_selection(self):
        self.selected_ids.clear()

    def selected_layers(self) -> list:
        """Selected layers, in backing order."""
        return [l for l in self.layers if l.uid in self.selected_ids]

    # ── Layer mutations ──────────────────────────────────────────

    def add_layer(self) -> PictureLayer:
        """Append a default layer; it joins the active filter's actor."""
        layer = PictureLayer(actor_id=self.filter_actor_id or "1")
        self.layers.append(layer)
        self._build_index()
        return layer

    def delete_layer(self, uid: str) -> bool:
        pos = self.position_of(uid)
        if pos < 0:
            return False
        del self.layers[pos]
        self.selected_ids.discard(uid)
        self._build_index()
        return True

    def move_layer(self, uid: str, direction) -> bool:
        """Swap a layer with its neighbour in the visible list.

        The neighbour's backing position is swapped, so under a filter the
        layer jumps over hidden layers; without one this is the plain
        backing-list neighbour.
        """
        step = _step(direction)
        if not self.is_visible(uid):
            return False
        visible = self.visible_layers()
        row = next(i for i, l in enumerate(visible) if l.uid == uid)
        if not 0 <= row + step < len(visible):
            return False
        pos = self.position_of(uid)
        target = self.position_of(visible[row + step].uid)
        self.layers[pos], self.layers[target] = self.layers[target], self.layers[pos]
        return True

    def update_layer(self, uid: str, key: str, value) -> bool:
        """Set one scalar attribute (external key name) on a layer."""
        layer = self._by_id.get(uid)
        if layer is None:
            return False
        layer.set(key, value)
        if key == "ActorId":
            self._drop_hidden_selection()
        return True

    def _drop_hidden_selection(self):
        """Forget checked layers an actor change has moved out of the filter."""
        hidden = [uid for uid in self.selected_ids if not self.is_visible(uid)]
        for uid in hidden:
            self.selected_ids.discard(uid)
        if hidden:
            log.debug("Unchecked %d layer(s) hidden by the filter", len(hidden))

    def duplicate_layers(self, uids) -> list:
        """Append a " (Copy)" of each given layer; originals stay put."""
        wanted = set(uids)
        copies = []
        for layer in [l for l in self.layers if l.uid in wanted]:
            twin = layer.clone()
            twin.name = (layer.name or "") + " (Copy)"
            copies.append(twin)
        if copies:
            self.layers.extend(copies)
            self._build_index()
        return copies

    def batch_set_attribute(self, uids, key: str, value) -> int:
        """Set *key* to *value* on every given layer. Returns layers changed."""
        if key not in BATCH_ATTRIBUTES:
            raise ValueError(f"Attribute {key!r} cannot be batch-edited")
        value = "" if value is None else str(value).strip()
        if not value:
            return 0
        changed = 0
        for uid in uids:
            layer = self._by_id.get(uid)
            if layer is not None:
                layer.set(key, value)
                changed += 1
        if key == "ActorId":
            self._drop_hidden_selection()
        return changed

    # ── File mutations ───────────────────────────────────────────

    def _file_list(self, uid: str, index: int = None) -> Optional[list]:
        layer = self._by_id.get(uid)
        if layer is None:
            return None
        if index is not None and not 0 <= index < len(layer.files):
            return None
        return layer.files

    def add_file(self, uid: str, file_name: str = "") -> int:
        """Append a default File. Returns its index, or -1."""
        files = self._file_list(uid)
        if files is None:
            return -1
        files.append(PictureFile(file_name=file_name))
        return len(files) - 1

    def add_files(self, uid: str, names) -> int:
        """Append one File per image name. Returns how many were added."""
        files = self._file_list(uid)
        if files is None:
            return 0
        added = [PictureFile(file_name=name) for name in names]
        files.extend(added)
        return len(added)

    def delete_file(self, uid: str, index: int) -> bool:
        files = self._file_list(uid, index)
        if files is None:
            return False
        del files[index]
        return True

    def move_file(self, uid: str, index: int, direction) -> bool:
        files = self._file_list(uid, index)
        if files is None:
            return False
        target = index + _step(direction)
        if target < 0 or target >= len(files):
            return False
        files[index], files[target] = files[target], files[index]
        return True

    def update_file(self, uid: str, index: int, key: str, value) -> bool:
        files = self._file_list(uid, index)
        if files is None:
            return False
        files[index].set(key, value)
        return True

    def split_file_to_new_layer(self, uid: str, index: int) -> Optional[PictureLayer]:
        """Move one File out into a new layer appended at the end.

        The new layer copies the source attributes and is named
        ``<source name>_<file basename>``.
        """
        files = self._file_list(uid, index)
        if files is None:
            return None
        source = self._by_id[uid]
        moved = files.pop(index)

        segment = moved.basename or "Split"
        layer = source.clone(with_files=False)
        layer.name = f"{source.name}_{segment}" if source.name else segment
        layer.files = [copy.deepcopy(moved)]
        self.layers.append(layer)
        self._build_index()
        return layer

    # ── Layer-level variable id ──────────────────────────────────

    @staticmethod
    def layer_variable_id(layer: PictureLayer) -> str:
        """Variable id shown for a layer: the first File's, "0" if empty."""
        if not layer.files:
            return "0"
        return layer.files[0].variable or "0"

    def set_layer_variable_id(self, uid: str, value) -> int:
        """Write the variable id to every File of a layer. Returns files changed."""
        files = self._file_list(uid)
        if not files:
            return 0
        for f in files:
            f.set("Variable", value)
        return len(files)
