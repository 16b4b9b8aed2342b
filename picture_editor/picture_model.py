"""Data model for stand picture layers and the image variants they hold."""

import copy
import json
import uuid
from dataclasses import dataclass, field


def new_uid() -> str:
    """Generate an opaque in-session layer identifier (never exported)."""
    return uuid.uuid4().hex


def as_text(value) -> str:
    """Normalise a parsed JSON scalar to the plugin's string-typed convention."""
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


# ── Variable comparison operators (File "VariableType") ──────────

VARIABLE_OPERATORS = {
    "0": ("=", "Equal"),
    "1": (">=", "Greater or equal"),
    "2": ("<=", "Less or equal"),
    "3": (">", "Greater"),
    "4": ("<", "Less"),
    "5": ("!=", "Not equal"),
}


# ── Records ──────────────────────────────────────────────────────

# (attribute, external key) in the order the host plugin declares them
FILE_KEYS = (
    ("file_name", "FileName"),
    ("hp_upper_limit", "HpUpperLimit"),
    ("hp_lower_limit", "HpLowerLimit"),
    ("inputting", "Inputting"),
    ("input_command", "InputCommand"),
    ("input_skill_type", "InputSkillType"),
    ("action", "Action"),
    ("motion", "Motion"),
    ("state", "State"),
    ("weapon", "Weapon"),
    ("armor", "Armor"),
    ("scene", "Scene"),
    ("note", "Note"),
    ("message", "Message"),
    ("face", "Face"),
    ("speaker", "Speaker"),
    ("switch", "Switch"),
    ("variable", "Variable"),
    ("variable_type", "VariableType"),
    ("variable_operand", "VariableOperand"),
    ("script", "Script"),
)

LAYER_KEYS = (
    ("actor_id", "ActorId"),
    ("name", "Name"),
    ("opacity", "Opacity"),
    ("x", "X"),
    ("y", "Y"),
    ("scale_x", "ScaleX"),
    ("scale_y", "ScaleY"),
    ("out_of_shake", "OutOfShake"),
    ("show_picture_switch", "ShowPictureSwitch"),
    ("unfocus_switch", "UnFocusSwitch"),
    ("mirror_switch", "MirrorSwitch"),
    ("touch_switch", "TouchSwitch"),
)

FILE_LIST_KEY = "FileList"

_FILE_ATTR = dict((key, attr) for attr, key in FILE_KEYS)
_LAYER_ATTR = dict((key, attr) for attr, key in LAYER_KEYS)


@dataclass
class PictureFile:
    """One image variant of a layer, with the conditions that select it."""
    file_name: str = ""          # Path under img/pictures, no extension
    hp_upper_limit: str = "0"
    hp_lower_limit: str = "0"
    inputting: str = "false"
    input_command: str = ""
    input_skill_type: str = "1"
    action: str = "false"
    motion: str = ""
    state: str = "0"
    weapon: str = "0"
    armor: str = "0"
    scene: str = ""
    note: str = ""
    message: str = "false"
    face: str = "false"
    speaker: str = "false"
    switch: str = "0"
    variable: str = "0"
    variable_type: str = "0"     # Key into VARIABLE_OPERATORS
    variable_operand: str = "0"
    script: str = ""
    extra: dict = field(default_factory=dict)  # Unrecognised keys, exported as-is
    key_order: list = field(default_factory=list, repr=False, compare=False)

    def get(self, key: str) -> str:
        """Read a field by its external key (e.g. "FileName")."""
        if key not in _FILE_ATTR:
            raise ValueError(f"Unknown file field: {key!r}")
        return getattr(self, _FILE_ATTR[key])

    def set(self, key: str, value) -> None:
        """Write a field by its external key, keeping the string convention."""
        if key not in _FILE_ATTR:
            raise ValueError(f"Unknown file field: {key!r}")
        setattr(self, _FILE_ATTR[key], as_text(value))

    @property
    def basename(self) -> str:
        """Last path segment of the file name."""
        return self.file_name.split("/")[-1]

    def condition_summary(self) -> str:
        """Short human-readable description of the variable condition."""
        if self.variable in ("", "0"):
            return ""
        symbol = VARIABLE_OPERATORS.get(self.variable_type, VARIABLE_OPERATORS["0"])[0]
        return f"V[{self.variable}] {symbol} {self.variable_operand}"

    def to_dict(self) -> dict:
        values = dict((key, getattr(self, attr)) for attr, key in FILE_KEYS)
        return _ordered(values, self.extra, self.key_order)

    @classmethod
    def from_dict(cls, data: dict) -> "PictureFile":
        kwargs = {}
        extra = {}
        for key, value in data.items():
            attr = _FILE_ATTR.get(key)
            if attr:
                kwargs[attr] = as_text(value)
            else:
                extra[key] = value
        return cls(**kwargs, extra=extra, key_order=list(data.keys()))


@dataclass
class PictureLayer:
    """A stand picture layer bound to one actor."""
    name: str = "New Layer"
    actor_id: str = "1"
    opacity: str = "255"
    x: str = "0"
    y: str = "0"
    scale_x: str = "100"
    scale_y: str = "100"
    out_of_shake: str = "false"  # "true" keeps the layer still during screen shake
    show_picture_switch: str = "0"
    unfocus_switch: str = "0"
    mirror_switch: str = "0"
    touch_switch: str = "0"
    files: list = field(default_factory=list)   # list[PictureFile], order matters
    extra: dict = field(default_factory=dict)
    uid: str = field(default_factory=new_uid, compare=False)
    key_order: list = field(default_factory=list, repr=False, compare=False)

    def get(self, key: str) -> str:
        """Read a scalar attribute by its external key (e.g. "ActorId")."""
        if key not in _LAYER_ATTR:
            raise ValueError(f"Unknown layer field: {key!r}")
        return getattr(self, _LAYER_ATTR[key])

    def set(self, key: str, value) -> None:
        """Write a scalar attribute by its external key."""
        if key not in _LAYER_ATTR:
            raise ValueError(f"Unknown layer field: {key!r}")
        setattr(self, _LAYER_ATTR[key], as_text(value))

    def label(self) -> str:
        return f"{self.name or 'Unnamed'} (Actor {self.actor_id})"

    def clone(self, with_files: bool = True) -> "PictureLayer":
        """Deep copy under a fresh uid."""
        twin = copy.deepcopy(self)
        twin.uid = new_uid()
        if not with_files:
            twin.files = []
        return twin

    def to_dict(self, files) -> dict:
        """External object for this layer; *files* is the encoded FileList value."""
        values = dict((key, getattr(self, attr)) for attr, key in LAYER_KEYS)
        values[FILE_LIST_KEY] = files
        return _ordered(values, self.extra, self.key_order)

    @classmethod
    def from_dict(cls, data: dict, files: list) -> "PictureLayer":
        kwargs = {}
        extra = {}
        for key, value in data.items():
            if key == FILE_LIST_KEY:
                continue
            attr = _LAYER_ATTR.get(key)
            if attr:
                kwargs[attr] = as_text(value)
            else:
                extra[key] = value
        return cls(**kwargs, files=files, extra=extra, key_order=list(data.keys()))


def _ordered(values: dict, extra: dict, key_order: list) -> dict:
    """Merge known values and extras, keeping the key order seen on load.

    Keys never seen on load follow in canonical order, extras last.
    """
    merged = dict(values)
    for key, value in extra.items():
        merged.setdefault(key, value)
    out = {}
    for key in key_order:
        if key in merged:
            out[key] = merged[key]
    for key, value in merged.items():
        if key not in out:
            out[key] = value
    return out
