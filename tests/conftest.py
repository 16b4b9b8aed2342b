"""
Shared fixtures for the stand picture editor tests.

Provides sample PictureList texts, decoded stores/sessions and a minimal
RPG Maker project tree on disk.
"""
import json
import os

import pytest

from picture_editor.editor_session import EditorSession
from picture_editor.layer_store import LayerStore
from picture_editor.picture_codec import decode_picture_list
from picture_editor.settings import EditorSettings


def compact(value) -> str:
    """JSON the way JSON.stringify writes it."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def file_record(**values) -> dict:
    """A complete File object with every key the plugin declares."""
    rec = {
        "FileName": "", "HpUpperLimit": "0", "HpLowerLimit": "0",
        "Inputting": "false", "InputCommand": "", "InputSkillType": "1",
        "Action": "false", "Motion": "", "State": "0", "Weapon": "0",
        "Armor": "0", "Scene": "", "Note": "", "Message": "false",
        "Face": "false", "Speaker": "false", "Switch": "0", "Variable": "0",
        "VariableType": "0", "VariableOperand": "0", "Script": "",
    }
    rec.update(values)
    return rec


def layer_record(files=(), **values) -> dict:
    """A complete Layer object; *files* are File dicts, double-encoded."""
    rec = {
        "ActorId": "1", "Name": "New Layer", "Opacity": "255", "X": "0",
        "Y": "0", "ScaleX": "100", "ScaleY": "100", "OutOfShake": "false",
        "ShowPictureSwitch": "0", "UnFocusSwitch": "0", "MirrorSwitch": "0",
        "TouchSwitch": "0",
    }
    rec.update(values)
    rec["FileList"] = compact([compact(f) for f in files])
    return rec


def picture_list(*layers) -> str:
    """Encode layer dicts as a PictureList parameter value."""
    return compact([compact(layer) for layer in layers])


# ── Sample PictureList texts ────────────────────────────────────────

SAMPLE_SCENARIO = r'["{\"Name\":\"A\",\"ActorId\":\"1\",\"FileList\":\"[]\"}"]'

# Layer order: Misaki Body (1), Misaki Face (1, 3 files), Rei Body (2),
# Misaki Ribbon (1, no files)
SAMPLE_CAST = picture_list(
    layer_record(Name="Misaki Body", ActorId="1",
                 files=[file_record(FileName="child/misaki/body")]),
    layer_record(Name="Misaki Face", ActorId="1", ShowPictureSwitch="3", files=[
        file_record(FileName="child/misaki/emotion/normal"),
        file_record(FileName="child/misaki/emotion/joy", Variable="12",
                    VariableType="1", VariableOperand="50"),
        file_record(FileName="child/misaki/emotion/sad", Note="泣き顔"),
    ]),
    layer_record(Name="Rei Body", ActorId="2", Opacity="200", X="-40",
                 files=[file_record(FileName="rei/body")]),
    layer_record(Name="Misaki Ribbon", ActorId="1"),
)


@pytest.fixture
def scenario_text():
    """Single layer "A", actor 1, empty FileList"""
    return SAMPLE_SCENARIO


@pytest.fixture
def cast_text():
    """Four layers over two actors"""
    return SAMPLE_CAST


@pytest.fixture
def store(cast_text):
    """LayerStore decoded from the cast sample"""
    return LayerStore(decode_picture_list(cast_text))


@pytest.fixture
def session(cast_text):
    """EditorSession with the cast sample loaded"""
    s = EditorSession(EditorSettings())
    s.load(cast_text)
    return s


def by_name(layers, name):
    for layer in layers:
        if layer.name == name:
            return layer
    raise KeyError(name)


# ── Project tree on disk ────────────────────────────────────────────

ENCRYPTION_KEY = "d41d8cd98f00b204e9800998ecf8427e"


def write_plugins_file(project_dir, plugins):
    js_dir = os.path.join(project_dir, "js")
    os.makedirs(js_dir, exist_ok=True)
    path = os.path.join(js_dir, "plugins.js")
    lines = ",\n".join(compact(p) for p in plugins)
    with open(path, "w", encoding="utf-8") as f:
        f.write("// Generated by RPG Maker.\n// Do not edit this file directly.\n")
        f.write("var $plugins =\n[\n" + lines + "\n];\n")
    return path


def picture_plugin(picture_list_text):
    return {
        "name": "CharacterPictureManager", "status": True,
        "description": "Stand picture manager",
        "parameters": {"PictureList": picture_list_text, "DefaultX": "0"},
    }


OTHER_PLUGINS = [
    {"name": "PluginCommonBase", "status": True, "description": "", "parameters": {}},
    {"name": "TextScrollWindow", "status": False, "description": "scroll",
     "parameters": {"Speed": "2", "Items": "[\"a\",\"b\"]"}},
]


@pytest.fixture
def game_project(tmp_path, cast_text):
    """MZ project: plugins.js with the cast sample, System.json, pictures"""
    root = str(tmp_path / "game")
    write_plugins_file(root, [OTHER_PLUGINS[0], picture_plugin(cast_text), OTHER_PLUGINS[1]])

    data_dir = os.path.join(root, "data")
    os.makedirs(data_dir)
    with open(os.path.join(data_dir, "System.json"), "w", encoding="utf-8") as f:
        json.dump({"gameTitle": "Test", "encryptionKey": ENCRYPTION_KEY}, f)

    pictures = os.path.join(root, "img", "pictures")
    os.makedirs(os.path.join(pictures, "child", "misaki", "emotion"))
    os.makedirs(os.path.join(pictures, "rei"))
    for rel in ("child/misaki/body.png", "child/misaki/emotion/joy.png",
                "child/misaki/emotion/joy.png_", "rei/body.png_", "notes.txt"):
        with open(os.path.join(pictures, *rel.split("/")), "wb") as f:
            f.write(b"")
    return root
