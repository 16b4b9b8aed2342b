"""Codec for the CharacterPictureManager ``PictureList`` parameter.

RPG Maker MZ stores struct-list plugin parameters as JSON inside JSON: the
parameter is a JSON array of strings, each string is the JSON of one layer,
and the layer's ``FileList`` is again a JSON string holding an array of
JSON-encoded file records.  Encoding mirrors JavaScript's ``JSON.stringify``
(compact separators, no ASCII escaping) so the host plugin and the
browser-based editor read our output unchanged.
"""

import json
import logging

from .picture_model import FILE_LIST_KEY, PictureFile, PictureLayer

log = logging.getLogger(__name__)

_SEPARATORS = (",", ":")


class DecodeError(ValueError):
    """Malformed outer or nested JSON in a PictureList value."""


def _dumps(value) -> str:
    return json.dumps(value, ensure_ascii=False, separators=_SEPARATORS)


def _loads(text: str, what: str):
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise DecodeError(f"Invalid JSON in {what}: {exc}") from exc


def _parse_record(item, what: str) -> dict:
    """Parse one JSON-encoded record; already-parsed objects pass through."""
    if isinstance(item, str):
        item = _loads(item, what)
    if not isinstance(item, dict):
        raise DecodeError(f"{what} is not a JSON object")
    return item


def _decode_files(raw, layer_no: int) -> list:
    if isinstance(raw, str):
        if not raw.strip():
            return []
        raw = _loads(raw, f"FileList of layer {layer_no}")
    if not isinstance(raw, list):
        return []
    return [
        PictureFile.from_dict(_parse_record(item, f"file {i + 1} of layer {layer_no}"))
        for i, item in enumerate(raw)
    ]


def decode_picture_list(text: str) -> list:
    """Parse a PictureList parameter value into a list of PictureLayer.

    Raises DecodeError without side effects when any level fails to parse.
    """
    outer = _loads(text.strip() if isinstance(text, str) else text, "picture list")
    if not isinstance(outer, list):
        raise DecodeError("Picture list must be a JSON array")

    layers = []
    for i, item in enumerate(outer):
        data = _parse_record(item, f"layer {i + 1}")
        files = _decode_files(data.get(FILE_LIST_KEY), i + 1)
        layers.append(PictureLayer.from_dict(data, files))
    log.debug("Decoded %d layers", len(layers))
    return layers


def encode_layer(layer: PictureLayer) -> str:
    """Encode one layer to its JSON string form (FileList double-encoded)."""
    file_list = _dumps([_dumps(f.to_dict()) for f in layer.files])
    return _dumps(layer.to_dict(file_list))


def encode_picture_list(layers) -> str:
    """Serialise layers back to the PictureList parameter value."""
    return _dumps([encode_layer(layer) for layer in layers])
