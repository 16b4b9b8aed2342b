"""
Tests for the PictureList double-JSON codec.

Verifies:
- Decoding of the outer array, each layer and the nested FileList
- String-typed numeric convention on load and export
- Byte-identical export of canonical input, unknown keys preserved
- DecodeError on malformed input at every level
"""
import json

import pytest

from picture_editor.picture_codec import (
    DecodeError, decode_picture_list, encode_layer, encode_picture_list,
)
from picture_editor.picture_model import PictureFile

from conftest import compact, file_record, layer_record, picture_list


# ══════════════════════════════════════════════════════════════════════════
# Decoding
# ══════════════════════════════════════════════════════════════════════════

class TestDecode:

    def test_scenario_single_layer(self, scenario_text):
        layers = decode_picture_list(scenario_text)
        assert len(layers) == 1
        assert layers[0].name == "A"
        assert layers[0].actor_id == "1"
        assert layers[0].files == []

    def test_layer_count_and_order(self, cast_text):
        layers = decode_picture_list(cast_text)
        assert [l.name for l in layers] == [
            "Misaki Body", "Misaki Face", "Rei Body", "Misaki Ribbon"]

    def test_nested_files(self, cast_text):
        face = decode_picture_list(cast_text)[1]
        assert [f.file_name for f in face.files] == [
            "child/misaki/emotion/normal",
            "child/misaki/emotion/joy",
            "child/misaki/emotion/sad",
        ]
        joy = face.files[1]
        assert joy.variable == "12"
        assert joy.variable_type == "1"
        assert joy.variable_operand == "50"
        assert face.files[2].note == "泣き顔"

    def test_numeric_fields_stay_strings(self, cast_text):
        rei = decode_picture_list(cast_text)[2]
        assert rei.opacity == "200"
        assert rei.x == "-40"
        assert rei.scale_x == "100"

    def test_non_string_scalars_normalised(self):
        text = picture_list({"Name": "B", "ActorId": 3, "Opacity": 255.0,
                             "OutOfShake": True, "FileList": "[]"})
        layer = decode_picture_list(text)[0]
        assert layer.actor_id == "3"
        assert layer.opacity == "255"
        assert layer.out_of_shake == "true"

    def test_fresh_ids(self, cast_text):
        first = decode_picture_list(cast_text)
        second = decode_picture_list(cast_text)
        ids = {l.uid for l in first} | {l.uid for l in second}
        assert len(ids) == 8

    def test_missing_file_list_is_empty(self):
        layer = decode_picture_list(picture_list({"Name": "NoFiles"}))[0]
        assert layer.files == []

    def test_blank_file_list_is_empty(self):
        layer = decode_picture_list(picture_list({"Name": "Blank", "FileList": ""}))[0]
        assert layer.files == []

    def test_non_array_file_list_is_empty(self):
        layer = decode_picture_list(picture_list({"Name": "Obj", "FileList": "{}"}))[0]
        assert layer.files == []

    def test_file_list_already_an_array(self):
        text = picture_list({"Name": "Raw", "FileList": [compact({"FileName": "x/y"})]})
        layer = decode_picture_list(text)[0]
        assert [f.file_name for f in layer.files] == ["x/y"]

    def test_missing_keys_get_defaults(self, scenario_text):
        layer = decode_picture_list(scenario_text)[0]
        assert layer.opacity == "255"
        assert layer.scale_y == "100"
        assert layer.touch_switch == "0"

    def test_empty_array(self):
        assert decode_picture_list("[]") == []

    def test_surrounding_whitespace(self, scenario_text):
        assert len(decode_picture_list("\n  " + scenario_text + "\n")) == 1


# ══════════════════════════════════════════════════════════════════════════
# Decode errors
# ══════════════════════════════════════════════════════════════════════════

class TestDecodeErrors:

    @pytest.mark.parametrize("text", [
        "not json",
        '{"Name":"A"}',
        '["not json"]',
        "[1]",
        '["[1,2]"]',
    ])
    def test_malformed_levels(self, text):
        with pytest.raises(DecodeError):
            decode_picture_list(text)

    def test_broken_file_list(self):
        text = picture_list({"Name": "A", "FileList": "[\"{broken\"]"})
        with pytest.raises(DecodeError):
            decode_picture_list(text)

    def test_unparseable_file_list_string(self):
        text = picture_list({"Name": "A", "FileList": "[oops"})
        with pytest.raises(DecodeError):
            decode_picture_list(text)

    def test_decode_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode_picture_list("[")

    def test_message_names_the_layer(self):
        text = picture_list({"Name": "ok"})[:-1] + ',"{bad"]'
        with pytest.raises(DecodeError, match="layer 2"):
            decode_picture_list(text)


# ══════════════════════════════════════════════════════════════════════════
# Encoding
# ══════════════════════════════════════════════════════════════════════════

class TestEncode:

    def test_canonical_input_is_byte_identical(self, cast_text):
        assert encode_picture_list(decode_picture_list(cast_text)) == cast_text

    def test_round_trip_equal_except_ids(self, cast_text):
        first = decode_picture_list(cast_text)
        second = decode_picture_list(encode_picture_list(first))
        assert first == second
        assert {l.uid for l in first}.isdisjoint({l.uid for l in second})

    def test_ids_never_exported(self, cast_text):
        layers = decode_picture_list(cast_text)
        text = encode_picture_list(layers)
        for layer in layers:
            assert layer.uid not in text

    def test_double_encoding_shape(self, scenario_text):
        outer = json.loads(encode_picture_list(decode_picture_list(scenario_text)))
        assert isinstance(outer, list) and isinstance(outer[0], str)
        layer = json.loads(outer[0])
        assert layer["Name"] == "A"
        assert isinstance(layer["FileList"], str)
        assert json.loads(layer["FileList"]) == []

    def test_file_list_elements_are_strings(self):
        layers = decode_picture_list(picture_list(
            layer_record(files=[file_record(FileName="a"), file_record(FileName="b")])))
        files = json.loads(json.loads(encode_layer(layers[0]))["FileList"])
        assert [json.loads(f)["FileName"] for f in files] == ["a", "b"]

    def test_numeric_values_exported_as_strings(self):
        layers = decode_picture_list(picture_list({"Name": "N", "ActorId": 4, "X": 12}))
        layer = json.loads(json.loads(encode_picture_list(layers))[0])
        assert layer["ActorId"] == "4"
        assert layer["X"] == "12"

    def test_non_ascii_not_escaped(self, cast_text):
        text = encode_picture_list(decode_picture_list(cast_text))
        assert "泣き顔" in text

    def test_unknown_keys_preserved(self):
        text = picture_list(layer_record(
            Name="Extra", Memo="keep me",
            files=[file_record(FileName="a", Priority=2)]))
        layer = decode_picture_list(text)[0]
        assert layer.extra == {"Memo": "keep me"}
        assert layer.files[0].extra == {"Priority": 2}
        assert encode_picture_list([layer]) == text

    def test_key_order_follows_input(self):
        text = picture_list({"Name": "Z", "FileList": "[]", "ActorId": "5"})
        exported = json.loads(json.loads(encode_picture_list(decode_picture_list(text)))[0])
        assert list(exported)[:3] == ["Name", "FileList", "ActorId"]

    def test_new_file_exports_defaults(self, scenario_text):
        layer = decode_picture_list(scenario_text)[0]
        layer.files.append(PictureFile())
        again = decode_picture_list(encode_picture_list([layer]))[0]
        assert again.files == [PictureFile()]

    def test_empty_collection(self):
        assert encode_picture_list([]) == "[]"
