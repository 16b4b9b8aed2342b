"""
Tests for the layer/file records and their helpers.
"""
import pytest

from picture_editor.picture_model import (
    VARIABLE_OPERATORS, PictureFile, PictureLayer, as_text,
)


class TestAsText:

    @pytest.mark.parametrize("value, text", [
        ("12", "12"),
        (12, "12"),
        (12.0, "12"),
        (1.5, "1.5"),
        (True, "true"),
        (False, "false"),
        (None, ""),
        ([1, "a"], '[1,"a"]'),
    ])
    def test_normalise(self, value, text):
        assert as_text(value) == text


class TestVariableCondition:

    def test_operator_codes(self):
        assert list(VARIABLE_OPERATORS) == ["0", "1", "2", "3", "4", "5"]
        assert [symbol for symbol, _ in VARIABLE_OPERATORS.values()] == [
            "=", ">=", "<=", ">", "<", "!="]

    def test_summary(self):
        f = PictureFile(variable="12", variable_type="1", variable_operand="50")
        assert f.condition_summary() == "V[12] >= 50"
        assert PictureFile().condition_summary() == ""

    def test_summary_unknown_operator_reads_as_equal(self):
        f = PictureFile(variable="3", variable_type="9", variable_operand="1")
        assert f.condition_summary() == "V[3] = 1"


class TestRecords:

    def test_file_access_by_external_key(self):
        f = PictureFile()
        f.set("FileName", "child/misaki/body")
        f.set("HpUpperLimit", 80)
        assert f.get("FileName") == "child/misaki/body"
        assert f.hp_upper_limit == "80"
        assert f.basename == "body"

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValueError):
            PictureFile().get("Bogus")
        with pytest.raises(ValueError):
            PictureLayer().set("FileList", "[]")

    def test_layer_label(self):
        assert PictureLayer(name="Body", actor_id="3").label() == "Body (Actor 3)"
        assert PictureLayer(name="").label() == "Unnamed (Actor 1)"

    def test_clone(self):
        layer = PictureLayer(name="Body", files=[PictureFile(file_name="a")])
        twin = layer.clone()
        assert twin == layer
        assert twin.uid != layer.uid
        assert twin.files[0] is not layer.files[0]
        assert layer.clone(with_files=False).files == []

    def test_ids_ignored_by_equality(self):
        assert PictureLayer() == PictureLayer()
        assert PictureLayer().uid != PictureLayer().uid
