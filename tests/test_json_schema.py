"""Tests for JSON Schema export."""

import jsonschema
import pytest

from secure_marshal import M, is_valid
from secure_marshal.json_schema import DRAFT, to_json_schema


def _agrees(marshaller, value):
    validator = jsonschema.Draft202012Validator(to_json_schema(marshaller))
    return validator.is_valid(value) == is_valid(value, marshaller)


class TestExport:
    def test_header(self):
        doc = to_json_schema(M.num, title="Count")
        assert doc == {"$schema": DRAFT, "title": "Count", "type": "number"}

    def test_literal(self):
        assert to_json_schema(M.lit("a"))["const"] == "a"
        assert to_json_schema(M.nul)["const"] is None

    def test_undefined_literal(self):
        with pytest.raises(ValueError, match="undefined"):
            to_json_schema(M.undef)

    def test_object(self):
        doc = to_json_schema(M.obj({"a": M.num, "b": M.opt(M.str)}))
        assert doc["properties"] == {"a": {"type": "number"}, "b": {"type": "string"}}
        assert doc["required"] == ["a"]
        assert doc["additionalProperties"] is False

    def test_tuple(self):
        doc = to_json_schema(M.tup(M.num, M.str))
        assert doc["prefixItems"] == [{"type": "number"}, {"type": "string"}]
        assert doc["minItems"] == doc["maxItems"] == 2

    def test_empty_tuple(self):
        doc = to_json_schema(M.tup())
        assert "prefixItems" not in doc
        assert doc["maxItems"] == 0

    def test_union(self):
        assert to_json_schema(M.union(M.num, M.str))["anyOf"] == [{"type": "number"}, {"type": "string"}]

    def test_recursive(self):
        tree = M.rec(lambda self: M.obj({"value": M.num, "left": M.opt(self)}))
        doc = to_json_schema(tree)
        assert doc["$ref"] == "#/$defs/rec0"
        assert doc["$defs"]["rec0"]["properties"]["left"] == {"$ref": "#/$defs/rec0"}

    def test_annotations(self):
        assert to_json_schema(M.int)["x-custom"] == "int"
        assert to_json_schema(M.witness(M.str, "UserId"))["x-brand"] == "UserId"

    def test_any(self):
        assert to_json_schema(M.any) == {"$schema": DRAFT}


class TestAgreement:
    shape = M.union(
        M.obj({"kind": M.lit("circle"), "radius": M.num}),
        M.obj({"kind": M.lit("square"), "side": M.num}),
    )
    tree = M.rec(lambda self: M.obj({"value": M.num, "left": M.opt(self), "right": M.opt(self)}))

    @pytest.mark.parametrize("value", [
        {"kind": "circle", "radius": 1},
        {"kind": "square", "side": 2.5},
        {"kind": "circle", "side": 1},
        {"kind": "triangle"},
        {"radius": 1},
        [],
        None,
    ])
    def test_shape(self, value):
        assert _agrees(self.shape, value)

    @pytest.mark.parametrize("value", [
        {"value": 1},
        {"value": 1, "left": {"value": 2, "right": {"value": 3}}},
        {"value": 1, "left": {"value": "2"}},
        {"value": 1, "left": {"value": 2, "extra": True}},
    ])
    def test_tree(self, value):
        assert _agrees(self.tree, value)

    @pytest.mark.parametrize("value", [{"a": "x"}, {"a": 1}, {"__proto__": "x"}, {}])
    def test_record(self, value):
        assert _agrees(M.record(M.str), value)

    @pytest.mark.parametrize("value", [True, 1, [1, "a"], [1], ["a", 1]])
    def test_primitives_and_tuples(self, value):
        assert _agrees(M.union(M.bool, M.tup(M.num, M.str)), value)
