"""Tests for schema documents as dicts, JSON and YAML."""

import json

import pytest
import yaml

from secure_marshal import M, MarshalError, UNDEFINED, RecursiveType, validate
from secure_marshal.serialization import (
    SCHEMA_DOCUMENT,
    marshaller_from_dict,
    marshaller_from_json,
    marshaller_from_yaml,
    marshaller_to_dict,
    marshaller_to_json,
    marshaller_to_yaml,
    register_validator,
    registered_validators,
)


SHAPE = M.union(
    M.obj({"kind": M.lit("circle"), "radius": M.num}),
    M.obj({"kind": M.lit("square"), "side": M.int, "label": M.opt(M.str)}),
)


class TestToDict:
    def test_leaves(self):
        assert marshaller_to_dict(M.num) == {"kind": "number"}
        assert marshaller_to_dict(M.any) == {"kind": "any"}
        assert marshaller_to_dict(M.lit("a")) == {"kind": "literal", "value": "a"}
        assert marshaller_to_dict(M.nul) == {"kind": "literal", "value": None}
        assert marshaller_to_dict(M.undef) == {"kind": "literal", "undefined": True}

    def test_composites(self):
        d = marshaller_to_dict(M.obj({"tags": M.arr(M.str), "pair": M.tup(M.num, M.bool)}))
        assert d == {
            "kind": "object",
            "fields": {
                "tags": {"kind": "array", "type": {"kind": "string"}},
                "pair": {"kind": "tuple", "fields": [{"kind": "number"}, {"kind": "boolean"}]},
            },
        }

    def test_witness_brand(self):
        assert marshaller_to_dict(M.witness(M.str, "UserId")) == {
            "kind": "witness", "type": {"kind": "string"}, "brand": "UserId",
        }

    def test_named_custom(self):
        assert marshaller_to_dict(M.int) == {"kind": "custom", "name": "int"}

    def test_unnamed_custom_rejected(self):
        with pytest.raises(ValueError, match="need a name"):
            marshaller_to_dict(M.custom(M.str, lambda s: None))

    def test_recursive(self):
        tree = M.rec(lambda self: M.obj({"value": M.num, "left": M.opt(self)}))
        assert marshaller_to_dict(tree) == {
            "kind": "recursive",
            "id": "rec0",
            "self": {
                "kind": "object",
                "fields": {
                    "value": {"kind": "number"},
                    "left": {"kind": "optional", "type": {"kind": "ref", "id": "rec0"}},
                },
            },
        }

    def test_shared_recursive_in_siblings(self):
        tree = M.rec(lambda self: M.obj({"next": M.opt(self)}))
        d = marshaller_to_dict(M.tup(tree, tree))
        assert d["fields"][0]["kind"] == "recursive"
        assert d["fields"][1]["kind"] == "recursive"
        # Both copies must be loadable
        marshaller_from_dict(d)


class TestFromDict:
    def test_round_trip_shape(self):
        loaded = marshaller_from_dict(marshaller_to_dict(SHAPE))
        assert loaded == SHAPE
        validate({"kind": "square", "side": 2}, loaded)
        with pytest.raises(MarshalError) as exc_info:
            validate({"kind": "square", "side": 2.5}, loaded)
        assert exc_info.value.message == "[At INPUT.side]: Expected integer, got non-integer"

    def test_round_trip_undefined_literal(self):
        assert marshaller_from_dict(marshaller_to_dict(M.undef)) == M.undef

    def test_null_literal_needs_explicit_value(self):
        assert marshaller_from_dict({"kind": "literal", "value": None}) == M.nul
        with pytest.raises(ValueError, match="exactly one of 'value' or 'undefined'"):
            marshaller_from_dict({"kind": "literal"})

    def test_literal_with_value_and_undefined(self):
        with pytest.raises(ValueError, match="exactly one of"):
            marshaller_from_dict({"kind": "literal", "value": 1, "undefined": True})

    def test_recursive(self):
        d = {
            "kind": "recursive",
            "id": "tree",
            "self": {
                "kind": "object",
                "fields": {
                    "value": {"kind": "number"},
                    "left": {"kind": "optional", "type": {"kind": "ref", "id": "tree"}},
                },
            },
        }
        tree = marshaller_from_dict(d)
        assert isinstance(tree, RecursiveType)
        validate({"value": 1, "left": {"value": 2, "left": {"value": 3}}}, tree)
        with pytest.raises(MarshalError) as exc_info:
            validate({"value": 1, "left": {"value": "2"}}, tree)
        assert exc_info.value.path == ("left", "value")

    def test_unknown_ref(self):
        with pytest.raises(ValueError, match="does not point"):
            marshaller_from_dict({"kind": "ref", "id": "nowhere"})

    def test_reused_enclosing_id(self):
        d = {"kind": "recursive", "id": "a", "self": {"kind": "recursive", "id": "a", "self": {"kind": "number"}}}
        with pytest.raises(ValueError, match="already in use"):
            marshaller_from_dict(d)

    def test_unknown_validator(self):
        with pytest.raises(ValueError, match="Unknown custom validator 'email'"):
            marshaller_from_dict({"kind": "custom", "name": "email"})

    def test_short_union(self):
        with pytest.raises(ValueError, match="at least 2"):
            marshaller_from_dict({"kind": "union", "types": [{"kind": "number"}]})

    def test_unknown_kind_is_path_qualified(self):
        with pytest.raises(MarshalError) as exc_info:
            marshaller_from_dict({"kind": "object", "fields": {"a": {"kind": "nope"}}})
        err = exc_info.value
        assert err.name == "SCHEMA"
        assert err.path == ("fields", "a")
        assert "Found \"kind\" discriminator: [nope]" in err.info

    def test_missing_payload(self):
        with pytest.raises(MarshalError) as exc_info:
            marshaller_from_dict({"kind": "array"})
        assert exc_info.value.message.startswith("[At SCHEMA.type]")

    def test_excess_keys_rejected(self):
        with pytest.raises(MarshalError) as exc_info:
            marshaller_from_dict({"kind": "number", "minimum": 0})
        assert exc_info.value.info == "Found unexpected key: minimum"

    def test_document_schema_accepts_own_output(self):
        validate(marshaller_to_dict(SHAPE), SCHEMA_DOCUMENT)


class TestRegistry:
    def test_register_and_use(self):
        def starts_with_a(value):
            if not value.startswith("a"):
                raise ValueError("must start with a")

        register_validator("test_starts_with_a", starts_with_a, M.str)
        assert "test_starts_with_a" in registered_validators()

        marshaller = marshaller_from_dict({"kind": "custom", "name": "test_starts_with_a"})
        validate("abc", marshaller)
        with pytest.raises(MarshalError) as exc_info:
            validate("bcd", marshaller)
        assert exc_info.value.info == "must start with a"
        assert marshaller_to_dict(marshaller) == {"kind": "custom", "name": "test_starts_with_a"}

    def test_duplicate_name(self):
        with pytest.raises(ValueError, match="already registered"):
            register_validator("int", lambda v: None)


class TestJson:
    def test_round_trip_string(self):
        s = marshaller_to_json(SHAPE)
        assert json.loads(s)["kind"] == "union"
        assert marshaller_from_json(s) == SHAPE

    def test_file(self, tmp_path):
        path = tmp_path / "shape.json"
        marshaller_to_json(SHAPE, path=path)
        assert path.read_text(encoding="utf-8").endswith("\n")
        assert marshaller_from_json(path) == SHAPE
        assert marshaller_from_json(str(path)) == SHAPE

    def test_invalid_json(self):
        with pytest.raises(json.JSONDecodeError):
            marshaller_from_json("{not json")


class TestYaml:
    def test_round_trip_string(self):
        s = marshaller_to_yaml(SHAPE)
        assert yaml.safe_load(s)["kind"] == "union"
        assert marshaller_from_yaml(s) == SHAPE

    def test_hand_written(self):
        text = """\
kind: object
fields:
  name: {kind: string}
  tags:
    kind: array
    type: {kind: string}
  meta:
    kind: record
    type: {kind: unknown}
"""
        marshaller = marshaller_from_yaml(text)
        validate({"name": "x", "tags": ["a"], "meta": {"anything": [1]}}, marshaller)

    def test_file(self, tmp_path):
        path = tmp_path / "shape.yaml"
        marshaller_to_yaml(SHAPE, path=path)
        assert marshaller_from_yaml(path) == SHAPE

    def test_non_dict(self):
        with pytest.raises(ValueError, match="must deserialize to a dict"):
            marshaller_from_yaml("- a\n- b\n")

    def test_undefined_literal(self):
        assert marshaller_from_yaml(marshaller_to_yaml(M.opt(M.undef))) == M.opt(M.undef)
        assert UNDEFINED is marshaller_from_yaml("kind: literal\nundefined: true\n").value
