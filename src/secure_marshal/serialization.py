"""Schema documents: load/save marshallers from YAML, JSON, or dicts.

Marshallers are normally built in code with `M`, but operators can also
describe them in config files:

    # shape.yaml
    kind: union
    types:
      - kind: object
        fields:
          kind: {kind: literal, value: circle}
          radius: {kind: number}
      - kind: object
        fields:
          kind: {kind: literal, value: square}
          side: {kind: custom, name: int}

Self-reference uses an `id` on the recursive node and a `ref` pointing back:

    kind: recursive
    id: tree
    self:
      kind: object
      fields:
        value: {kind: number}
        left: {kind: optional, type: {kind: ref, id: tree}}

Custom validators are referenced by name and resolved through a registry
(`register_validator`). Documents are validated against SCHEMA_DOCUMENT
before conversion, so a malformed file fails with a path-qualified
MarshalError under the name "SCHEMA".
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

from .builders import BUILTIN_VALIDATORS, M
from .marshal import validate
from .model import (
    UNDEFINED,
    AnyType,
    ArrayType,
    BooleanType,
    CustomType,
    LiteralType,
    Marshaller,
    NumberType,
    ObjectType,
    OptionalType,
    RecordType,
    RecursiveType,
    StringType,
    TupleType,
    UnionType,
    UnknownType,
    WitnessType,
)

_validators: dict[str, Marshaller] = dict(BUILTIN_VALIDATORS)


def register_validator(name: str, fn: Callable[[Any], None], type_: Marshaller | None = None) -> None:
    """Make a custom validator available to schema documents under `name`.

    `type_` is the marshaller the value must satisfy before `fn` runs
    (default: any). Documents refer to it as `{kind: custom, name: <name>}`.
    """
    if name in _validators:
        raise ValueError(f"Validator '{name}' is already registered")
    _validators[name] = CustomType(type_ if type_ is not None else AnyType(), fn, name)


def registered_validators() -> list[str]:
    return sorted(_validators)


def _build_document_schema() -> Marshaller:
    primitive = M.union(M.str, M.num, M.bool, M.nul)

    def variant(kind: str, **fields: Marshaller) -> Marshaller:
        return M.obj({"kind": M.lit(kind), **fields})

    def generate(node: Marshaller) -> Marshaller:
        return M.union(
            variant("literal", value=M.opt(primitive), undefined=M.opt(M.lit(True))),
            variant("boolean"),
            variant("number"),
            variant("string"),
            variant("any"),
            variant("unknown"),
            variant("optional", type=node),
            variant("object", fields=M.record(node)),
            variant("array", type=node),
            variant("tuple", fields=M.arr(node)),
            variant("union", types=M.arr(node)),
            variant("recursive", id=M.str, self=node),
            variant("ref", id=M.str),
            variant("custom", name=M.str),
            variant("record", type=node),
            variant("witness", type=node, brand=M.opt(M.str)),
        )

    return M.rec(generate)


# Meta-schema every schema document must satisfy.
SCHEMA_DOCUMENT: Marshaller = _build_document_schema()


def marshaller_to_dict(marshaller: Marshaller) -> dict[str, Any]:
    """Serialize a marshaller to a plain dict (suitable for JSON/YAML).

    The output round-trips through marshaller_from_dict(). Recursive nodes
    get generated ids ("rec0", "rec1", ...).

    Raises:
        ValueError: If the marshaller holds an unnamed custom validator.
    """
    return _to_dict(marshaller, {})


def marshaller_from_dict(d: dict[str, Any]) -> Marshaller:
    """Deserialize a marshaller from a plain dict.

    Raises:
        MarshalError: If the document is not shaped like a schema document.
        ValueError: If it is well-formed but refers to an unknown validator,
            an unknown or out-of-scope `ref`, reuses a recursive id, or has a
            literal without exactly one of `value` and `undefined`.
    """
    validate(d, SCHEMA_DOCUMENT, "SCHEMA")
    return _from_dict(d, {})


def marshaller_to_json(marshaller: Marshaller, path: str | Path | None = None, indent: int = 2) -> str:
    """Serialize a marshaller to JSON string. Optionally write to a file."""
    s = json.dumps(marshaller_to_dict(marshaller), indent=indent)
    if path is not None:
        Path(path).write_text(s + "\n", encoding="utf-8")
    return s


def marshaller_from_json(source: str | Path) -> Marshaller:
    """Load a marshaller from a JSON string or file path.

    If source looks like a file path (contains / or \\, or ends in .json),
    it's treated as a file. Otherwise, it's parsed as a JSON string.
    """
    text = _read_source(source, (".json",))
    return marshaller_from_dict(json.loads(text))


def marshaller_to_yaml(marshaller: Marshaller, path: str | Path | None = None) -> str:
    """Serialize a marshaller to YAML string. Optionally write to a file.

    Requires PyYAML (pip install secure-marshal[yaml]).
    """
    try:
        import yaml
    except ImportError:
        raise ImportError("PyYAML is required for YAML serialization: pip install secure-marshal[yaml]")

    s = yaml.safe_dump(marshaller_to_dict(marshaller), default_flow_style=False, sort_keys=False)
    if path is not None:
        Path(path).write_text(s, encoding="utf-8")
    return s


def marshaller_from_yaml(source: str | Path) -> Marshaller:
    """Load a marshaller from a YAML string or file path.

    Requires PyYAML (pip install secure-marshal[yaml]).
    """
    try:
        import yaml
    except ImportError:
        raise ImportError("PyYAML is required for YAML serialization: pip install secure-marshal[yaml]")

    text = _read_source(source, (".yaml", ".yml"))
    d = yaml.safe_load(text)
    if not isinstance(d, dict):
        raise ValueError(f"YAML must deserialize to a dict, got {type(d).__name__}")
    return marshaller_from_dict(d)


# --- Internal helpers ---

def _read_source(source: str | Path, suffixes: tuple[str, ...]) -> str:
    path = Path(source)
    if path.suffix in suffixes or "/" in str(source) or "\\" in str(source):
        try:
            return path.read_text(encoding="utf-8")
        except OSError:
            # Fall through, maybe it's actually inline text
            return str(source)
    return str(source)


def _to_dict(m: Marshaller, ids: dict[int, str]) -> dict[str, Any]:
    if isinstance(m, LiteralType):
        if m.value is UNDEFINED:
            return {"kind": "literal", "undefined": True}
        return {"kind": "literal", "value": m.value}
    if isinstance(m, (BooleanType, NumberType, StringType, AnyType, UnknownType)):
        return {"kind": m.kind}
    if isinstance(m, (OptionalType, ArrayType, RecordType)):
        return {"kind": m.kind, "type": _to_dict(m.type, ids)}
    if isinstance(m, ObjectType):
        return {"kind": "object", "fields": {k: _to_dict(v, ids) for k, v in m.fields.items()}}
    if isinstance(m, TupleType):
        return {"kind": "tuple", "fields": [_to_dict(v, ids) for v in m.fields]}
    if isinstance(m, UnionType):
        return {"kind": "union", "types": [_to_dict(v, ids) for v in m.types]}
    if isinstance(m, RecursiveType):
        # Only enclosing nodes can be referenced; siblings get their own copy
        if id(m) in ids:
            return {"kind": "ref", "id": ids[id(m)]}
        rec_id = f"rec{len(ids)}"
        ids[id(m)] = rec_id
        try:
            return {"kind": "recursive", "id": rec_id, "self": _to_dict(m.self, ids)}
        finally:
            del ids[id(m)]
    if isinstance(m, CustomType):
        if m.name is None:
            raise ValueError("Custom marshallers need a name to be serialized")
        return {"kind": "custom", "name": m.name}
    if isinstance(m, WitnessType):
        d = {"kind": "witness", "type": _to_dict(m.type, ids)}
        if m.brand is not None:
            d["brand"] = m.brand
        return d
    raise ValueError(f"Cannot serialize {type(m).__name__}")


def _from_dict(d: dict[str, Any], scope: dict[str, RecursiveType]) -> Marshaller:
    kind = d["kind"]

    if kind == "literal":
        if ("value" in d) == ("undefined" in d):
            raise ValueError("literal requires exactly one of 'value' or 'undefined'")
        if "undefined" in d:
            return M.undef
        return M.lit(d["value"])
    if kind == "boolean":
        return M.bool
    if kind == "number":
        return M.num
    if kind == "string":
        return M.str
    if kind == "any":
        return M.any
    if kind == "unknown":
        return M.unk
    if kind == "optional":
        return M.opt(_from_dict(d["type"], scope))
    if kind == "array":
        return M.arr(_from_dict(d["type"], scope))
    if kind == "record":
        return M.record(_from_dict(d["type"], scope))
    if kind == "object":
        return M.obj({k: _from_dict(v, scope) for k, v in d["fields"].items()})
    if kind == "tuple":
        return M.tup(*(_from_dict(v, scope) for v in d["fields"]))
    if kind == "union":
        if len(d["types"]) < 2:
            raise ValueError(f"union requires at least 2 types, got {len(d['types'])}")
        return M.union(*(_from_dict(v, scope) for v in d["types"]))
    if kind == "witness":
        return M.witness(_from_dict(d["type"], scope), d.get("brand"))
    if kind == "custom":
        name = d["name"]
        if name not in _validators:
            valid = ", ".join(registered_validators())
            raise ValueError(f"Unknown custom validator '{name}' (valid: {valid})")
        return _validators[name]
    if kind == "recursive":
        rec_id = d["id"]
        if rec_id in scope:
            raise ValueError(f"Recursive id '{rec_id}' is already in use by an enclosing node")
        node = RecursiveType()
        node.bind(_from_dict(d["self"], {**scope, rec_id: node}))
        return node
    if kind == "ref":
        rec_id = d["id"]
        if rec_id not in scope:
            raise ValueError(f"ref '{rec_id}' does not point to an enclosing recursive node")
        return scope[rec_id]

    raise ValueError(f"Unknown marshaller kind '{kind}'")
