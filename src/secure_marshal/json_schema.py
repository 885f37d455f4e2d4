"""JSON Schema export.

Translates a marshaller into a Draft 2020-12 JSON Schema document so the
same shape can be published to tools that speak JSON Schema (API docs,
other-language clients). The translation is checked with jsonschema's
meta-schema before it is returned.

Some behavior has no JSON Schema equivalent and is approximated:
- custom validators keep only their inner schema, annotated with `x-custom`
- witness brands become `x-brand` annotations
- prototype-pollution rejection maps to forbidding a `__proto__` property
"""

from __future__ import annotations

from typing import Any

import jsonschema

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

DRAFT = "https://json-schema.org/draft/2020-12/schema"

_PRIMITIVES = {"boolean": "boolean", "number": "number", "string": "string"}


class _Exporter:
    def __init__(self) -> None:
        self.defs: dict[str, Any] = {}
        self.names: dict[int, str] = {}

    def convert(self, m: Marshaller) -> dict[str, Any]:
        if isinstance(m, LiteralType):
            if m.value is UNDEFINED:
                raise ValueError("undefined literals have no JSON Schema equivalent")
            return {"const": m.value}
        if isinstance(m, (BooleanType, NumberType, StringType)):
            return {"type": _PRIMITIVES[m.kind]}
        if isinstance(m, (AnyType, UnknownType)):
            return {}
        if isinstance(m, OptionalType):
            # Absence is expressed by the enclosing object's "required" list
            return self.convert(m.type)
        if isinstance(m, ObjectType):
            return {
                "type": "object",
                "properties": {k: self.convert(v) for k, v in m.fields.items()},
                "required": [k for k, v in m.fields.items() if not isinstance(v, OptionalType)],
                "additionalProperties": False,
            }
        if isinstance(m, RecordType):
            return {
                "type": "object",
                "additionalProperties": self.convert(m.type),
                "not": {"required": ["__proto__"]},
            }
        if isinstance(m, ArrayType):
            return {"type": "array", "items": self.convert(m.type)}
        if isinstance(m, TupleType):
            n = len(m.fields)
            schema: dict[str, Any] = {"type": "array", "minItems": n, "maxItems": n}
            if n:
                schema["prefixItems"] = [self.convert(v) for v in m.fields]
            return schema
        if isinstance(m, UnionType):
            return {"anyOf": [self.convert(v) for v in m.types]}
        if isinstance(m, RecursiveType):
            key = id(m)
            if key not in self.names:
                name = f"rec{len(self.names)}"
                self.names[key] = name
                self.defs[name] = self.convert(m.self)
            return {"$ref": f"#/$defs/{self.names[key]}"}
        if isinstance(m, CustomType):
            return {**self.convert(m.type), "x-custom": m.name or getattr(m.fn, "__name__", "anonymous")}
        if isinstance(m, WitnessType):
            inner = self.convert(m.type)
            if m.brand is not None:
                inner = {**inner, "x-brand": m.brand}
            return inner
        raise ValueError(f"Cannot export {type(m).__name__}")


def to_json_schema(marshaller: Marshaller, *, title: str | None = None) -> dict[str, Any]:
    """Export `marshaller` as a Draft 2020-12 JSON Schema document.

    Raises:
        ValueError: If the marshaller contains an undefined literal.
        jsonschema.SchemaError: If the generated document is not a valid
            schema (indicates a bug in the exporter).
    """
    exporter = _Exporter()
    body = exporter.convert(marshaller)
    document: dict[str, Any] = {"$schema": DRAFT}
    if title is not None:
        document["title"] = title
    document.update(body)
    if exporter.defs:
        document["$defs"] = exporter.defs
    jsonschema.Draft202012Validator.check_schema(document)
    return document
