"""Validation engine.

`validate(value, marshaller)` walks the marshaller and the value together.
It returns None when the value conforms and raises MarshalError, carrying
the path to the offending element, on the first mismatch. Unions are the
one place failures are collected rather than raised: every alternative is
tried, and a heuristic picks the most useful failure to report.

Design principles:
- Deny-by-default: objects must match their declared fields exactly
- Untrusted input: anything that is not a plain dict, or that smuggles a
  `__proto__` key, is rejected before its fields are looked at
- Stateless: no engine state survives a call; marshallers are read-only
- Bounded: data nested more than MAX_DEPTH steps below the root is
  rejected with a MarshalError instead of exhausting the stack
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from typing import Any, NoReturn

from .model import (
    UNDEFINED,
    AnyType,
    ArrayType,
    BooleanType,
    CustomType,
    LiteralType,
    Marshaller,
    MarshallerDefinitionError,
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
    is_sequence,
    typeof,
)

logger = logging.getLogger(__name__)

PathStep = str | int
Path = tuple[PathStep, ...]

POLLUTION_MESSAGE = "Encountered prototype pollution"
DISCRIMINATOR = "kind"

# Data nesting below the root, counted in path steps
MAX_DEPTH = 200
DEPTH_MESSAGE = "Maximum nesting depth exceeded"
DEPTH_RULE = "depth"


def path_stringify(name: str, path: Sequence[PathStep]) -> str:
    """Render a path: `INPUT.items[2].name`."""
    rendered = name
    for step in path:
        if isinstance(step, int) and not isinstance(step, bool):
            rendered += f"[{step}]"
        else:
            rendered += f".{step}"
    return rendered


class MarshalError(Exception):
    """Raised when a value does not conform to a marshaller.

    Attributes:
        name: Label of the root value ("INPUT" unless the caller chose one).
        path: Field names and indices from the root to the failure.
        info: Human-readable reason.
        rule: Kind of the marshaller that rejected the value.
        message: `[At <rendered path>]: <info>`.
    """

    def __init__(self, name: str, path: Sequence[PathStep], info: str, rule: str):
        self.name = name
        self.path: Path = tuple(path)
        self.info = info
        self.rule = rule
        self.message = f"[At {path_stringify(name, self.path)}]: {info}"
        super().__init__(self.message)

    def __reduce__(self):
        return (type(self), (self.name, self.path, self.info, self.rule))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": list(self.path),
            "info": self.info,
            "rule": self.rule,
            "message": self.message,
        }


def render(value: Any) -> str:
    """Render a value the way diagnostics quote it."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(value, default=repr)
        except (TypeError, ValueError):
            # Non-string keys or cycles
            return repr(value)
    return repr(value)


def strict_equals(a: Any, b: Any) -> bool:
    """Equality without cross-type coercion: 1 == 1.0, but 1 != True, 1 != "1"."""
    tag = typeof(a)
    if tag != typeof(b):
        return False
    if tag in ("boolean", "number", "string"):
        return a == b
    return a is b


def _field_order(name: str, marshaller: Marshaller) -> int:
    # Discriminators first, then other constants, then everything else
    if not isinstance(marshaller, LiteralType):
        return 1
    return -1 if name == DISCRIMINATOR else 0


def _discriminator_values(union: UnionType) -> list[Any]:
    values = []
    for alternative in union.types:
        if isinstance(alternative, ObjectType):
            tag = alternative.fields.get(DISCRIMINATOR)
            if isinstance(tag, LiteralType):
                values.append(tag.value)
    return values


def validate(
    value: Any,
    marshaller: Marshaller,
    name: str = "INPUT",
    path: Sequence[PathStep] = (),
) -> None:
    """Assert that `value` conforms to `marshaller`.

    Args:
        value: Decoded data to check. Missing values are UNDEFINED.
        marshaller: Schema to check against.
        name: Label for the root in error messages.
        path: Steps already taken from the root (used when recursing).

    Raises:
        MarshalError: If the value does not conform, or nests deeper than
            MAX_DEPTH (rule "depth").
        MarshallerDefinitionError: If the marshaller itself is malformed.
    """
    path = tuple(path)
    try:
        _validate(value, marshaller, name, path)
    except RecursionError:
        # Wrapper chains can exhaust the stack before MAX_DEPTH is reached
        raise MarshalError(name, path, DEPTH_MESSAGE, DEPTH_RULE) from None


def _validate(value: Any, marshaller: Marshaller, name: str, path: Path) -> None:
    if len(path) > MAX_DEPTH:
        raise MarshalError(name, path, DEPTH_MESSAGE, DEPTH_RULE)

    def fail(info: str) -> NoReturn:
        raise MarshalError(name, path, info, marshaller.kind)

    if isinstance(marshaller, LiteralType):
        if not strict_equals(value, marshaller.value):
            fail(f"Expected constant value {render(marshaller.value)}, got {render(value)}")

    elif isinstance(marshaller, (BooleanType, NumberType, StringType)):
        observed = typeof(value)
        if observed != marshaller.kind:
            fail(f"Expected {marshaller.kind}, got {observed}")

    elif isinstance(marshaller, OptionalType):
        if value is not UNDEFINED:
            _validate(value, marshaller.type, name, path)

    elif isinstance(marshaller, ObjectType):
        _check_plain_object(value, fail)

        keys = sorted(marshaller.fields, key=lambda k: _field_order(k, marshaller.fields[k]))
        for key in keys:
            _validate(value.get(key, UNDEFINED), marshaller.fields[key], name, path + (key,))

        for key in value:
            if key not in marshaller.fields:
                fail(f"Found unexpected key: {key}")

    elif isinstance(marshaller, ArrayType):
        if not is_sequence(value):
            fail(f"Expected array, got {typeof(value)}")
        for idx, element in enumerate(value):
            _validate(element, marshaller.type, name, path + (idx,))

    elif isinstance(marshaller, TupleType):
        if not is_sequence(value):
            fail(f"Expected tuple, got {typeof(value)}")
        expected = len(marshaller.fields)
        if len(value) != expected:
            fail(f"Invalid tuple size: Expected {expected}, got {len(value)}")
        for idx, (element, field) in enumerate(zip(value, marshaller.fields)):
            _validate(element, field, name, path + (idx,))

    elif isinstance(marshaller, UnionType):
        _validate_union(value, marshaller, name, path, fail)

    elif isinstance(marshaller, RecursiveType):
        _validate(value, marshaller.self, name, path)

    elif isinstance(marshaller, (AnyType, UnknownType)):
        pass

    elif isinstance(marshaller, CustomType):
        _validate(value, marshaller.type, name, path)
        try:
            result = marshaller.fn(value)
        except Exception as e:
            raise MarshalError(name, path, str(e), marshaller.kind) from e
        if result is not None:
            fail("Custom validation function unexpectedly returned a value")

    elif isinstance(marshaller, RecordType):
        _check_plain_object(value, fail)
        for key, element in value.items():
            step = key if isinstance(key, str) else str(key)
            _validate(element, marshaller.type, name, path + (step,))

    elif isinstance(marshaller, WitnessType):
        _validate(value, marshaller.type, name, path)

    else:
        raise MarshallerDefinitionError(
            f'Reached unexpected type description "{getattr(marshaller, "kind", type(marshaller).__name__)}"'
        )


def is_valid(value: Any, marshaller: Marshaller) -> bool:
    """True if `value` conforms to `marshaller`, False on MarshalError."""
    try:
        validate(value, marshaller)
    except MarshalError:
        return False
    return True


def _check_plain_object(value: Any, fail) -> None:
    """Shape and prototype-pollution checks shared by object and record."""
    observed = typeof(value)
    if observed != "object":
        fail(f"Expected object, got {observed}")
    if value is None:
        fail("Expected object, got null")
    if is_sequence(value):
        fail("Expected object, got array")
    # Subclasses and foreign mappings can override lookups; only plain dicts pass
    if type(value) is not dict or "__proto__" in value:
        fail(POLLUTION_MESSAGE)


def _validate_union(value: Any, marshaller: UnionType, name: str, path: Path, fail) -> None:
    errors: list[MarshalError] = []
    for alternative in marshaller.types:
        try:
            _validate(value, alternative, name, path)
            return
        except MarshalError as e:
            if e.rule == DEPTH_RULE:
                raise
            errors.append(e)

    # Every alternative failed. Pick what to report:
    #
    # 1. If some alternatives are objects with a literal "kind" field, treat
    #    the union as discriminated. Then
    #    a. a failure below the discriminator or on a non-constant field means
    #       the discriminator matched and something else is wrong: report it;
    #    b. if the value has a "kind" field, it holds a wrong discriminator;
    #    c. otherwise the discriminator is missing.
    # 2. Without a discriminator there is no structural cue, so list the kinds
    #    of the alternatives.
    discriminators = _discriminator_values(marshaller)
    logger.debug(
        "union at %s: %d alternatives failed, discriminators=%r",
        path_stringify(name, path), len(errors), discriminators,
    )

    if not discriminators:
        expected = " | ".join(alt.kind for alt in marshaller.types)
        fail(f"Unable to match against union. Expected one of [{expected}]")

    for err in errors:
        shallow = (
            err.rule == LiteralType.kind
            and len(err.path) == len(path) + 1
            and err.path[-1] == DISCRIMINATOR
        )
        if not shallow:
            raise err

    expected = " | ".join(render(v) for v in discriminators)
    if isinstance(value, dict) and DISCRIMINATOR in value:
        fail(
            "Unable to match against union."
            f' Found "{DISCRIMINATOR}" discriminator: [{render(value[DISCRIMINATOR])}],'
            f" but needed one of [{expected}]"
        )
    fail(f'Unable to find "{DISCRIMINATOR}" discriminator. Expecting one of [{expected}]')
