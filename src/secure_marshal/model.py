"""Schema model: the tagged variants a marshaller is built from.

A marshaller is an immutable description of what valid data looks like.
Leaf variants (literal, boolean, number, string, any, unknown) and composite
variants (optional, object, array, tuple, union, record, custom, recursive,
witness) nest to describe arbitrarily deep shapes. Self-referential shapes
go through RecursiveType, the only node allowed to close a cycle.

Values being validated are plain decoded data. Python has one "no value"
(None), so absence is spelled with the UNDEFINED sentinel: a missing object
field reads as UNDEFINED, while None is the null value.

Example:
    >>> from secure_marshal.model import ObjectType, NumberType, OptionalType
    >>> point = ObjectType({"x": NumberType(), "y": NumberType(), "z": OptionalType(NumberType())})
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, ClassVar


class MarshallerDefinitionError(Exception):
    """Raised when a marshaller itself is malformed.

    This is a defect in the schema, not a validation failure of the input:
    an unbound recursive node, a union with fewer than two alternatives,
    an unrecognized variant reaching the engine, and similar.
    """


class _Undefined:
    """The absent value. Falsy, singleton, distinct from None."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


def typeof(value: Any) -> str:
    """Primitive tag of a value, as reported in diagnostics.

    None, dicts and sequences all report "object"; only the absent value
    reports "undefined".
    """
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if callable(value):
        return "function"
    return "object"


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


class Marshaller:
    """Base class of every schema variant. `kind` is the variant tag."""

    kind: ClassVar[str] = ""

    __slots__ = ()


@dataclass(frozen=True)
class LiteralType(Marshaller):
    """Value must be strictly equal to `value`."""

    kind: ClassVar[str] = "literal"
    value: Any = None

    def __post_init__(self) -> None:
        if self.value is not None and typeof(self.value) not in ("undefined", "boolean", "number", "string"):
            raise MarshallerDefinitionError(
                f"Literal values must be primitives, got {type(self.value).__name__}"
            )


@dataclass(frozen=True)
class BooleanType(Marshaller):
    kind: ClassVar[str] = "boolean"


@dataclass(frozen=True)
class NumberType(Marshaller):
    kind: ClassVar[str] = "number"


@dataclass(frozen=True)
class StringType(Marshaller):
    kind: ClassVar[str] = "string"


@dataclass(frozen=True)
class AnyType(Marshaller):
    kind: ClassVar[str] = "any"


@dataclass(frozen=True)
class UnknownType(Marshaller):
    kind: ClassVar[str] = "unknown"


@dataclass(frozen=True)
class OptionalType(Marshaller):
    """UNDEFINED, or a value conforming to `type`."""

    kind: ClassVar[str] = "optional"
    type: Marshaller


@dataclass(frozen=True)
class ObjectType(Marshaller):
    """A plain dict whose keys are exactly the declared fields.

    Optional fields (OptionalType) may be absent; every other declared field
    must be present, and undeclared keys are rejected.
    """

    kind: ClassVar[str] = "object"
    fields: Mapping[str, Marshaller]

    def __post_init__(self) -> None:
        for name in self.fields:
            if not isinstance(name, str):
                raise MarshallerDefinitionError(
                    f"Object field names must be strings, got {type(name).__name__}"
                )
        # Freeze the field table so callers can't mutate it after construction
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __hash__(self) -> int:
        return hash((self.kind, tuple(self.fields.items())))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectType):
            return NotImplemented
        return dict(self.fields) == dict(other.fields)


@dataclass(frozen=True)
class ArrayType(Marshaller):
    """A list or tuple of any length, every element conforming to `type`."""

    kind: ClassVar[str] = "array"
    type: Marshaller


@dataclass(frozen=True)
class TupleType(Marshaller):
    """A list or tuple of exactly len(fields) elements, checked positionally."""

    kind: ClassVar[str] = "tuple"
    fields: tuple[Marshaller, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class UnionType(Marshaller):
    """At least one of `types` must match. Alternatives are tried in order."""

    kind: ClassVar[str] = "union"
    types: tuple[Marshaller, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "types", tuple(self.types))
        if len(self.types) < 2:
            raise MarshallerDefinitionError(
                f"A union needs at least 2 alternatives, got {len(self.types)}"
            )


@dataclass(frozen=True)
class CustomType(Marshaller):
    """Conform to `type`, then pass `fn`.

    `fn` receives the value and signals failure by raising; it must return
    None on success. `name` is only used to serialize the marshaller.
    """

    kind: ClassVar[str] = "custom"
    type: Marshaller
    fn: Callable[[Any], None] = field(compare=False)
    name: str | None = None

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise MarshallerDefinitionError(
                f"Custom validation function must be callable, got {type(self.fn).__name__}"
            )


@dataclass(frozen=True)
class RecordType(Marshaller):
    """A plain dict with arbitrary keys, every value conforming to `type`."""

    kind: ClassVar[str] = "record"
    type: Marshaller


@dataclass(frozen=True)
class WitnessType(Marshaller):
    """Runtime-transparent wrapper tagging `type` with a brand."""

    kind: ClassVar[str] = "witness"
    type: Marshaller
    brand: str | None = None


class RecursiveType(Marshaller):
    """Self-referential marshaller.

    Created unbound, handed to a generator that may embed it anywhere in the
    schema it returns, then bound to that schema exactly once. Equality and
    hashing are by identity so cyclic graphs compare and print safely.
    """

    kind: ClassVar[str] = "recursive"

    __slots__ = ("_self",)

    def __init__(self) -> None:
        self._self: Marshaller | None = None

    @property
    def self(self) -> Marshaller:
        if self._self is None:
            raise MarshallerDefinitionError("Recursive marshaller used before it was bound")
        return self._self

    @property
    def bound(self) -> bool:
        return self._self is not None

    def bind(self, target: Marshaller) -> None:
        if self._self is not None:
            raise MarshallerDefinitionError("Recursive marshaller is already bound")
        if not isinstance(target, Marshaller):
            raise MarshallerDefinitionError(
                f"Recursive marshaller must bind to a marshaller, got {type(target).__name__}"
            )
        self._self = target

    def __repr__(self) -> str:
        state = "bound" if self.bound else "unbound"
        return f"<RecursiveType {state} at {id(self):#x}>"


VARIANTS: tuple[type[Marshaller], ...] = (
    LiteralType, BooleanType, NumberType, StringType, OptionalType,
    ObjectType, ArrayType, TupleType, UnionType, RecursiveType,
    AnyType, UnknownType, CustomType, RecordType, WitnessType,
)

KINDS: tuple[str, ...] = tuple(v.kind for v in VARIANTS)
