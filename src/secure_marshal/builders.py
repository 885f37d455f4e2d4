"""Schema builders: the `M` namespace.

Thin factories over the model classes, meant to be used at module scope:

    >>> from secure_marshal import M
    >>> Shape = M.union(
    ...     M.obj({"kind": M.lit("circle"), "radius": M.num}),
    ...     M.obj({"kind": M.lit("square"), "side": M.int}),
    ... )
    >>> Tree = M.rec(lambda self: M.obj({"value": M.num, "left": M.opt(self), "right": M.opt(self)}))
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Callable

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


def _check_integer(value: float) -> None:
    if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
        raise ValueError("Expected integer, got non-integer")


class M:
    """Namespace of marshaller factories and shared leaf marshallers."""

    @staticmethod
    def lit(value: Any) -> Marshaller:
        return LiteralType(value)

    bool: Marshaller = BooleanType()
    num: Marshaller = NumberType()
    str: Marshaller = StringType()
    any: Marshaller = AnyType()
    unk: Marshaller = UnknownType()

    @staticmethod
    def opt(type_: Marshaller) -> Marshaller:
        return OptionalType(type_)

    @staticmethod
    def obj(fields: Mapping[str, Marshaller]) -> Marshaller:
        return ObjectType(fields)

    @staticmethod
    def arr(type_: Marshaller) -> Marshaller:
        return ArrayType(type_)

    @staticmethod
    def tup(*types: Marshaller) -> Marshaller:
        return TupleType(types)

    @staticmethod
    def union(*types: Marshaller) -> Marshaller:
        return UnionType(types)

    @staticmethod
    def rec(generator: Callable[[Marshaller], Marshaller]) -> Marshaller:
        """Build a self-referential marshaller.

        `generator` receives the (still unbound) recursive node and returns
        the schema it stands for; the node is bound to that schema before
        this function returns.
        """
        node = RecursiveType()
        node.bind(generator(node))
        return node

    @staticmethod
    def custom(
        type_: Marshaller, fn: Callable[[Any], None], name: str | None = None
    ) -> Marshaller:
        return CustomType(type_, fn, name)

    @staticmethod
    def record(type_: Marshaller) -> Marshaller:
        return RecordType(type_)

    @staticmethod
    def witness(type_: Marshaller, brand: str | None = None) -> Marshaller:
        return WitnessType(type_, brand)

    nul: Marshaller = LiteralType(None)
    undef: Marshaller = LiteralType(UNDEFINED)
    int: Marshaller = CustomType(NumberType(), _check_integer, "int")


# Named custom validators that schema documents can refer to.
BUILTIN_VALIDATORS: dict[str, Marshaller] = {
    "int": M.int,
}
