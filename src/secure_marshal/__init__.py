"""secure-marshal: Declarative validation of untrusted, decoded data."""

from .model import (
    UNDEFINED, Marshaller, MarshallerDefinitionError, KINDS,
    LiteralType, BooleanType, NumberType, StringType, OptionalType,
    ObjectType, ArrayType, TupleType, UnionType, RecursiveType,
    AnyType, UnknownType, CustomType, RecordType, WitnessType,
)
from .builders import M
from .marshal import MarshalError, validate, is_valid
from .serialization import (
    marshaller_to_dict, marshaller_from_dict,
    marshaller_to_json, marshaller_from_json,
    marshaller_to_yaml, marshaller_from_yaml,
    register_validator,
)
from .json_schema import to_json_schema
from .documents import DocumentError, load_json, load_yaml
from .http import RequestValidationError, check_request_part, with_body, with_query

__version__ = "1.0.0"
__all__ = [
    "UNDEFINED", "Marshaller", "MarshallerDefinitionError", "KINDS",
    "LiteralType", "BooleanType", "NumberType", "StringType", "OptionalType",
    "ObjectType", "ArrayType", "TupleType", "UnionType", "RecursiveType",
    "AnyType", "UnknownType", "CustomType", "RecordType", "WitnessType",
    "M", "MarshalError", "validate", "is_valid",
    "marshaller_to_dict", "marshaller_from_dict",
    "marshaller_to_json", "marshaller_from_json",
    "marshaller_to_yaml", "marshaller_from_yaml",
    "register_validator",
    "to_json_schema",
    "DocumentError", "load_json", "load_yaml",
    "RequestValidationError", "check_request_part", "with_body", "with_query",
]
