"""Parse-and-validate helpers for untrusted JSON/YAML text.

Decoding and validation happen in one call, so data read off the wire is
never handed to application code before it has been checked:

    >>> from secure_marshal import M
    >>> from secure_marshal.documents import load_json
    >>> load_json('{"id": 1}', M.obj({"id": M.int}))
    {'id': 1}
"""

from __future__ import annotations

import json
from typing import Any

from .marshal import validate
from .model import Marshaller


class DocumentError(Exception):
    """Raised when text can't be decoded in the requested format."""

    def __init__(self, message: str, format: str):
        super().__init__(message)
        self.format = format


def parse_json(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DocumentError(f"Invalid JSON: {e}", format="json") from e


def parse_yaml(text: str | bytes) -> Any:
    """Decode YAML with safe_load (no arbitrary Python object construction).

    Requires PyYAML (pip install secure-marshal[yaml]).
    """
    try:
        import yaml
    except ImportError:
        raise DocumentError(
            "PyYAML is required for YAML parsing: pip install secure-marshal[yaml]",
            format="yaml",
        )

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentError(f"Invalid YAML: {e}", format="yaml") from e


def load_json(text: str | bytes, marshaller: Marshaller, *, name: str = "INPUT") -> Any:
    """Decode JSON text and validate it. Returns the decoded data.

    Raises:
        DocumentError: If the text is not valid JSON.
        MarshalError: If the decoded data does not conform.
    """
    data = parse_json(text)
    validate(data, marshaller, name)
    return data


def load_yaml(text: str | bytes, marshaller: Marshaller, *, name: str = "INPUT") -> Any:
    """Decode YAML text and validate it. Returns the decoded data."""
    data = parse_yaml(text)
    validate(data, marshaller, name)
    return data
