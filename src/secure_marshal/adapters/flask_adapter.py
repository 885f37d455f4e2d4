"""Flask integration.

Usage::

    from secure_marshal import M
    from secure_marshal.adapters.flask_adapter import validate_json

    CreateUser = M.obj({"name": M.str, "age": M.opt(M.int)})

    @app.post("/users")
    @validate_json(CreateUser)
    def create_user():
        body = g.marshalled  # validated request body
        return jsonify(body), 201

A rejected request gets a 400 response whose JSON body is
RequestValidationError.to_dict(). A body that is not JSON gets a 400
response with only an "error" message.
"""

from __future__ import annotations

import functools
from typing import Any, Callable

try:
    from flask import g, jsonify, request as flask_request
except ImportError as exc:
    raise ImportError(
        "Flask is required for the Flask adapter. "
        "Install it with: pip install 'secure-marshal[flask]'"
    ) from exc

from secure_marshal.documents import DocumentError, parse_json
from secure_marshal.http import (
    BODY_CONTEXT,
    QUERY_CONTEXT,
    RequestValidationError,
    check_request_part,
)
from secure_marshal.model import UNDEFINED, Marshaller

__all__ = ["validate_json", "validate_args"]


def _decorator(extract: Callable[[], Any], marshaller: Marshaller, name: str, context: str) -> Callable:
    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                g.marshalled = check_request_part(extract(), marshaller, name=name, context=context)
            except DocumentError as e:
                return jsonify({"error": f"{context}: {e}"}), 400
            except RequestValidationError as e:
                return jsonify(e.to_dict()), 400
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def _json_body() -> Any:
    # Decoded regardless of Content-Type; an empty body is absent, not null
    raw = flask_request.get_data()
    if not raw:
        return UNDEFINED
    return parse_json(raw)


def validate_json(marshaller: Marshaller, *, name: str = "body", context: str = BODY_CONTEXT) -> Callable:
    """Decorator validating the JSON request body against `marshaller`."""
    return _decorator(_json_body, marshaller, name, context)


def validate_args(marshaller: Marshaller, *, name: str = "query", context: str = QUERY_CONTEXT) -> Callable:
    """Decorator validating the query string (first value per key)."""
    return _decorator(lambda: flask_request.args.to_dict(), marshaller, name, context)
