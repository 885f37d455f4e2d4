"""Request validation for HTTP handlers.

Framework-neutral core shared by the adapters in `secure_marshal.adapters`.
A handler is wrapped so that one slice of the incoming request (its body or
its query parameters) is validated before the handler runs:

    handler = with_body(CreateUser, create_user)
    handler(request)   # raises RequestValidationError on a bad body

Only MarshalError is rewrapped. Any other exception, from validation or
from the handler itself, propagates unchanged.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from .marshal import MarshalError, validate
from .model import Marshaller

logger = logging.getLogger(__name__)

BODY_CONTEXT = "Invalid request body"
QUERY_CONTEXT = "Invalid request query"


class RequestValidationError(Exception):
    """A request slice failed validation.

    Attributes:
        message: `<context>: <MarshalError message>`.
        error: The underlying MarshalError.
    """

    def __init__(self, context: str, error: MarshalError):
        self.context = context
        self.error = error
        self.message = f"{context}: {error.message}"
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "path": list(self.error.path),
            "rule": self.error.rule,
            "info": self.error.info,
        }


def check_request_part(
    data: Any, marshaller: Marshaller, *, name: str, context: str
) -> Any:
    """Validate one slice of a request and return it unchanged.

    Raises:
        RequestValidationError: If `data` does not conform to `marshaller`.
    """
    try:
        validate(data, marshaller, name)
    except MarshalError as e:
        logger.info("rejected %s: %s", name, e.message)
        raise RequestValidationError(context, e) from e
    return data


def _with_part(
    attribute: str, marshaller: Marshaller, handler: Callable, name: str, context: str
) -> Callable:
    @functools.wraps(handler)
    def wrapper(request: Any, *args: Any, **kwargs: Any) -> Any:
        check_request_part(getattr(request, attribute), marshaller, name=name, context=context)
        return handler(request, *args, **kwargs)

    return wrapper


def with_body(
    marshaller: Marshaller,
    handler: Callable,
    *,
    name: str = "body",
    context: str = BODY_CONTEXT,
) -> Callable:
    """Wrap `handler(request, ...)` so `request.body` is validated first."""
    return _with_part("body", marshaller, handler, name, context)


def with_query(
    marshaller: Marshaller,
    handler: Callable,
    *,
    name: str = "query",
    context: str = QUERY_CONTEXT,
) -> Callable:
    """Wrap `handler(request, ...)` so `request.query` is validated first."""
    return _with_part("query", marshaller, handler, name, context)
