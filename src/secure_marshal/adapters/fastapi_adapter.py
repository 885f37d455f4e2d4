"""FastAPI integration.

Usage::

    from fastapi import Depends, FastAPI
    from secure_marshal import M
    from secure_marshal.adapters.fastapi_adapter import marshalled_body

    CreateUser = M.obj({"name": M.str, "age": M.opt(M.int)})

    @app.post("/users")
    async def create_user(body: dict = Depends(marshalled_body(CreateUser))):
        return body

A rejected request raises HTTPException(400) whose detail is
RequestValidationError.to_dict().
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

try:
    from fastapi import HTTPException
    from starlette.requests import Request
except ImportError as exc:
    raise ImportError(
        "FastAPI/Starlette is required for the FastAPI adapter. "
        "Install it with: pip install 'secure-marshal[fastapi]'"
    ) from exc

from secure_marshal.documents import DocumentError, parse_json
from secure_marshal.http import (
    BODY_CONTEXT,
    QUERY_CONTEXT,
    RequestValidationError,
    check_request_part,
)
from secure_marshal.model import UNDEFINED, Marshaller

__all__ = ["marshalled_body", "marshalled_query"]


def _check(data: Any, marshaller: Marshaller, name: str, context: str) -> Any:
    try:
        return check_request_part(data, marshaller, name=name, context=context)
    except RequestValidationError as e:
        raise HTTPException(status_code=400, detail=e.to_dict()) from e


def marshalled_body(
    marshaller: Marshaller, *, name: str = "body", context: str = BODY_CONTEXT
) -> Callable[[Request], Awaitable[Any]]:
    """Dependency returning the validated JSON request body."""

    async def dependency(request: Request) -> Any:
        raw = await request.body()
        if not raw:
            data: Any = UNDEFINED
        else:
            try:
                data = parse_json(raw)
            except DocumentError as e:
                raise HTTPException(status_code=400, detail={"error": f"{context}: {e}"}) from e
        return _check(data, marshaller, name, context)

    return dependency


def marshalled_query(
    marshaller: Marshaller, *, name: str = "query", context: str = QUERY_CONTEXT
) -> Callable[[Request], Awaitable[Any]]:
    """Dependency returning the validated query parameters (one value per key)."""

    async def dependency(request: Request) -> Any:
        return _check(dict(request.query_params), marshaller, name, context)

    return dependency
