from __future__ import annotations

import json
import typing
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import PydanticUserError, TypeAdapter, ValidationError

from .body import json_default
from .errors import DecodeError, ErrorResponse, InvalidTargetError

NO_STANDARD_ERROR = "No standard error found"


@dataclass
class PaginatedResponse:
    total: int = 0
    limit: int = 0
    skip: int = 0
    data: list[Any] = field(default_factory=list)


@dataclass
class _PageShape:
    # services send null for metadata they don't track
    total: int | None = None
    limit: int | None = None
    skip: int | None = None
    data: list[Any] | None = None


@dataclass
class _ErrorShape:
    name: str | None = None
    message: str | None = None
    code: int | None = None
    class_name: str | None = None
    data: dict[str, str] | None = None
    errors: dict[str, str] | None = None


def _is_target(target: Any) -> bool:
    return isinstance(target, type) or typing.get_origin(target) is not None


def decode_into(data: Any, target: Any) -> Any:
    """Convert a generic value (dicts, lists, scalars) into ``target``.

    ``target`` is a type: a dataclass, a pydantic model, a builtin or a
    generic such as ``list[Item]``. Passing an instance raises
    ``InvalidTargetError``. The value goes through a JSON round trip first,
    which costs a second serialization but accepts anything the body
    encoder accepts.
    """
    if not _is_target(target):
        raise InvalidTargetError(target)
    try:
        adapter = TypeAdapter(target)
    except PydanticUserError as e:
        raise InvalidTargetError(target, f"cannot decode into {target!r}: {e}") from e
    try:
        raw = json.dumps(data, default=json_default)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"can't marshal response data: {e}") from e
    try:
        return adapter.validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"can't unmarshal response data into {target!r}: {e}") from e


def body_to_value(response: httpx.Response) -> Any:
    """Parse the raw response body as JSON."""
    content = response.read()
    try:
        return json.loads(content)
    except ValueError as e:
        raise DecodeError(f"response body is not valid JSON: {e}") from e


def is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 400


def parse_error(response: httpx.Response) -> ErrorResponse:
    """Error the remote service reported, or a fallback wrapping why it couldn't be read."""
    try:
        shape = decode_into(body_to_value(response), _ErrorShape)
    except DecodeError as e:
        return ErrorResponse(
            name=NO_STANDARD_ERROR,
            code=response.status_code,
            errors={"parsed error": str(e)},
        )
    return ErrorResponse(
        name=shape.name or "",
        message=shape.message or "",
        code=shape.code or 0,
        class_name=shape.class_name or "",
        data=shape.data,
        errors=shape.errors,
    )


def _paginated(response: httpx.Response) -> PaginatedResponse:
    if not is_success(response):
        raise parse_error(response)
    shape = decode_into(body_to_value(response), _PageShape)
    return PaginatedResponse(
        total=shape.total or 0,
        limit=shape.limit or 0,
        skip=shape.skip or 0,
        data=shape.data or [],
    )


def extract_paginated(response: httpx.Response, target: Any) -> Any:
    """Decode the ``data`` records of a paginated response into ``target``.

    Raises ``ErrorResponse`` for statuses outside 200-399.
    """
    page = _paginated(response)
    return decode_into(page.data, target)


def extract_first_paginated(response: httpx.Response, target: Any) -> Any:
    page = _paginated(response)
    if not page.data:
        raise DecodeError("paginated response holds no records")
    return decode_into(page.data[0], target)
