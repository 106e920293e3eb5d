from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

import httpx

AUTHORIZATION_HEADER = "Authorization"
TRACE_ID_HEADER = "X-Trace-Id"
CONTENT_TYPE_HEADER = "Content-Type"

JSON_CONTENT = "application/json"


class HeaderSource(Protocol):
    """Anything that can hand out a header value by name."""

    def get(self, key: str, default: Any = None) -> Any: ...


def to_headers(headers: Mapping[str, Any] | httpx.Headers | None) -> httpx.Headers:
    """Normalise ``{name: value | [values]}`` into an ``httpx.Headers``."""
    if headers is None:
        return httpx.Headers()
    if isinstance(headers, httpx.Headers):
        return httpx.Headers(headers.multi_items())
    items: list[tuple[str, str]] = []
    for name, value in headers.items():
        if isinstance(value, (list, tuple)):
            items.extend((name, str(v)) for v in value)
        else:
            items.append((name, str(value)))
    return httpx.Headers(items)


def append_header(headers: httpx.Headers, name: str, value: str) -> httpx.Headers:
    return httpx.Headers([*headers.multi_items(), (name, value)])


def _headers_of(source: Any) -> Any:
    if source is None:
        return None
    # framework request objects (starlette, flask, httpx) expose .headers;
    # wrapper contexts expose the inbound request as .request
    inner = getattr(source, "request", None)
    if inner is not None and not hasattr(source, "headers"):
        source = inner
    headers = getattr(source, "headers", source)
    if headers is None or not hasattr(headers, "get"):
        return None
    return headers


def header_from_source(source: Any, name: str) -> str | None:
    """Read one header from an upstream request, tolerating missing pieces."""
    headers = _headers_of(source)
    if not headers:
        return None
    value = headers.get(name)
    if value is None and isinstance(headers, Mapping):
        lowered = name.lower()
        value = next((v for k, v in headers.items() if str(k).lower() == lowered), None)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None or value == "":
        return None
    return str(value)


def resolve_headers(
        base: httpx.Headers,
        *,
        has_body: bool,
        content_type: str | None = None,
) -> httpx.Headers:
    """Headers for one outgoing request; ``base`` is never modified."""
    headers = httpx.Headers(base.multi_items())
    if content_type:
        headers[CONTENT_TYPE_HEADER] = content_type
    elif has_body and CONTENT_TYPE_HEADER not in headers:
        headers[CONTENT_TYPE_HEADER] = JSON_CONTENT
    return headers
