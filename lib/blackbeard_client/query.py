from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

KEY_QUERY = "key"

QueryParams = Mapping[str, Any]


def _as_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def merge_query(url: httpx.URL, query: QueryParams | None, api_key: str = "") -> httpx.URL:
    """Append ``query`` (and the API key, last) to whatever ``url`` already carries."""
    params = url.params
    for name, values in (query or {}).items():
        if not isinstance(values, (list, tuple)):
            values = [values]
        for value in values:
            params = params.add(name, _as_str(value))
    if api_key:
        params = params.add(KEY_QUERY, api_key)
    return url.copy_with(params=params)
