from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass, field
from typing import Any

import httpx

from .errors import EncodingError, MultipartFileError

# only used to frame the multipart payload, never contacted
_FRAMING_URL = "http://multipart.invalid/"


@dataclass
class MultipartBody:
    """Form fields plus files (form key -> path on disk) for a multipart call."""

    params: dict[str, str] = field(default_factory=dict)
    files: dict[str, str] = field(default_factory=dict)


def new_multipart_body(params: dict[str, str] | None = None, files: dict[str, str] | None = None) -> MultipartBody:
    return MultipartBody(params=dict(params or {}), files=dict(files or {}))


def json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_body(payload: Any) -> bytes | None:
    """Turn a call payload into request bytes.

    ``None`` means no body. Raw bytes and readable streams pass through
    untouched; everything else is serialized as JSON.
    """
    if payload is None:
        return None
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    if hasattr(payload, "read"):
        data = payload.read()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    try:
        return json.dumps(payload, default=json_default, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"cannot encode request body as JSON: {e}") from e


def build_multipart(body: MultipartBody) -> tuple[bytes, str]:
    """Frame ``body`` as multipart/form-data.

    Returns the finished body bytes and the matching content type, boundary
    included.
    """
    parts: list[tuple[str, tuple[str | None, Any]]] = []
    for key, path in body.files.items():
        try:
            with open(path, "rb") as fh:
                content = fh.read()
        except OSError as e:
            raise MultipartFileError(path, e.strerror or str(e)) from e
        parts.append((key, (os.path.basename(path), content)))

    # a part without filename is rendered as a plain form field
    for key, value in body.params.items():
        parts.append((key, (None, str(value))))

    if not parts:
        raise EncodingError("multipart body has neither files nor params")

    request = httpx.Request("POST", _FRAMING_URL, files=parts)
    return request.read(), request.headers["Content-Type"]
