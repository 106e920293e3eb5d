from __future__ import annotations

import dataclasses
import hashlib
import json
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

import httpx

from .body import MultipartBody

DEFAULT_MAX_ENTRIES = 256


class _Unfingerprintable(Exception):
    pass


def _file_digest(path: str) -> str:
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(64 * 1024), b""):
                digest.update(chunk)
    except OSError:
        # encoding reports the unreadable file; the call goes out uncached
        raise _Unfingerprintable()
    return digest.hexdigest()


def _normalize(value: Any) -> Any:
    if isinstance(value, MultipartBody):
        # a file edited between two uploads must not hit the same entry
        return {
            "params": value.params,
            "files": {key: {"path": path, "sha256": _file_digest(path)} for key, path in value.files.items()},
        }
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"bytes": bytes(value).hex()}
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if hasattr(value, "read"):
        # a stream is consumed by sending it, so it can't key a cache entry
        raise _Unfingerprintable()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dump(value: Any) -> bytes:
    return json.dumps(value, default=_normalize, sort_keys=True, separators=(",", ":")).encode("utf-8")


def fingerprint(method: str, path: str, body: Any, query: Any) -> bytes | None:
    """Cache key for a call: JSON of method, path, body and query, concatenated.

    Returns ``None`` when the call can't be keyed (stream bodies, values JSON
    can't represent); such calls bypass the cache.
    """
    try:
        return b"".join(_dump(part) for part in (method, path, body, query))
    except (_Unfingerprintable, TypeError, ValueError):
        return None


@dataclass(frozen=True)
class CachedResponse:
    status_code: int
    headers: tuple[tuple[str, str], ...]
    content: bytes
    method: str
    url: str
    stored_at: float

    @classmethod
    def from_response(cls, response: httpx.Response) -> "CachedResponse":
        request = response.request
        return cls(
            status_code=response.status_code,
            headers=tuple(response.headers.multi_items()),
            content=response.read(),
            method=request.method,
            url=str(request.url),
            stored_at=time.monotonic(),
        )

    def to_response(self) -> httpx.Response:
        # content is already decoded, so drop headers that describe the wire form
        headers = [
            (k, v) for k, v in self.headers
            if k.lower() not in ("content-encoding", "transfer-encoding", "content-length")
        ]
        return httpx.Response(
            self.status_code,
            headers=headers,
            content=self.content,
            request=httpx.Request(self.method, self.url),
        )


class ResponseCache:
    """In-memory response store keyed by call fingerprint.

    Bounded: the least recently used entry is evicted past ``max_entries``,
    and entries older than ``ttl_s`` (when set) are treated as misses. All
    access goes through one lock.
    """

    def __init__(self, *, max_entries: int = DEFAULT_MAX_ENTRIES, ttl_s: float | None = None):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._ttl_s = ttl_s
        self._entries: OrderedDict[bytes, CachedResponse] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, entry: CachedResponse) -> bool:
        return self._ttl_s is not None and time.monotonic() - entry.stored_at > self._ttl_s

    def lookup(self, method: str, path: str, body: Any, query: Any) -> httpx.Response | None:
        key = fingerprint(method, path, body, query)
        if key is None:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry):
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
        return entry.to_response()

    def store(self, method: str, path: str, body: Any, query: Any, response: httpx.Response) -> bool:
        key = fingerprint(method, path, body, query)
        if key is None:
            return False
        entry = CachedResponse.from_response(response)
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
