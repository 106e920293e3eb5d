from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from .cache import DEFAULT_MAX_ENTRIES


@dataclass(frozen=True)
class CacheConfig:
    max_entries: int = DEFAULT_MAX_ENTRIES
    ttl_s: float | None = None
    cache_errors: bool = False


@dataclass(frozen=True)
class ClientConfig:
    base_path: str = ""
    port: int = 0
    version: str = ""
    service: str = ""
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    timeout_s: float = 0.0
    api_key: str = ""
    cache: CacheConfig | None = None
    follow_redirects: bool = True
