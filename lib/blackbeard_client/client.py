from __future__ import annotations

import os
from datetime import timedelta
from typing import Any

import httpx

from .body import MultipartBody, build_multipart, encode_body
from .cache import DEFAULT_MAX_ENTRIES, ResponseCache
from .config_types import CacheConfig, ClientConfig
from .errors import ConfigurationError, ConstructionError, NetworkError
from .headers import (
    AUTHORIZATION_HEADER,
    CONTENT_TYPE_HEADER,
    JSON_CONTENT,
    TRACE_ID_HEADER,
    HeaderSource,
    append_header,
    header_from_source,
    resolve_headers,
    to_headers,
)
from .logger import Logger, NoLogger
from .query import QueryParams, merge_query
from .transport import Transport
from .uri import compose_base_uri, compose_endpoint

BASE_PATH_ENV = "BASE_PATH"


class ClientBuilder:
    """Fluent configuration for a :class:`Client`.

    Every ``with_*`` call mutates this builder and returns it, so calls chain;
    the last write wins. ``build()`` snapshots the configuration into an
    immutable :class:`ClientConfig` and returns a ready client.
    """

    def __init__(self) -> None:
        self._base_path = ""
        self._port = 0
        self._version = ""
        self._service = ""
        self._headers = httpx.Headers()
        self._timeout_s = 0.0
        self._api_key = ""
        self._cache: CacheConfig | None = None
        self._logger: Logger = NoLogger()
        self._transport: httpx.BaseTransport | None = None

    # --- target ---
    def with_base_path(self, path: str) -> ClientBuilder:
        self._base_path = (path or "").rstrip("/")
        return self

    def with_default_base_path(self) -> ClientBuilder:
        value = os.getenv(BASE_PATH_ENV, "").strip()
        if not value:
            raise ConfigurationError(f"environment variable {BASE_PATH_ENV} is not set")
        return self.with_base_path(value)

    def with_port(self, port: int) -> ClientBuilder:
        port = int(port)
        if port < 0 or port > 65535:
            raise ConfigurationError(f"port out of range: {port}")
        self._port = port
        return self

    def with_version(self, version: str) -> ClientBuilder:
        self._version = (version or "").strip("/")
        return self

    def to_service(self, service: str) -> ClientBuilder:
        self._service = (service or "").strip("/")
        return self

    # --- headers ---
    def with_headers(self, headers: Any) -> ClientBuilder:
        self._headers = to_headers(headers)
        return self

    def set_header(self, name: str, value: str) -> ClientBuilder:
        self._headers[name] = value
        return self

    def add_header(self, name: str, value: str) -> ClientBuilder:
        self._headers = append_header(self._headers, name, value)
        return self

    def with_auth_header(self, token: str) -> ClientBuilder:
        return self.set_header(AUTHORIZATION_HEADER, token)

    def inherit_from_parent_context(self, source: HeaderSource | Any) -> ClientBuilder:
        """Copy the ``Authorization`` header of an inbound request.

        ``source`` is a request object exposing ``.headers``, a wrapper exposing
        ``.request``, or a header mapping. Nothing else is copied; a missing
        request or header leaves the configuration untouched.
        """
        value = header_from_source(source, AUTHORIZATION_HEADER)
        if value is not None:
            self._headers[AUTHORIZATION_HEADER] = value
        return self

    def with_content_type(self, content_type: str) -> ClientBuilder:
        return self.set_header(CONTENT_TYPE_HEADER, content_type)

    def with_json_content(self) -> ClientBuilder:
        return self.with_content_type(JSON_CONTENT)

    def with_trace_id(self, trace_id: str) -> ClientBuilder:
        return self.set_header(TRACE_ID_HEADER, trace_id)

    # --- behaviour ---
    def with_timeout(self, timeout: float | timedelta) -> ClientBuilder:
        seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
        if seconds < 0:
            raise ConfigurationError(f"timeout must not be negative: {seconds}")
        self._timeout_s = seconds
        return self

    def with_api_key(self, key: str) -> ClientBuilder:
        self._api_key = key or ""
        return self

    def with_cache(
            self,
            *,
            max_entries: int = DEFAULT_MAX_ENTRIES,
            ttl_s: float | None = None,
            cache_errors: bool = False,
    ) -> ClientBuilder:
        if max_entries < 1:
            raise ConfigurationError("cache max_entries must be positive")
        self._cache = CacheConfig(max_entries=max_entries, ttl_s=ttl_s, cache_errors=cache_errors)
        return self

    def with_logger(self, logger: Logger) -> ClientBuilder:
        self._logger = logger
        return self

    def with_transport(self, transport: httpx.BaseTransport) -> ClientBuilder:
        self._transport = transport
        return self

    # --- getters ---
    @property
    def headers(self) -> httpx.Headers:
        return httpx.Headers(self._headers.multi_items())

    @property
    def base_path(self) -> str:
        return self._base_path

    @property
    def port(self) -> int:
        return self._port

    @property
    def version(self) -> str:
        return self._version

    @property
    def service(self) -> str:
        return self._service

    @property
    def timeout(self) -> float:
        return self._timeout_s

    def config(self) -> ClientConfig:
        return ClientConfig(
            base_path=self._base_path,
            port=self._port,
            version=self._version,
            service=self._service,
            headers=httpx.Headers(self._headers.multi_items()),
            timeout_s=self._timeout_s,
            api_key=self._api_key,
            cache=self._cache,
        )

    def build(self) -> Client:
        return Client(self.config(), logger=self._logger, transport=self._transport)


def new_client() -> ClientBuilder:
    return ClientBuilder()


class Client:
    """Issues calls against one configured REST service.

    Calls never modify the client's configuration, so one instance can be
    shared between threads.
    """

    def __init__(
            self,
            cfg: ClientConfig,
            *,
            logger: Logger | None = None,
            transport: httpx.BaseTransport | None = None,
    ):
        self._cfg = cfg
        self._logger = logger or NoLogger()
        self._t = Transport(cfg, transport)
        self._cache = (
            ResponseCache(max_entries=cfg.cache.max_entries, ttl_s=cfg.cache.ttl_s)
            if cfg.cache is not None
            else None
        )
        self._base_uri = compose_base_uri(cfg.base_path, cfg.port, cfg.version, cfg.service)

    @staticmethod
    def builder() -> ClientBuilder:
        return ClientBuilder()

    @property
    def config(self) -> ClientConfig:
        return self._cfg

    @property
    def full_path(self) -> str:
        return self._base_uri

    @property
    def headers(self) -> httpx.Headers:
        return httpx.Headers(self._cfg.headers.multi_items())

    @property
    def cache(self) -> ResponseCache | None:
        return self._cache

    def close(self) -> None:
        self._t.close()
        if self._cache is not None:
            self._cache.clear()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # --- calls ---
    def get(self, path: str, query: QueryParams | None = None, *, body: Any = None) -> httpx.Response:
        return self._execute_call("GET", path, body, query)

    def post(self, path: str, body: Any = None, query: QueryParams | None = None) -> httpx.Response:
        return self._execute_call("POST", path, body, query)

    def put(self, path: str, body: Any = None, query: QueryParams | None = None) -> httpx.Response:
        return self._execute_call("PUT", path, body, query)

    def delete(self, path: str, body: Any = None, query: QueryParams | None = None) -> httpx.Response:
        return self._execute_call("DELETE", path, body, query)

    def multipart(self, path: str, body: MultipartBody, query: QueryParams | None = None) -> httpx.Response:
        """POST ``body`` as multipart/form-data.

        The boundary content type replaces any configured ``Content-Type`` for
        this request only.
        """
        return self._execute_call("POST", path, body, query)

    def _endpoint(self, path: str) -> httpx.URL:
        raw = compose_endpoint(self._base_uri, path)
        if any(ch.isspace() for ch in raw):
            raise ConstructionError(f"malformed request URL '{raw}': contains whitespace")
        try:
            url = httpx.URL(raw)
        except httpx.InvalidURL as e:
            raise ConstructionError(f"malformed request URL '{raw}': {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ConstructionError(f"malformed request URL '{raw}': expected http(s)://host")
        return url

    def _execute_call(self, method: str, path: str, body: Any, query: QueryParams | None) -> httpx.Response:
        log = self._logger.with_fields({"method": method, "path": path})

        if self._cache is not None:
            cached = self._cache.lookup(method, path, body, query)
            if cached is not None:
                log.debug("cached response for [%s] %s", method, path)
                return cached

        content_type = None
        if isinstance(body, MultipartBody):
            content, content_type = build_multipart(body)
        else:
            content = encode_body(body)

        url = merge_query(self._endpoint(path), query, self._cfg.api_key)
        headers = resolve_headers(self._cfg.headers, has_body=content is not None, content_type=content_type)

        log.debug("sending %s %s", method, url)
        try:
            response = self._t.request(method, url, content=content, headers=headers)
        except NetworkError as e:
            log.warning("request failed: %s", e)
            raise
        log.debug("received %s", response.status_code)

        self._offer_to_cache(method, path, body, query, response)
        return response

    def _offer_to_cache(self, method: str, path: str, body: Any, query: Any, response: httpx.Response) -> None:
        if self._cache is None or self._cfg.cache is None:
            return
        if not self._cfg.cache.cache_errors and not 200 <= response.status_code < 400:
            return
        self._cache.store(method, path, body, query, response)
