from __future__ import annotations

import httpx

from .config_types import ClientConfig
from .errors import NetworkError


class Transport:
    def __init__(self, cfg: ClientConfig, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(
            timeout=cfg.timeout_s or None,
            headers={"User-Agent": "blackbeard-client/0.1.0"},
            follow_redirects=cfg.follow_redirects,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def request(
            self,
            method: str,
            url: httpx.URL,
            *,
            content: bytes | None,
            headers: httpx.Headers,
    ) -> httpx.Response:
        request = self._client.build_request(method, url, content=content, headers=headers)
        try:
            response = self._client.send(request)
            response.read()
        except httpx.RequestError as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e
        return response
