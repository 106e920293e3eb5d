from __future__ import annotations

URI_SEPARATOR = "/"
PORT_SEPARATOR = ":"


def compose_base_uri(base_path: str, port: int = 0, version: str = "", service: str = "") -> str:
    """Build ``<base>[:<port>]/[<version>/][<service>/]``."""
    uri = (base_path or "").rstrip(URI_SEPARATOR)
    if port:
        uri = f"{uri}{PORT_SEPARATOR}{int(port)}"
    uri += URI_SEPARATOR
    if version:
        uri = f"{uri}{version}{URI_SEPARATOR}"
    if service:
        uri = f"{uri}{service}{URI_SEPARATOR}"
    return uri


def compose_endpoint(base_uri: str, path: str) -> str:
    return f"{base_uri}{(path or '').lstrip(URI_SEPARATOR)}"
