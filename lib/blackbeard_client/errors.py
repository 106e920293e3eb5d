from __future__ import annotations

import json
from typing import Any


class BlackbeardError(Exception):
    """Base client error."""


class ConfigurationError(BlackbeardError, ValueError):
    """Invalid client configuration."""


class EncodingError(BlackbeardError):
    """Request payload could not be serialized."""


class MultipartFileError(EncodingError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"cannot attach file '{path}': {reason}")
        self.path = path


class ConstructionError(BlackbeardError):
    """Request URL could not be built."""


class NetworkError(BlackbeardError):
    """Transport/network layer error."""


class DecodeError(BlackbeardError):
    """Response data does not fit the requested shape."""


class InvalidTargetError(DecodeError, TypeError):
    def __init__(self, target: Any, reason: str | None = None):
        super().__init__(reason or f"decode target must be a type, got {type(target).__name__} instance")
        self.target = target


class ErrorResponse(BlackbeardError):
    """Structured error returned by a remote service."""

    def __init__(
            self,
            *,
            name: str = "",
            message: str = "",
            code: int = 0,
            class_name: str = "",
            data: dict[str, str] | None = None,
            errors: dict[str, str] | None = None,
    ):
        self.name = name
        self.message = message
        self.code = code
        self.class_name = class_name
        self.data = dict(data or {})
        self.errors = dict(errors or {})
        super().__init__(str(self))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "message": self.message,
            "code": self.code,
            "class_name": self.class_name,
            "data": self.data,
            "errors": self.errors,
        }
        return {k: v for k, v in out.items() if v}

    def __str__(self) -> str:
        return f"ERROR: {json.dumps(self.to_dict(), ensure_ascii=False)}"

    def __repr__(self) -> str:
        return f"ErrorResponse(name={self.name!r}, code={self.code!r}, message={self.message!r})"


def is_error_response(err: BaseException | None) -> bool:
    return isinstance(err, ErrorResponse)


def is_invalid_target_error(err: BaseException | None) -> bool:
    return isinstance(err, InvalidTargetError)
