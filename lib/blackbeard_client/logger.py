from __future__ import annotations

import logging
from typing import Any, Protocol

Fields = dict[str, Any]


class Logger(Protocol):
    """Leveled logger the client reports through."""

    def debug(self, msg: str, *args: Any) -> None: ...

    def info(self, msg: str, *args: Any) -> None: ...

    def warning(self, msg: str, *args: Any) -> None: ...

    def error(self, msg: str, *args: Any) -> None: ...

    def fatal(self, msg: str, *args: Any) -> None: ...

    def panic(self, msg: str, *args: Any) -> None: ...

    def with_fields(self, fields: Fields) -> "Logger": ...


class LoggerPanic(RuntimeError):
    pass


class NoLogger:
    """Discards everything. Default for new clients."""

    def debug(self, msg: str, *args: Any) -> None:
        return None

    def info(self, msg: str, *args: Any) -> None:
        return None

    def warning(self, msg: str, *args: Any) -> None:
        return None

    def error(self, msg: str, *args: Any) -> None:
        return None

    def fatal(self, msg: str, *args: Any) -> None:
        return None

    def panic(self, msg: str, *args: Any) -> None:
        return None

    def with_fields(self, fields: Fields) -> "NoLogger":
        return self


class StdLogger:
    """Adapts a stdlib ``logging.Logger``; bound fields go to ``extra`` and the message tail."""

    def __init__(self, logger: logging.Logger | None = None, fields: Fields | None = None):
        self._logger = logger or logging.getLogger("blackbeard_client")
        self._fields: Fields = dict(fields or {})

    def _log(self, level: int, msg: str, *args: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if self._fields:
            tail = " ".join(f"{k}={v}" for k, v in self._fields.items())
            if args:
                tail = tail.replace("%", "%%")
            msg = f"{msg} [{tail}]"
        self._logger.log(level, msg, *args, extra={"fields": dict(self._fields)})

    def debug(self, msg: str, *args: Any) -> None:
        self._log(logging.DEBUG, msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        self._log(logging.INFO, msg, *args)

    def warning(self, msg: str, *args: Any) -> None:
        self._log(logging.WARNING, msg, *args)

    def error(self, msg: str, *args: Any) -> None:
        self._log(logging.ERROR, msg, *args)

    def fatal(self, msg: str, *args: Any) -> None:
        self._log(logging.CRITICAL, msg, *args)

    def panic(self, msg: str, *args: Any) -> None:
        self._log(logging.CRITICAL, msg, *args)
        raise LoggerPanic(msg % args if args else msg)

    def with_fields(self, fields: Fields) -> "StdLogger":
        return StdLogger(self._logger, {**self._fields, **fields})
