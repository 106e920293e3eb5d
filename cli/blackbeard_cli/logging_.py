from __future__ import annotations

import logging

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

# wire-level chatter, shown only with -v
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


def setup_logging(verbose: bool) -> None:
    """Configure stdlib logging for one ``blackbeard`` run.

    The client library logs under ``blackbeard_client``: it follows the
    verbosity flag, as do httpx and httpcore. Bound call fields are already
    folded into each message by ``StdLogger``.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for name in ("blackbeard_client", *_TRANSPORT_LOGGERS):
        logging.getLogger(name).setLevel(level)
