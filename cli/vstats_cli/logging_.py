from __future__ import annotations

import logging

_VSTATS_LOGGERS = ("vstats_client", "vstats_cli")
_HTTP_LOGGERS = ("httpx", "httpcore")


def setup_logging(verbose: bool) -> None:
    """WARNING by default; ``-v`` turns on the client's request trace and deploy steps.

    httpx stays at INFO even when verbose: ``vstats_client.transport`` already
    logs every request with its status.
    """
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    for name in _VSTATS_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)
