"""Logging configuration helpers."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the ``mia_identity`` logger with a single stream handler.

    Context such as session ids travels in the message arguments, so the
    plain formatter is enough to correlate a conversation across requests.
    Calling this again only adjusts the level.
    """
    logger = logging.getLogger("mia_identity")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
