"""Logging setup for the federated search service."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

log = logging.getLogger("federated_search")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the ``federated_search`` logger.

    Installs a single stream handler, replacing any installed earlier, so
    calling this more than once does not duplicate output.

    Args:
        level: Logging level name (e.g. INFO, DEBUG)
    """
    resolved_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    log.handlers.clear()
    log.addHandler(handler)
    log.setLevel(resolved_level)
