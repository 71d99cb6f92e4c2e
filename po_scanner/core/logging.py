"""Logging setup for the API process."""

from __future__ import annotations

import logging

from po_scanner.core.config import Settings, get_settings

# Per-request chatter from the HTTP and Mongo drivers.
NOISY_LOGGERS = ("httpx", "httpcore", "pymongo")


def configure_logging(settings: Settings | None = None) -> None:
    """Apply ``settings.log_level`` with a shared format.

    Driver loggers are held at WARNING unless the service runs at DEBUG, so
    provider calls show up through this package's own messages only.
    """

    settings = settings or get_settings()
    level = settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    driver_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(driver_level)
