"""Shared logging helpers for contactipy."""

from __future__ import annotations

import logging

_NOISY_LOGGERS = ("httpx", "httpcore", "alembic.runtime.migration")


def configure_logging(
    *,
    level: int = logging.INFO,
    force: bool = False,
    quiet_libraries: bool = True,
) -> None:
    """Initialise the root logger once with a terse format suitable for CLI output.

    Pass ``force=True`` to reconfigure during tests or specialised entry points. HTTP and
    migration chatter is held at WARNING unless ``quiet_libraries`` is disabled or the
    requested level is DEBUG.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    if quiet_libraries and level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
