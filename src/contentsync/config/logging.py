"""Root logger setup for the contentsync CLI."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Send pipeline logs to stderr as ``HH:MM:SS LEVEL [module] message`` lines.

    The CLI passes ``logging.DEBUG`` for ``--verbose``, which also echoes every
    successful job record. ``force=True`` replaces handlers installed earlier.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
