"""Logging setup shared by the API process and scripts."""

import logging

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Call once at program start (the API lifespan does this)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    # SQL chatter is controlled by DATABASE_ECHO, not LOG_LEVEL
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
