"""Singleton logging configuration.

setup_logging() configures the root logger once and holds noisy
third-party loggers at WARNING. Idempotent (guarded by a
module-level flag), so the CLI and the API can both call it at
import time.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Third-party loggers to suppress to WARNING
_SUPPRESSED_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
)

_setup_done = False


def setup_logging(level: str = "INFO") -> None:
    """Configure root logger and quiet third-party loggers.

    Idempotent: a second call is a no-op.
    """
    global _setup_done  # noqa: PLW0603
    if _setup_done:
        return
    _setup_done = True

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )

    for name in _SUPPRESSED_LOGGERS:
        lg = logging.getLogger(name)
        lg.setLevel(logging.WARNING)


def set_level(level: str) -> None:
    """Change the root level after setup (CLI --verbose)."""
    logging.getLogger().setLevel(getattr(logging, level.upper()))
