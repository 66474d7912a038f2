from __future__ import annotations
import logging
import sys

from shm_agent.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stdout handler on the root logger.

    Safe to call more than once: an existing handler installed here is replaced.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_shm_agent", False):
            root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._shm_agent = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    lvl = (level or settings.LOG_LEVEL or "INFO").upper()
    root.setLevel(getattr(logging, lvl, logging.INFO))
