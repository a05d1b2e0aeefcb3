"""
Shared helpers.
"""
import logging
import sys

from app.core import config


_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("app")
    root.addHandler(handler)
    root.setLevel(config.LOG_LEVEL)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger under the application's logging tree.

    Usage:
        log = get_logger(__name__)
        log.info("User %s created", user.id)
    """
    _configure_root()
    if not name.startswith("app"):
        name = f"app.{name}"
    return logging.getLogger(name)
