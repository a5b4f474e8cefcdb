"""
Logging for the storefront API.

Modules call `get_logger("catalog")` and log through "storefront.catalog".
The "storefront" parent owns the only handler; it is attached the first time
a logger is handed out, and `configure_logging` (called by the app with
Settings.log_level) can change the level afterwards.
"""
import logging
import sys
from typing import Optional, Union

from config import get_settings

ROOT = "storefront"
FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "storefront-console"


def resolve_level(value: Union[str, int, None]) -> int:
    """Level name or number to a logging level; unknown names mean INFO."""
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _console_handler(root: logging.Logger) -> Optional[logging.Handler]:
    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return handler
    return None


def configure_logging(level: Union[str, int, None] = None) -> logging.Logger:
    """Set the storefront level and make sure exactly one console handler is attached."""
    root = logging.getLogger(ROOT)
    resolved = resolve_level(level if level is not None else get_settings().log_level)

    handler = _console_handler(root)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(fmt=FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
        root.propagate = False

    root.setLevel(resolved)
    handler.setLevel(resolved)
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    root = logging.getLogger(ROOT)
    if _console_handler(root) is None:
        configure_logging()
    return root.getChild(name) if name else root
