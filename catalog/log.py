import logging
from typing import Optional

from rich.logging import RichHandler

from .config import get_settings


def configure_logging(level: Optional[str] = None) -> None:
    """Route the catalog loggers through rich. Safe to call more than once."""
    level = (level or get_settings().log_level).upper()
    root = logging.getLogger("catalog")
    root.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)
