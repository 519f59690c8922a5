import logging
from typing import Optional

from rich.logging import RichHandler

_CONFIGURED = False


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return a named logger, installing a RichHandler on the package root once."""
    global _CONFIGURED

    root = logging.getLogger("termsguardian")
    if not _CONFIGURED:
        if not any(isinstance(h, RichHandler) for h in root.handlers):
            handler = RichHandler(rich_tracebacks=False, show_path=False)
            handler.setFormatter(logging.Formatter("%(message)s"))
            root.addHandler(handler)
            root.propagate = False
        _CONFIGURED = True

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
