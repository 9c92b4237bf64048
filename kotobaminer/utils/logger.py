import logging
from typing import Union

from rich.logging import RichHandler


def setup_logger(name: str, level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Return a named logger with a rich handler attached once."""
    logger = logging.getLogger(name)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(level)
    return logger
