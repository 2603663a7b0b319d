import logging

from rich.logging import RichHandler


def setup_logger(name: str = "gkedriver", level: int = logging.INFO) -> logging.Logger:
    """Returns the named logger with a single RichHandler attached."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # setup may run more than once per process
    if not logger.handlers:
        handler = RichHandler(rich_tracebacks=True, markup=False, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger


# Progress lines ("provisioning cluster c1......") are INFO
logger = setup_logger()
