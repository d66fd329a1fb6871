"""Logging utilities for the sparse covariate engine."""

import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(
    log_file: Optional[Path] = None,
    level: str = "INFO",
    rotation: str = "1 day",
) -> None:
    """Configure loguru sinks for CLI runs.

    Args:
        log_file: Optional path to a log file, written next to stage outputs
        level: Logging level for every sink
        rotation: Log rotation policy of the file sink
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, format=FILE_FORMAT, level=level, rotation=rotation)


@contextmanager
def log_stage(name: str, **context) -> Iterator[None]:
    """Log the start, end and elapsed time of a processing stage."""
    details = ", ".join(f"{k}={v}" for k, v in context.items())
    logger.info(f"{name}: started" + (f" ({details})" if details else ""))
    t0 = time.time()
    try:
        yield
    except Exception:
        logger.error(f"{name}: aborted after {time.time() - t0:.2f}s")
        raise
    logger.info(f"{name}: finished in {time.time() - t0:.2f}s")
