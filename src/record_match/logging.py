"""loguru sinks for the CLI. The library itself only emits records."""

import sys
from pathlib import Path

from loguru import logger

from record_match.config import get_settings

_STDERR_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: str | None = None, log_file: Path | None = None) -> None:
    """Replace loguru's default sink with a stderr sink and, optionally, a file.

    The file sink rotates and prunes according to ``log_rotation`` and
    ``log_retention`` in the engine settings; rotated files are gzipped.
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=_STDERR_FORMAT, colorize=True)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            format=_FILE_FORMAT,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            compression="gz",
        )

    logger.debug(f"Logging to stderr{f' and {log_file}' if log_file else ''} at {level}")
