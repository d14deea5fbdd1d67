# src/tessbridge/logger.py

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "tessbridge"

# --- Custom Log Level for Progress ---
PROGRESS = 25
logging.addLevelName(PROGRESS, "PROGRESS")

def progress(self, msg, *args, **kwargs):
    if self.isEnabledFor(PROGRESS):
        self._log(PROGRESS, msg, args, **kwargs)

logging.Logger.progress = progress

# --- Custom Filters ---
class OnlyLevelFilter(logging.Filter):
    def __init__(self, levelno: int):
        super().__init__()
        self.levelno = levelno
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno == self.levelno

class ExcludeLevelFilter(logging.Filter):
    def __init__(self, levelno: int):
        super().__init__()
        self.levelno = levelno
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno != self.levelno

# --- Main Configuration Function ---
def setup_logging(
    level: int = logging.INFO,
    *,
    file_path: Optional[Union[str, Path]] = None,
    file_level: Optional[int] = None,
    show_progress: bool = False,
) -> logging.Logger:
    """
    Configures the package logger for command line use.

    Args:
        level: The base logging level for the console output.
        file_path: Path to the persistent log file.
        file_level: The logging level for the file.
        show_progress: Also print PROGRESS records on the console.

    Returns:
        The configured "tessbridge" logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(min(level, file_level if file_level is not None else level))

    # Drop handlers from a previous call so repeated setup does not duplicate lines
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    # Console handler
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("%(levelname)-8s | %(message)s"))
    ch.addFilter(ExcludeLevelFilter(PROGRESS))
    logger.addHandler(ch)

    # Progress lines, printed bare
    if show_progress:
        ph = logging.StreamHandler(sys.stderr)
        ph.setLevel(PROGRESS)
        ph.setFormatter(logging.Formatter("%(message)s"))
        ph.addFilter(OnlyLevelFilter(PROGRESS))
        logger.addHandler(ph)

    # File handler
    if file_path:
        fp = Path(file_path)
        fp.parent.mkdir(parents=True, exist_ok=True)
        # Use RotatingFileHandler for robustness in long batches
        fh = RotatingFileHandler(fp, maxBytes=5*1024*1024, backupCount=2, encoding="utf-8")
        fh.setLevel(file_level if file_level is not None else level)
        fh.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"))
        fh.addFilter(ExcludeLevelFilter(PROGRESS))
        logger.addHandler(fh)

    logger.propagate = False
    return logger
