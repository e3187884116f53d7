"""
logging_utils.py
----------------

Colorized console + rotating file logging for the batch runner and its
worker processes.
"""

__all__ = ["configure_logging", "ColorFormatter"]

import os
import time
import logging
from typing import Optional, Union
from logging.handlers import RotatingFileHandler
from pathlib import Path

from colorama import Fore, Style, init as colorama_init

PathLike = Union[str, os.PathLike]

MONO_FMT = "[%(asctime)s] [%(process)5d] [%(levelname)-5s] [%(name)s] %(message)s"
DATE_FMT = "%H:%M:%S"


class ColorFormatter(logging.Formatter):
    """Colorized console formatter."""
    COLORS = {
        "DEBUG":    Fore.CYAN,
        "INFO":     Fore.GREEN,
        "WARNING":  Fore.YELLOW,
        "ERROR":    Fore.RED,
        "CRITICAL": Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        reset = Style.RESET_ALL
        message = (
            f"[{self.formatTime(record, self.datefmt)}] "
            f"[{record.process:5d}] "
            f"[{color}{record.levelname:<5s}{reset}] "
            f"[{record.name}] "
            f"{record.getMessage()}"
        )
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def configure_logging(level: Optional[int] = logging.INFO,
                      log_dir: Optional[PathLike] = "logs",
                      name: Optional[str] = None,
                      run_prefix: Optional[str] = "run") -> Optional[Path]:
    """Configure colorized console + rotating file logging.

    Args:
        level: Level set on the configured logger.
        log_dir: Directory for the rotating log file. None disables the file
            handler (console only).
        name: Logger to configure; None configures the root logger so the
            ``curves``, ``runner`` and ``worker`` loggers all propagate to it.
        run_prefix: File name prefix; PID and timestamp are appended.

    Returns:
        Path of the log file, or None when file logging is disabled.
    """
    colorama_init(strip=False, convert=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    ch = logging.StreamHandler()
    ch.setFormatter(ColorFormatter(datefmt=DATE_FMT))
    logger.addHandler(ch)

    log_path = None
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        ts = time.strftime("%Y-%m-%d_%H%M%S")
        log_path = log_dir / f"{run_prefix}_PID{os.getpid()}_{ts}.log"
        fh = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=5)
        fh.setFormatter(logging.Formatter(MONO_FMT, DATE_FMT))
        logger.addHandler(fh)

    logger.info(f"Logging initialized - PID {os.getpid()}; file {log_path}")
    return log_path
