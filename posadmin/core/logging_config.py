"""
Logging setup
Coloured console output plus one app log and one error log per day
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from posadmin.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "apscheduler", "aiosqlite")


class ColoredFormatter(logging.Formatter):
    """Level name coloured by severity"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        # copy, file handlers share the record
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def daily_file_handler(log_dir: Path, prefix: str, level: int) -> logging.FileHandler:
    """<log_dir>/<prefix>_<yyyy-mm-dd>.log"""
    day = datetime.now().strftime("%Y-%m-%d")
    handler = logging.FileHandler(log_dir / f"{prefix}_{day}.log", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(log_level: Optional[str] = None, log_dir: Optional[str] = None):
    """
    Configure the root logger

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL; defaults to LOG_LEVEL
        log_dir: directory for the daily files; defaults to LOG_DIR
    """
    level_name = (log_level or settings.LOG_LEVEL).upper()
    directory = Path(log_dir or settings.LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)

    root_logger.addHandler(daily_file_handler(directory, "app", logging.INFO))
    root_logger.addHandler(daily_file_handler(directory, "error", logging.ERROR))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"📋 Logging to {directory.resolve()} at {level_name}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
