"""Logging configuration with console and rotating file handlers"""
import glob
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "passage_retrieval"


def setup_logging(
    log_file: Optional[str] = "logs/passage-retrieval.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    keep_sessions: int = 5,
) -> Optional[Path]:
    """
    Configure logging with two destinations:
    - Console: Brief logs (INFO by default)
    - File: Detailed logs (DEBUG by default) with rotation

    Retrieval traces (per-section index stats, ranked result lists) are
    logged at DEBUG, so they land in the file but not on the console.

    Rotation policy:
    - New log file per session (timestamp-based naming)
    - Keep last keep_sessions log files (auto-cleanup on startup)
    - Auto-rotate when file reaches 10MB

    Args:
        log_file: Base path to log file; None for console only
        console_level: Console logging level (INFO = brief)
        file_level: File logging level (DEBUG = verbose)
        keep_sessions: Session log files to retain, including the new one

    Returns:
        Path of this session's log file, or None when file logging is off
    """
    # Root logger configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything, filter in handlers

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    # Console handler - brief output
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root_logger.addHandler(console_handler)

    # Keep the package logger open even if a host app raised its level
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)

    if log_file is None:
        logging.info(f"Logging configured: console={logging.getLevelName(console_level)}, no file")
        return None

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Cleanup old session logs - leave room for the new one
    log_pattern = str(log_path.parent / f"{log_path.stem}_*.log")
    existing_logs = sorted(glob.glob(log_pattern), reverse=True)  # Newest first
    for old_log in existing_logs[max(keep_sessions - 1, 0):]:
        try:
            Path(old_log).unlink()
        except OSError as e:
            logging.debug(f"Could not remove old log {old_log}: {e}")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"

    # Rotating file handler - detailed output
    file_handler = RotatingFileHandler(
        session_log,
        mode='a',
        maxBytes=10*1024*1024,  # 10MB
        backupCount=10,
        encoding='utf-8'
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(file_handler)

    # Suppress noisy third-party loggers in console (but keep in file)
    logging.getLogger("nltk").setLevel(logging.WARNING)

    logging.info(
        f"Logging configured: console={logging.getLevelName(console_level)}, "
        f"file={session_log} ({logging.getLevelName(file_level)})"
    )
    return session_log


def setup_logging_from_env(log_file: Optional[str] = "logs/passage-retrieval.log") -> Optional[Path]:
    """setup_logging() with the console level taken from LOG_LEVEL (default INFO)"""
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    console_level = getattr(logging, log_level, logging.INFO)
    if not isinstance(console_level, int):
        console_level = logging.INFO
    return setup_logging(log_file=log_file, console_level=console_level)
