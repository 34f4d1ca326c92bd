"""
Logging Configuration - Centralized logging setup

Cung cap logging nhat quan cho toan bo app.
Log file duoc luu tai ~/.llmctx/logs/

- Log rotation (max 5 files, 2MB each)
- Buffered writes (reduce disk I/O)
- INFO level by default, DEBUG khi bat LLMCTX_DEBUG
"""

import logging
import logging.handlers
import sys
from typing import Optional

from config.paths import LOG_DIR, DEBUG_MODE

# Logger singleton
_logger: Optional[logging.Logger] = None

# Log rotation config
MAX_LOG_SIZE = 2 * 1024 * 1024  # 2MB per file
MAX_LOG_FILES = 5
BUFFER_CAPACITY = 100  # Buffer 100 log records before flush


def get_logger() -> logging.Logger:
    """
    Get hoac tao logger singleton.

    Returns:
        Configured logger instance
    """
    global _logger

    if _logger is not None:
        return _logger

    _logger = logging.getLogger("llmctx")
    _logger.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)

    # Avoid duplicate handlers
    if _logger.handlers:
        return _logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if DEBUG_MODE else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    _logger.addHandler(console_handler)

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            LOG_DIR / "llmctx.log",
            maxBytes=MAX_LOG_SIZE,
            backupCount=MAX_LOG_FILES,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

        # Wrap with MemoryHandler for buffered writes
        memory_handler = logging.handlers.MemoryHandler(
            capacity=BUFFER_CAPACITY,
            flushLevel=logging.ERROR,  # Flush immediately on ERROR
            target=file_handler,
        )
        memory_handler.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)

        _logger.addHandler(memory_handler)

    except OSError as e:
        _logger.warning(f"Could not create log file: {e}")

    return _logger


def flush_logs() -> None:
    """
    Flush buffered logs to disk.
    Call this before exit to ensure all logs are written.
    """
    if _logger:
        for handler in _logger.handlers:
            handler.flush()


def set_debug_mode(enabled: bool) -> None:
    """
    Enable or disable debug mode at runtime.

    Args:
        enabled: True to enable DEBUG level logging
    """
    global DEBUG_MODE
    DEBUG_MODE = enabled

    logger = get_logger()
    new_level = logging.DEBUG if enabled else logging.INFO
    logger.setLevel(new_level)
    for handler in logger.handlers:
        handler.setLevel(new_level)


def log_error(message: str, exc: Optional[Exception] = None) -> None:
    """Log error voi optional exception details"""
    logger = get_logger()
    if exc:
        logger.error(f"{message}: {exc}", exc_info=DEBUG_MODE)
    else:
        logger.error(message)


def log_warning(message: str) -> None:
    """Log warning"""
    get_logger().warning(message)


def log_info(message: str) -> None:
    """Log info"""
    get_logger().info(message)


def log_debug(message: str) -> None:
    """Log debug - only written if DEBUG_MODE is enabled"""
    if DEBUG_MODE:
        get_logger().debug(message)
