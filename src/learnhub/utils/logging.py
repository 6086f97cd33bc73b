import logging
import logging.handlers
import os
import sys
from learnhub.config import log_file_path
from learnhub.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 5

# The client side runs on these; keep them at warnings and above
QUIET_LOGGERS = ("httpx", "httpcore", "urllib3")


def _has_file_handler(root_logger, path: str) -> bool:
    return any(
        isinstance(handler, logging.handlers.RotatingFileHandler)
        and handler.baseFilename == path
        for handler in root_logger.handlers
    )


def _has_console_handler(root_logger) -> bool:
    return any(type(handler) is logging.StreamHandler for handler in root_logger.handlers)


def _attach(root_logger, handler, level: int, formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def setup_logging(
    log_file_path: str, enable_console_logging: bool = True, log_level: str = "INFO"
):
    """
    Route every logger of the auth service to a rotating file and, optionally, stdout.

    Calling it again (e.g. on reload) leaves handlers that are already attached alone.

    Args:
        log_file_path: Path to the log file; its directory is created if missing
        enable_console_logging: Also log to stdout (off when uvicorn prints for us)
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL, case-insensitive
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if not _has_file_handler(root_logger, log_file_path):
        os.makedirs(os.path.dirname(log_file_path), exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        _attach(root_logger, file_handler, level, formatter)

    if enable_console_logging and not _has_console_handler(root_logger):
        _attach(root_logger, logging.StreamHandler(sys.stdout), level, formatter)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


# Uvicorn prints to the console; the service itself only writes the log file
logger = setup_logging(
    log_file_path, enable_console_logging=False, log_level=settings.log_level
)
