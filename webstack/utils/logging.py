import os
import logging
from datetime import datetime

LOGGER_NAME = "webstack"
LOG_FILE_PREFIX = "docker-ubuntu-webserver-stack"

logger = None
log_file_path = None

_formatter = logging.Formatter(
    "%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# pass as `extra=` to keep a record out of the console and in the run log only
FILE_ONLY = {"file_only": True}


class _ConsoleFilter(logging.Filter):
    def filter(self, record):
        return not getattr(record, "file_only", False)


def _run_log_name(now: datetime = None) -> str:
    """
    Build the per-run transcript file name.

    Example:
        docker-ubuntu-webserver-stack-2025-12-30_14-30-00.log
    """
    now = now or datetime.now()
    return f"{LOG_FILE_PREFIX}-{now.strftime('%Y-%m-%d_%H-%M-%S')}.log"


def get_logger():
    global logger
    if logger is not None:
        return logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)

    #console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_formatter)
    console_handler.setLevel(logging.INFO)
    console_handler.addFilter(_ConsoleFilter())
    logger.addHandler(console_handler)

    return logger


def attach_log_file(log_dir: str) -> str:
    """
    Mirror everything logged from now on into a timestamped transcript file.

    One file is created per run; calling this again for the same run returns
    the already attached path.
    """
    global log_file_path
    if log_file_path is not None:
        return log_file_path

    os.makedirs(log_dir, exist_ok=True)
    path = os.path.join(log_dir, _run_log_name())
    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setFormatter(_formatter)
    file_handler.setLevel(logging.INFO)
    get_logger().addHandler(file_handler)

    log_file_path = path
    get_logger().info(f"Logging to: {path}")
    return path


def detach_log_file():
    """Close and drop the transcript handler (used between runs in one process)."""
    global log_file_path
    current = get_logger()
    for handler in list(current.handlers):
        if isinstance(handler, logging.FileHandler):
            current.removeHandler(handler)
            handler.close()
    log_file_path = None
