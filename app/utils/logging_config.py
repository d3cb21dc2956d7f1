"""
Logging configuration for production
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Driver claims and notification fan-out also go to their own file
DISPATCH_LOGGERS = ("app.services.assignment_service", "app.services.notification_service")

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def configure_logging(log_dir: str, debug: bool = False) -> logging.Logger:
    """
    Console plus app.log, error.log and dispatch.log under log_dir.
    Safe to call more than once; handlers installed by an earlier call are replaced.
    """
    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    for handler in [h for h in root_logger.handlers if getattr(h, "_wasel", False)]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    handlers = [
        console_handler,
        _file_handler(logs_dir / "app.log", logging.INFO),
        # Errors only, includes swallowed notification failures
        _file_handler(logs_dir / "error.log", logging.ERROR),
    ]
    for handler in handlers:
        handler._wasel = True
        root_logger.addHandler(handler)

    dispatch_handler = _file_handler(logs_dir / "dispatch.log", logging.INFO)
    dispatch_handler._wasel = True
    for name in DISPATCH_LOGGERS:
        dispatch_logger = logging.getLogger(name)
        for handler in [h for h in dispatch_logger.handlers if getattr(h, "_wasel", False)]:
            dispatch_logger.removeHandler(handler)
            handler.close()
        dispatch_logger.addHandler(dispatch_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return root_logger
