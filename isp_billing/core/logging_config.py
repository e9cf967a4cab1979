# isp_billing/core/logging_config.py - Root logger configuration driven by settings
import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

from isp_billing.core.config import settings

FORMATS = {
    "simple": "%(levelname)s - %(message)s",
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    return logging.Formatter(FORMATS.get(log_format, FORMATS["detailed"]))


def setup_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the root logger.

    Console output is always enabled; a rotating file handler is added when
    LOG_FILE_PATH (or ``log_file``) is set. Calling this again replaces the
    handlers it installed earlier.
    """
    level = (level or settings.LOG_LEVEL).upper()
    formatter = _build_formatter(log_format or settings.LOG_FORMAT)
    log_file = log_file or settings.LOG_FILE_PATH

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_isp_billing", False):
            root.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    console._isp_billing = True
    root.addHandler(console)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=settings.LOG_MAX_SIZE,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler._isp_billing = True
        root.addHandler(file_handler)

    root.setLevel(level)

    # SQL echo is controlled by DATABASE_ECHO, keep the engine logger quiet otherwise
    if not (settings.DATABASE_ECHO or settings.DEV_LOG_SQL):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


__all__ = ["setup_logging", "JsonFormatter"]
