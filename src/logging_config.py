"""Configure application logging using the Python standard library.

Log records are rendered as one JSON object per line with timestamp,
level, module, message, and any context passed through ``extra``.  The
console handler writes to stderr so that the shipment notice and receipt
printed on stdout are never interleaved with log output.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, UTC

LOG_FILE_NAME = "checkout.log"


class JsonFormatter(logging.Formatter):
    """Format log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "message": record.getMessage(),
        }
        if hasattr(record, "customer"):
            log_record["customer"] = getattr(record, "customer")
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            # Merge into the top level rather than nesting under "extra"
            log_record.update(extra)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging(log_dir: str | None = "logs", level: int = logging.INFO) -> None:
    """Configure the root logger with JSON formatting.

    Args:
        log_dir: Directory for the rotating ``checkout.log`` file.  Created
            if missing.  Pass None to log to stderr only.
        level: Logging level for the root logger and its handlers.
    """
    logger = logging.getLogger()
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    formatter = JsonFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, LOG_FILE_NAME),
            maxBytes=5 * 1024 * 1024,  # 5 MB per log file
            backupCount=3,
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
