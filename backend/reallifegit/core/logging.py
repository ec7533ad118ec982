"""
Structured Logging Configuration.

Supports two modes:
- text: Human-readable format for development
- json: Structured JSON format for log shippers

Set LOG_FORMAT environment variable (or Settings.LOG_FORMAT) to "json" for production.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional, Union


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs JSON strings.

    Store loggers attach ``project_id`` and ``entity_id`` through ``extra``;
    they are copied to the top level so log queries can filter on them.
    """

    EXTRA_FIELDS = ("project_id", "entity_id", "operation")

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
        }

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def setup_logging(
    level: Optional[Union[str, int]] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Setup logging for the data layer.

    Falls back to Settings.LOG_LEVEL / Settings.LOG_FORMAT when arguments are omitted:
    - "json": Structured JSON
    - "text" (default): Human-readable for development
    """
    root_logger = logging.getLogger()

    # Avoid adding multiple handlers
    if root_logger.handlers:
        return

    from reallifegit.config import settings

    root_logger.setLevel(level or settings.LOG_LEVEL)

    handler = logging.StreamHandler(sys.stdout)

    if (log_format or settings.LOG_FORMAT).lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)

    root_logger.addHandler(handler)
