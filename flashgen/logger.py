"""
Structured logging for flashgen.
Every record is emitted as one JSON object per line so generation outcomes
can be collected and queried.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOGGER_NAME = "flashgen"

logger = logging.getLogger(LOGGER_NAME)
logger.setLevel(os.getenv("FLASHGEN_LOG_LEVEL", "INFO").upper())
handler = logging.StreamHandler(sys.stdout)
logger.addHandler(handler)
logger.propagate = False


class JsonFormatter(logging.Formatter):
    """JSON formatter that copies every extra field onto the output record."""

    # LogRecord internals that never belong in the output
    STANDARD_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
        'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
        'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
        'exc_text', 'stack_info', 'asctime', 'taskName',
    }

    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }

        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS and not key.startswith('_'):
                try:
                    json.dumps(value)
                    log_record[key] = value
                except (TypeError, ValueError):
                    log_record[key] = str(value)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record)


handler.setFormatter(JsonFormatter())


def get_logger(component: str = "flashgen"):
    return ComponentLogger(component)


class ComponentLogger:
    """Thin wrapper that tags each event with the emitting component."""

    def __init__(self, component):
        self.component = component
        self.logger = logging.getLogger(LOGGER_NAME)

    def _extra(self, fields):
        extra = {"component": self.component}
        extra.update(fields)
        return extra

    def debug(self, msg, **fields):
        self.logger.debug(msg, extra=self._extra(fields))

    def info(self, msg, **fields):
        self.logger.info(msg, extra=self._extra(fields))

    def warning(self, msg, **fields):
        self.logger.warning(msg, extra=self._extra(fields))

    def error(self, msg, exc_info=None, **fields):
        self.logger.error(msg, exc_info=exc_info, extra=self._extra(fields))
