"""Logging configuration for the nl2pg agent and CLI."""

import json
import logging
import sys
from typing import Optional

from .config import get_log_level

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Only configure the root logger once per process
_logging_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the emitting module and function"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(
    debug: bool = False,
    json_format: bool = False,
    level: Optional[str] = None,
) -> None:
    """Configure the root logger for console output."""
    global _logging_configured

    if _logging_configured:
        return

    log_level = logging.DEBUG if debug else getattr(logging, (level or get_log_level()).upper())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(LOG_FORMAT))

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    # Keep client libraries quiet unless they have something to say
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    _logging_configured = True
    logging.getLogger(__name__).debug("Logging configured at %s", logging.getLevelName(log_level))
