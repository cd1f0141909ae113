"""Root logger configuration: structured JSON to stdout, or plain text for local runs."""
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import jsonlogger

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    def __init__(self, *args: Any, service: str = "deal-rehash", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service


def setup_logging(level: str = "INFO", json_output: bool = True, service: str = "deal-rehash") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(ServiceJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", service=service))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    root.addHandler(handler)
