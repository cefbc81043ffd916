import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

# Correlation id of the request being served; empty for scheduler runs and scripts
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

class LedgerJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per line, tagged with the service, environment and request id."""

    def __init__(self, *args, service: str = "", environment: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service
        self.environment = environment

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        req_id = request_id_var.get()
        if req_id:
            log_record["request_id"] = req_id

        log_record.setdefault("timestamp", datetime.fromtimestamp(record.created, timezone.utc).isoformat())
        log_record["level"] = (log_record.get("level") or record.levelname).upper()
        if self.service:
            log_record["service"] = self.service
        if self.environment:
            log_record["env"] = self.environment

def setup_logging(level: str = "INFO", service: str = "", environment: str = ""):
    root = logging.getLogger()
    # Importing the app twice (tests, --reload) must not double every line
    if any(isinstance(h.formatter, LedgerJsonFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(LedgerJsonFormatter(
        "%(timestamp) %(level) %(name) %(message)", service=service, environment=environment
    ))
    root.addHandler(handler)
    root.setLevel(level)

    # Library chatter stays at WARNING; ledger modules log at the configured level
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "apscheduler"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
