"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from pneuma.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_insight(
    request_id: str,
    date_local: str,
    rule_id: str,
    mode: str,
    duration_ms: float,
) -> None:
    """Log which coaching rule fired for a given day"""
    logging.info(
        "Insight selected",
        extra={
            "request_id": request_id,
            "step": "insight_selected",
            "date_local": date_local,
            "rule_id": rule_id,
            "mode": mode,
            "duration_ms": duration_ms,
        },
    )


def log_ledger_mutation(
    request_id: str,
    operation: str,
    entity_id: Optional[int],
    amount: Optional[int] = None,
) -> None:
    """Log a committed write to the ledger or configuration store"""
    logging.info(
        "Ledger mutated",
        extra={
            "request_id": request_id,
            "step": "ledger_mutation",
            "operation": operation,
            "entity_id": entity_id,
            "amount": amount,
        },
    )
