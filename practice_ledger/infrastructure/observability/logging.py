"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from practice_ledger.config import settings


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

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)

    # One INFO line per store/auth call otherwise
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def log_invoice_closed(
    request_id: Optional[str],
    user_id: str,
    credit_card_id: str,
    cycle_month: str,
    total_due: str,
    created: bool,
    duration_ms: float,
) -> None:
    """Log structured invoice close outcome"""
    logging.info(
        "Invoice closed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "credit_card_id": credit_card_id,
            "cycle_month": cycle_month,
            "step": "invoice_close",
            "outcome": "created" if created else "updated",
            "total_due": total_due,
            "duration_ms": duration_ms,
        },
    )


def log_generation(
    user_id: str,
    templates_processed: int,
    created: int,
    skipped_existing: int,
    error_count: int,
) -> None:
    """Log structured recurring generation outcome"""
    logging.info(
        "Recurring generation completed",
        extra={
            "user_id": user_id,
            "step": "recurring_generation",
            "templates_processed": templates_processed,
            "created_count": created,
            "skipped_existing": skipped_existing,
            "error_count": error_count,
        },
    )
