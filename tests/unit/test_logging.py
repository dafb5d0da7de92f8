"""Unit tests for structured log helpers"""

import logging

import pytest

from practice_ledger.infrastructure.observability.logging import (
    CustomJsonFormatter,
    log_generation,
    log_invoice_closed,
    setup_logging,
)


@pytest.fixture
def json_logging():
    setup_logging("INFO")


def test_log_generation_emits_counts(json_logging, caplog):
    with caplog.at_level(logging.INFO):
        log_generation("user_1", templates_processed=2, created=3, skipped_existing=1, error_count=0)

    record = caplog.records[-1]
    assert record.getMessage() == "Recurring generation completed"
    assert record.created_count == 3
    assert record.skipped_existing == 1
    assert record.step == "recurring_generation"


def test_log_invoice_closed_emits_outcome(json_logging, caplog):
    with caplog.at_level(logging.INFO):
        log_invoice_closed("req-1", "user_1", "card_1", "2024-01", "170.00", created=True, duration_ms=3.5)

    record = caplog.records[-1]
    assert record.outcome == "created"
    assert record.credit_card_id == "card_1"


def test_json_formatter_adds_service_fields():
    record = logging.makeLogRecord({"msg": "hello", "levelname": "INFO", "name": "practice_ledger"})
    output = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s").format(record)

    assert '"service": "practice-ledger"' in output
    assert '"message": "hello"' in output
