"""Prometheus metrics for invoice closing, recurring generation and store health"""

from prometheus_client import Counter, Histogram

# Invoice metrics
invoice_close_counter = Counter(
    "practice_ledger_invoices_closed_total",
    "Invoice close requests",
    ["outcome"],  # created | updated
)

# Recurring payment metrics
recurring_generated_counter = Counter(
    "practice_ledger_recurring_payments_generated_total",
    "Payments generated from recurring templates",
)

recurring_error_counter = Counter(
    "practice_ledger_recurring_generation_errors_total",
    "Failures collected during recurring generation",
    ["step"],  # template | lookup | insert | load
)

# Data store metrics
store_error_counter = Counter(
    "practice_ledger_store_errors_total",
    "Failed data store calls",
    ["backend"],  # sql | postgrest
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_invoice_close(created: bool) -> None:
    invoice_close_counter.labels(outcome="created" if created else "updated").inc()


def record_generation(created: int, error_steps: list[str]) -> None:
    """Record one generation run"""
    recurring_generated_counter.inc(created)
    for step in error_steps:
        recurring_error_counter.labels(step=step).inc()
