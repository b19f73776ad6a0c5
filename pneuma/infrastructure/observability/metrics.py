"""Prometheus metrics for coaching outcomes, ledger writes and request latency"""

from prometheus_client import Counter, Histogram

# Insight metrics
insight_rule_counter = Counter(
    "pneuma_insight_total",
    "Coaching insights served",
    ["rule_id", "mode"],
)

overspent_counter = Counter(
    "pneuma_overspent_summary_total",
    "Summaries computed for a day already past its recommendation",
)

# Ledger metrics
ledger_mutation_counter = Counter(
    "pneuma_ledger_mutation_total",
    "Committed ledger and configuration writes",
    ["operation"],
)

store_failure_counter = Counter(
    "pneuma_store_failures_total",
    "Store operations that failed and were rolled back",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_insight(rule_id: str, mode: str) -> None:
    insight_rule_counter.labels(rule_id=rule_id, mode=mode).inc()


def record_summary(overspent_today: bool) -> None:
    if overspent_today:
        overspent_counter.inc()


def record_mutation(operation: str) -> None:
    ledger_mutation_counter.labels(operation=operation).inc()
