from __future__ import annotations

from prometheus_client import Counter, Histogram

RESERVATIONS_CREATED_TOTAL = Counter(
    "tablebook_reservations_created_total",
    "Total number of reservations created.",
)

RESERVATION_REJECTED_TOTAL = Counter(
    "tablebook_reservation_rejected_total",
    "Total number of rejected booking attempts by reason.",
    ["reason"],
)

RESERVATIONS_CANCELLED_TOTAL = Counter(
    "tablebook_reservations_cancelled_total",
    "Total number of reservations cancelled.",
    ["by_admin"],
)

RESERVATION_DURATION_MINUTES = Histogram(
    "tablebook_reservation_duration_minutes",
    "Duration of created reservations in minutes.",
    buckets=(30, 60, 90, 120, 150, 180, 240, 300),
)

AVAILABILITY_QUERIES_TOTAL = Counter(
    "tablebook_availability_queries_total",
    "Total number of availability queries.",
)

AVAILABLE_TABLES_RETURNED = Histogram(
    "tablebook_available_tables_returned",
    "Number of tables returned per availability query.",
    buckets=(0, 1, 2, 5, 10, 20, 50),
)

TOKENS_REJECTED_TOTAL = Counter(
    "tablebook_tokens_rejected_total",
    "Total number of rejected identity tokens by reason.",
    ["reason"],
)


def record_reservation_created(duration_minutes: float) -> None:
    RESERVATIONS_CREATED_TOTAL.inc()
    RESERVATION_DURATION_MINUTES.observe(duration_minutes)


def record_reservation_rejected(reason: str) -> None:
    RESERVATION_REJECTED_TOTAL.labels(reason=reason).inc()


def record_reservation_cancelled(by_admin: bool) -> None:
    RESERVATIONS_CANCELLED_TOTAL.labels(by_admin=str(by_admin).lower()).inc()


def record_availability_query(tables_returned: int) -> None:
    AVAILABILITY_QUERIES_TOTAL.inc()
    AVAILABLE_TABLES_RETURNED.observe(tables_returned)


def record_token_rejected(reason: str) -> None:
    TOKENS_REJECTED_TOTAL.labels(reason=reason).inc()
