from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from tablebook.application.ports.repositories import ReservationDetails


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    payload: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def _reservation_payload(details: ReservationDetails) -> dict[str, Any]:
    reservation = details.reservation
    return {
        "reservationId": str(reservation.reservation_id),
        "tableNumber": details.table_number,
        "email": details.email,
        "startTime": reservation.start_time.isoformat(),
        "endTime": reservation.end_time.isoformat(),
    }


def serialize_reservation_created_event(
    *,
    occurred_at: datetime,
    details: ReservationDetails,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_event(
        event_type="reservation.created",
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload=_reservation_payload(details),
    )


def serialize_reservation_cancelled_event(
    *,
    occurred_at: datetime,
    details: ReservationDetails,
    cancelled_by: str,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    payload = _reservation_payload(details)
    payload["cancelledBy"] = cancelled_by
    return _serialize_event(
        event_type="reservation.cancelled",
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload=payload,
    )
