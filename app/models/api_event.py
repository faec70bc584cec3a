"""
app/models/api_event.py

Purpose: Usage telemetry record

- One document per /api request
- Aggregated by the admin dashboard (counts over time, top searches)
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def build_api_event(
    meta: Dict[str, Any],
    user_id: Optional[Any] = None,
    ip: Optional[str] = None,
    event_type: str = "request"
) -> Dict[str, Any]:
    event = {
        "type": event_type,
        "meta": {k: v for k, v in meta.items() if v is not None},
        "ip": ip,
        "ts": datetime.now(timezone.utc),
    }
    if user_id is not None:
        event["userId"] = user_id
    return event
