"""Translation of raw bus payloads into DeviceMessage objects."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Optional

from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.domain.models import DeviceMessage

logger = get_logger("measurements.messages")


def parse_device_message(topic: str, payload: Any) -> Optional[DeviceMessage]:
    """Build a DeviceMessage from a decoded JSON payload.

    Expected shape (subset)::

        {"messageType": "REPORT_PROPERTY", "deviceId": "d1",
         "headers": {"productId": "p1"}, "timestamp": 1710000000000}

    Returns None when the payload is not a JSON object.
    """
    if not isinstance(payload, dict):
        logger.warning("unparseable_device_message", extra={"topic": topic})
        return None
    headers = payload.get("headers") if isinstance(payload.get("headers"), dict) else {}
    product_id = payload.get("productId") or headers.get("productId")
    ts = _coerce_ts(payload.get("timestamp"))
    return DeviceMessage(
        topic=topic,
        device_id=_opt_str(payload.get("deviceId")),
        product_id=_opt_str(product_id),
        message_type=_opt_str(payload.get("messageType")),
        timestamp=ts if ts is not None else int(time.time() * 1000),
        payload=payload,
    )


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _coerce_ts(value: Any) -> Optional[int]:
    """Convert int ms or ISO8601 string to epoch ms; None if invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        if value.isdigit():
            return int(value)
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return int(dt.timestamp() * 1000)
        except ValueError:
            logger.warning("invalid_message_timestamp", extra={"value": value})
    return None
