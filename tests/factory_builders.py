from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.dto.internal.common import StreamScopeDomain
from src.core.dto.internal.price import PriceObservationDomain
from src.core.types import ChangeDirection

_BASE_TIME = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def build_timestamp(offset_seconds: int = 0) -> str:
    moment = _BASE_TIME + timedelta(seconds=offset_seconds)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_scope_domain(**overrides: str) -> StreamScopeDomain:
    payload: dict[str, str] = {
        "endpoint": "ws://localhost:5000/ws",
        "channel": "price_updates",
    }
    payload.update(overrides)
    return StreamScopeDomain(**payload)


def build_observation(
    *,
    commodity_id: int = 1,
    circle_id: int = 10,
    offset_seconds: int = 0,
    **overrides: Any,
) -> PriceObservationDomain:
    payload: dict[str, Any] = {
        "commodity_id": commodity_id,
        "circle_id": circle_id,
        "timestamp": build_timestamp(offset_seconds),
        "price": 2515.0,
        "price_change": 15.0,
        "change_percentage": 0.6,
        "change_direction": ChangeDirection.UP,
        "quality": "Standard",
        "arrivals": "120 quintals",
    }
    payload.update(overrides)
    return PriceObservationDomain(**payload)


def build_price_update_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "type": "price_update",
        "timestamp": build_timestamp(),
        "commodityId": 1,
        "circleId": 10,
        "newPrice": 2515,
        "priceChange": 15,
        "changePercentage": 0.6,
        "changeDirection": "up",
        "quality": "Standard",
        "arrivals": "120 quintals",
    }
    payload.update(overrides)
    return payload


def build_notification_payload(message_type: str = "notification", **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "type": message_type,
        "timestamp": build_timestamp(),
        "data": {"title": "New offer", "listingId": 42},
    }
    payload.update(overrides)
    return payload
