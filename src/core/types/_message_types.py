from __future__ import annotations

from enum import Enum
from typing import Final


class MessageType(str, Enum):
    """WebSocket 메시지 타입 상수

    - CONNECT: 클라이언트 → 서버 핸드셰이크
    - PRICE_UPDATE: 가격 스토어로 적재
    - 나머지: 알림 싱크로 전달
    """

    CONNECT = "connect"
    PRICE_UPDATE = "price_update"
    LISTING_UPDATE = "listing_update"
    OFFER_RECEIVED = "offer_received"
    TRADE_UPDATE = "trade_update"
    CIRCLE_UPDATE = "circle_update"
    NOTIFICATION = "notification"


NOTIFICATION_MESSAGE_TYPES: Final[frozenset[MessageType]] = frozenset(
    {
        MessageType.NOTIFICATION,
        MessageType.LISTING_UPDATE,
        MessageType.OFFER_RECEIVED,
        MessageType.TRADE_UPDATE,
        MessageType.CIRCLE_UPDATE,
    }
)
