from src.core.types._common_types import (
    ALLOWED_STATUS_TRANSITIONS,
    DEFAULT_RECONNECT_DELAY,
    DEFAULT_STORAGE_KEY,
    ChangeDirection,
    CircleId,
    CommodityId,
    ConnectionStatus,
    connection_status_label,
)
from src.core.types._message_types import NOTIFICATION_MESSAGE_TYPES, MessageType

__all__ = [
    # _common_types
    "CommodityId",
    "CircleId",
    "DEFAULT_RECONNECT_DELAY",
    "DEFAULT_STORAGE_KEY",
    "ChangeDirection",
    "ConnectionStatus",
    "ALLOWED_STATUS_TRANSITIONS",
    "connection_status_label",
    # _message_types
    "MessageType",
    "NOTIFICATION_MESSAGE_TYPES",
]
