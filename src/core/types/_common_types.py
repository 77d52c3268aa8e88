from __future__ import annotations

from enum import Enum
from typing import Final, TypeAlias, assert_never

# 공통 타입/별칭을 한곳에 모읍니다.
# - 코어 계층 어디서나 재사용 가능한 최소 단위만 정의합니다.
# - 와이어 스키마 세부는 dto/io 에 두고, 여기에는 기반 타입만 둡니다.

CommodityId: TypeAlias = int
CircleId: TypeAlias = int

DEFAULT_RECONNECT_DELAY: Final[float] = 5.0
DEFAULT_STORAGE_KEY: Final[str] = "price-updates-storage"


class ChangeDirection(str, Enum):
    """가격 변동 방향.

    소스가 자체 임계값으로 stable 을 판정할 수 있으므로
    price_change 로 재계산하지 않고 전달된 값을 그대로 신뢰합니다.
    """

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class ConnectionStatus(str, Enum):
    """소켓 연결 상태 (한 시점에 하나의 값만 활성)."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


# 허용 전이: closed → connecting → open → closing → closed,
# connecting → closed (open 이전 실패), open → closed (비정상 종료)
ALLOWED_STATUS_TRANSITIONS: Final[dict[ConnectionStatus, frozenset[ConnectionStatus]]] = {
    ConnectionStatus.CLOSED: frozenset({ConnectionStatus.CONNECTING}),
    ConnectionStatus.CONNECTING: frozenset({ConnectionStatus.OPEN, ConnectionStatus.CLOSED}),
    ConnectionStatus.OPEN: frozenset({ConnectionStatus.CLOSING, ConnectionStatus.CLOSED}),
    ConnectionStatus.CLOSING: frozenset({ConnectionStatus.CLOSED}),
}


def connection_status_label(status: ConnectionStatus) -> str:
    """상태 표시 라벨: Enum 분기 완전탐색 보장."""
    match status:
        case ConnectionStatus.OPEN:
            return "Connected"
        case ConnectionStatus.CONNECTING:
            return "Connecting..."
        case ConnectionStatus.CLOSING:
            return "Disconnecting..."
        case ConnectionStatus.CLOSED:
            return "Disconnected"
        case _:
            assert_never(status)
