"""WebSocket 메시지 및 스냅샷 DTO 통합 모듈

- 인바운드: price_update (가격 스토어 적재 대상)
- 아웃바운드: connect 핸드셰이크
- 스냅샷: 로컬 저장소에 보관되는 부분 상태 (currentPrices + recentUpdates)
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, StrictInt, field_validator

from src.core.connection.utils.timestamp import parse_iso_timestamp
from src.core.dto.internal.price import PriceObservationDomain
from src.core.dto.io._base import OUTBOUND_CONFIG, BaseInboundDTO, BaseOutboundDTO
from src.core.types import ChangeDirection

# ========================================
# 인바운드
# ========================================


class PriceUpdateMessageDTO(BaseInboundDTO):
    """price_update 메시지.

    Example:
        {
            "type": "price_update",
            "timestamp": "2024-05-01T09:30:00.000Z",
            "commodityId": 3, "circleId": 7,
            "newPrice": 2515, "priceChange": 15,
            "changePercentage": 0.6, "changeDirection": "up",
            "quality": "Standard", "arrivals": "120 quintals"
        }
    """

    type: Literal["price_update"] = Field(..., description="메시지 타입")
    commodity_id: StrictInt = Field(..., description="상품 ID")
    circle_id: StrictInt = Field(..., description="서클(지역 시장) ID")
    new_price: float = Field(..., description="새 가격")
    price_change: float = Field(..., description="직전 대비 변동폭 (부호 포함)")
    change_percentage: float = Field(..., description="직전 대비 변동률 (부호 포함)")
    change_direction: ChangeDirection = Field(..., description="변동 방향 (소스 판정)")
    quality: str | None = Field(None, description="품질 등급")
    arrivals: str | None = Field(None, description="반입량 표기")

    @field_validator("timestamp")
    @classmethod
    def _validate_timestamp(cls, value: str) -> str:
        parse_iso_timestamp(value)
        return value

    def to_domain(self) -> PriceObservationDomain:
        """와이어 필드를 스토어 레코드로 변환 (newPrice → price)"""
        return PriceObservationDomain(
            commodity_id=self.commodity_id,
            circle_id=self.circle_id,
            timestamp=self.timestamp,
            price=self.new_price,
            price_change=self.price_change,
            change_percentage=self.change_percentage,
            change_direction=self.change_direction,
            quality=self.quality,
            arrivals=self.arrivals,
        )


# ========================================
# 아웃바운드
# ========================================


class ConnectHandshakeDTO(BaseOutboundDTO):
    """소켓 open 직후 1회 전송하는 connect 핸드셰이크"""

    type: Literal["connect"] = "connect"
    user_id: int | str = Field(..., description="캐시된 사용자 식별자")


# ========================================
# 스냅샷
# ========================================


class PriceObservationDTO(BaseModel):
    """스냅샷 직렬화용 관측치 (camelCase)"""

    commodity_id: StrictInt
    circle_id: StrictInt
    timestamp: str
    price: float
    price_change: float
    change_percentage: float
    change_direction: ChangeDirection
    quality: str | None = None
    arrivals: str | None = None

    model_config = OUTBOUND_CONFIG

    @classmethod
    def from_domain(cls, observation: PriceObservationDomain) -> PriceObservationDTO:
        return cls(
            commodity_id=observation.commodity_id,
            circle_id=observation.circle_id,
            timestamp=observation.timestamp,
            price=observation.price,
            price_change=observation.price_change,
            change_percentage=observation.change_percentage,
            change_direction=observation.change_direction,
            quality=observation.quality,
            arrivals=observation.arrivals,
        )

    def to_domain(self) -> PriceObservationDomain:
        return PriceObservationDomain(
            commodity_id=self.commodity_id,
            circle_id=self.circle_id,
            timestamp=self.timestamp,
            price=self.price,
            price_change=self.price_change,
            change_percentage=self.change_percentage,
            change_direction=ChangeDirection(self.change_direction),
            quality=self.quality,
            arrivals=self.arrivals,
        )


class PriceSnapshotDTO(BaseModel):
    """영속 스냅샷 (history 는 저장하지 않음)

    JSON 객체 키는 문자열이므로 commodity/circle ID 는 int 로 강제 변환됩니다.
    """

    current_prices: dict[int, dict[int, PriceObservationDTO]] = Field(default_factory=dict)
    recent_updates: list[PriceObservationDTO] = Field(default_factory=list)

    model_config = OUTBOUND_CONFIG
