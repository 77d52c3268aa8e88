"""가격 관측치 내부 도메인 모델.

내부 처리용 불변 도메인 객체 (dataclass 기반).
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.types import ChangeDirection, CircleId, CommodityId


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class PriceObservationDomain:
    """(commodity, circle) 단위 가격 관측치 (와이어 독립).

    특징:
    - 불변 객체 (frozen=True)
    - 슬롯 최적화 (slots=True)
    - I/O DTO와 필드는 동일하나 Pydantic 검증 없음

    와이어 매핑:
    - newPrice → price (필드명 변경은 의도된 것)
    - 나머지 camelCase 필드는 snake_case 로 1:1 대응
    """

    commodity_id: CommodityId
    circle_id: CircleId
    timestamp: str
    price: float
    price_change: float
    change_percentage: float
    change_direction: ChangeDirection
    quality: str | None = None
    arrivals: str | None = None

    @property
    def key(self) -> tuple[CommodityId, CircleId]:
        """스토어 인덱스 키 (commodity_id, circle_id)"""
        return (self.commodity_id, self.circle_id)
