"""I/O 경계 DTO 기반 클래스 모듈

와이어(JSON) 필드는 camelCase, 파이썬 속성은 snake_case 로 유지합니다.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.core.connection.utils.timestamp import utc_now_iso

# ========================================
# ConfigDict (전역 설정)
# ========================================

# 인바운드 메시지: 서버가 필드를 추가해도 깨지지 않도록 extra 무시
INBOUND_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    use_enum_values=False,
    extra="ignore",
    frozen=True,
)

# 아웃바운드/스냅샷: 알 수 없는 필드 금지
OUTBOUND_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    use_enum_values=True,
    extra="forbid",
    validate_default=True,
    frozen=True,
)


# ========================================
# 베이스 클래스
# ========================================


class BaseInboundDTO(BaseModel):
    """서버 → 클라이언트 메시지 공통 베이스.

    특징:
    - 불변 객체 (frozen=True)
    - camelCase alias (commodityId ↔ commodity_id)
    - 알 수 없는 필드 무시 (forward-compatible)
    """

    type: str = Field(..., description="메시지 타입")
    timestamp: str = Field(..., description="서버 기준 발생 시각 (ISO-8601)")
    model_config = INBOUND_CONFIG


class BaseOutboundDTO(BaseModel):
    """클라이언트 → 서버 메시지 공통 베이스.

    timestamp 는 생성 시점의 UTC ISO-8601 로 자동 채워집니다.
    """

    type: str = Field(..., description="메시지 타입")
    timestamp: str = Field(
        default_factory=utc_now_iso,
        description="전송 시각 (UTC ISO-8601)",
    )
    model_config = OUTBOUND_CONFIG

    def to_wire(self) -> dict:
        """alias(camelCase) 기준 dict"""
        return self.model_dump(by_alias=True, exclude_none=True)
