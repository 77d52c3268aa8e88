from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class PydanticFilter(BaseModel):
    """로그 extra 정리용 모델.

    임의 키를 그대로 받아 None 값만 걸러냅니다 (identity 없는 핸드셰이크의 user_id 등).
    """

    model_config = ConfigDict(extra="allow")

    @classmethod
    def filter_dict(cls, payload: dict[str, Any]) -> dict[str, Any]:
        if not payload:
            return {}
        return cls.model_validate(payload).model_dump(exclude_none=True)
