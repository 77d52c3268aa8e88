from collections import deque
from decimal import Decimal
from enum import Enum
from typing import Any, Callable

import orjson

JSONDefault = Callable[[Any], Any]

# 스냅샷의 currentPrices 는 int 키를 사용
_DUMPS_OPTIONS = orjson.OPT_NON_STR_KEYS


def default_json_encoder(obj: Any) -> Any:
    """JSON 직렬화 헬퍼.

    - Decimal -> str
    - deque -> list
    - Enum -> value
    - 그 외: str 로 폴백
    """
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, deque):
        return list(obj)
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)


def to_bytes(value: Any, default: JSONDefault | None = default_json_encoder) -> bytes:
    """객체를 UTF-8 JSON bytes(orjson)로 직렬화."""
    return orjson.dumps(value, default=default, option=_DUMPS_OPTIONS)


def to_text(value: Any) -> str:
    """소켓 text 프레임 전송용 JSON 문자열"""
    return to_bytes(value).decode("utf-8")


def from_bytes(payload: bytes | bytearray | memoryview | str) -> Any:
    """JSON 역직렬화 (orjson.JSONDecodeError 는 ValueError 하위 클래스)"""
    return orjson.loads(payload)
