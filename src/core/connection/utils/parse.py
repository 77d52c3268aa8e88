from __future__ import annotations

from typing import Any

from src.common.serde import from_bytes


def parse_message(message: str | bytes | dict[str, Any]) -> dict[str, Any]:
    """수신 프레임을 dict 로 파싱.

    - dict 는 그대로 반환
    - bytes/str 은 orjson 으로 역직렬화
    - 빈 프레임은 빈 dict

    Raises:
        orjson.JSONDecodeError: JSON 이 아닌 경우
        UnicodeDecodeError: UTF-8 이 아닌 바이너리 프레임
        TypeError: JSON 최상위가 객체가 아닌 경우
    """
    match message:
        case dict() as payload:
            return payload
        case bytes() | bytearray() as payload:
            message_str = bytes(payload).decode("utf-8").strip()
        case str() as payload:
            message_str = payload.strip()
        case _:
            message_str = str(message).strip()

    if not message_str:
        return {}

    parsed = from_bytes(message_str)
    match parsed:
        case dict() as payload:
            return payload
        case _:
            raise TypeError(f"unsupported payload type: {type(parsed).__name__}")


def message_type_of(payload: dict[str, Any]) -> str | None:
    """envelope 의 type 필드 (문자열이 아니면 None)"""
    value = payload.get("type")
    return value if isinstance(value, str) else None
