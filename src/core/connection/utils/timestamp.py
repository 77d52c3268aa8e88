"""ISO-8601 타임스탬프 유틸리티.

가격 관측치의 timestamp 는 소스가 보고한 문자열 그대로 보관하고,
정렬이 필요한 시점에만 datetime 으로 해석합니다.
"""

from __future__ import annotations

from datetime import datetime, timezone

# 해석 불가 타임스탬프는 가장 오래된 값으로 취급
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def utc_now_iso() -> str:
    """현재 UTC 시각 ISO-8601 문자열 (밀리초, Z 접미사).

    Examples:
        >>> utc_now_iso()  # doctest: +SKIP
        '2024-05-01T09:30:00.123Z'
    """
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_timestamp(value: str) -> datetime:
    """ISO-8601 문자열을 timezone-aware datetime 으로 변환.

    - "Z" 접미사 허용
    - naive 값은 UTC 로 간주 (aware/naive 혼합 비교 방지)

    Raises:
        ValueError: ISO-8601 형식이 아닌 경우
    """
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_sort_key(value: str) -> datetime:
    """정렬용 키. 해석 실패 시 예외 대신 최솟값을 돌려준다."""
    try:
        return parse_iso_timestamp(value)
    except (ValueError, TypeError, AttributeError):
        return _OLDEST
