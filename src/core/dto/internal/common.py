from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True, eq=True, repr=False, match_args=False, kw_only=True)
class StreamScopeDomain:
    """연결 스코프 (로그 extra 의 공통 키)

    - endpoint: WebSocket 서버 URL
    - channel: 스트림 채널 이름
    """

    endpoint: str
    channel: str = "price_updates"
