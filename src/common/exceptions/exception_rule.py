"""경계별 예외 묶음.

각 경계(소켓, 역직렬화, 스냅샷 저장소)에서 잡아야 하는 예외를 튜플로 모아
`except SOCKET_EXCEPTIONS as e:` 형태로 사용합니다.
여기 없는 예외는 버그로 보고 그대로 전파합니다.
"""

from __future__ import annotations

import asyncio

import orjson
import redis.exceptions as redis_errors
from pydantic import ValidationError
from websockets.exceptions import InvalidStatus, WebSocketException

from src.common.exceptions.base import SnapshotStorageError

# 연결 수립/수신/송신 중 소켓을 닫고 재접속으로 넘길 오류
# (ConnectionClosed 는 WebSocketException 하위)
SOCKET_EXCEPTIONS: tuple[type[BaseException], ...] = (
    asyncio.TimeoutError,
    InvalidStatus,
    WebSocketException,
    OSError,
)

# 프레임/스냅샷 파싱 실패: 해당 항목만 버림
DESERIALIZATION_ERRORS: tuple[type[BaseException], ...] = (
    orjson.JSONDecodeError,
    UnicodeDecodeError,
    ValueError,
    TypeError,
    KeyError,
    AttributeError,
    ValidationError,
)

# 스냅샷 기록/읽기 실패: 로그 후 메모리 상태 유지
STORAGE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    OSError,
    SnapshotStorageError,
    redis_errors.ConnectionError,
    redis_errors.TimeoutError,
    redis_errors.ResponseError,
    redis_errors.AuthenticationError,
)
