"""캐시된 사용자 식별자 읽기 (connect 핸드셰이크용)

로그인 계층이 남겨 둔 JSON 파일({"id": 7, ...})에서 사용자 ID 를 읽습니다.
어떤 실패도 "식별자 없음"으로 처리되어 연결을 막지 않습니다.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from src.common.exceptions.exception_rule import DESERIALIZATION_ERRORS
from src.common.logger import PipelineLogger
from src.common.serde import from_bytes

logger = PipelineLogger.get_logger("identity_cache", "identity")


class IdentityProvider(Protocol):
    def get_user_id(self) -> int | str | None: ...


class FileIdentityCache:
    """파일 기반 사용자 캐시"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get_user_id(self) -> int | str | None:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"identity cache read failed: {e}", extra={"path": str(self.path)})
            return None

        try:
            payload = from_bytes(raw)
        except DESERIALIZATION_ERRORS as e:
            logger.warning(f"identity cache unreadable: {e}", extra={"path": str(self.path)})
            return None

        if not isinstance(payload, dict):
            return None
        user_id = payload.get("id", payload.get("userId"))
        if isinstance(user_id, bool) or not isinstance(user_id, (int, str)):
            return None
        return user_id or None


class StaticIdentity:
    """고정 식별자 (테스트/CLI 실행용)"""

    def __init__(self, user_id: int | str | None) -> None:
        self._user_id = user_id

    def get_user_id(self) -> int | str | None:
        return self._user_id
