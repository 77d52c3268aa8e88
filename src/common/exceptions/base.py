from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class PriceStreamException(Exception):
    """가격 스트림 클라이언트 기본 예외 클래스

    `to_dict()`는 로그 extra 직렬화 시 일관된 스키마를 제공합니다.
    """

    message: str
    original_exception: Exception | None = None
    retryable: bool = False

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": self.message,
            "error_type": self.__class__.__name__,
            "retryable": self.retryable,
        }

        if self.original_exception:
            result["original_error"] = str(self.original_exception)
            result["original_error_type"] = self.original_exception.__class__.__name__

        return result


@dataclass(slots=True)
class SnapshotStorageError(PriceStreamException):
    """스냅샷 저장소 읽기/쓰기 실패"""

    storage_key: str = ""

    def to_dict(self) -> dict[str, Any]:
        result = PriceStreamException.to_dict(self)
        result["storage_key"] = self.storage_key
        return result
