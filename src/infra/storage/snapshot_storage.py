"""가격 스냅샷 저장소 어댑터

스토어는 직렬화된 blob 하나를 잘 알려진 키로 읽고 씁니다.
백엔드(로컬 파일, 메모리, Redis)는 이 좁은 인터페이스 뒤에서 교체됩니다.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

from src.common.exceptions.base import SnapshotStorageError
from src.common.logger import PipelineLogger
from src.infra.cache.cache_client import RedisConnectionManager

logger = PipelineLogger.get_logger("snapshot_storage", "storage")


class SnapshotStorage(Protocol):
    def get_item(self, key: str) -> bytes | None: ...

    def set_item(self, key: str, value: bytes) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemorySnapshotStorage:
    """프로세스 메모리 저장소 (테스트/임시 실행용)"""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._items: dict[str, bytes] = dict(initial or {})

    def get_item(self, key: str) -> bytes | None:
        return self._items.get(key)

    def set_item(self, key: str, value: bytes) -> None:
        self._items[key] = bytes(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileSnapshotStorage:
    """로컬 디스크 저장소: {directory}/{key}.json

    쓰기는 임시 파일 + os.replace 로 원자적으로 교체합니다.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SnapshotStorageError(
                message=f"snapshot read failed: {path}", original_exception=e, storage_key=key
            ) from e

    def set_item(self, key: str, value: bytes) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise SnapshotStorageError(
                message=f"snapshot write failed: {path}",
                original_exception=e,
                storage_key=key,
                # 다음 적재 시 다시 기록됨
                retryable=True,
            ) from e

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class RedisSnapshotStorage:
    """Redis 저장소 (여러 프로세스가 같은 스냅샷을 공유할 때)"""

    def __init__(self, manager: RedisConnectionManager, namespace: str = "mandi") -> None:
        self._manager = manager
        self.namespace = namespace

    def _redis_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get_item(self, key: str) -> bytes | None:
        value = self._manager.client.get(self._redis_key(key))
        if value is None:
            return None
        return value if isinstance(value, bytes) else str(value).encode("utf-8")

    def set_item(self, key: str, value: bytes) -> None:
        self._manager.client.set(self._redis_key(key), value)

    def remove_item(self, key: str) -> None:
        self._manager.client.delete(self._redis_key(key))


def build_snapshot_storage(
    backend: str,
    *,
    snapshot_dir: str | Path = ".cache",
    redis_manager: RedisConnectionManager | None = None,
) -> SnapshotStorage:
    """설정값(file | memory | redis)에 맞는 저장소 생성"""
    match backend:
        case "file":
            return FileSnapshotStorage(snapshot_dir)
        case "memory":
            return InMemorySnapshotStorage()
        case "redis":
            manager = redis_manager or RedisConnectionManager.get_instance()
            manager.initialize()
            return RedisSnapshotStorage(manager)
        case _:
            logger.warning(f"알 수 없는 스냅샷 백엔드 '{backend}', 메모리 저장소 사용")
            return InMemorySnapshotStorage()
