from __future__ import annotations

from pathlib import Path

import pytest

from src.common.exceptions.base import SnapshotStorageError
from src.core.store.price_store import PriceStore
from src.infra.storage.snapshot_storage import (
    FileSnapshotStorage,
    InMemorySnapshotStorage,
    RedisSnapshotStorage,
    build_snapshot_storage,
)
from tests.factory_builders import build_observation


class _FakeRedis:
    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class _FakeRedisManager:
    def __init__(self) -> None:
        self.client = _FakeRedis()
        self.initialized = False

    def initialize(self) -> None:
        self.initialized = True


def test_file_storage_round_trip_and_remove(tmp_path: Path) -> None:
    storage = FileSnapshotStorage(tmp_path / "snapshots")

    assert storage.get_item("price-updates-storage") is None

    storage.set_item("price-updates-storage", b'{"a": 1}')
    assert (tmp_path / "snapshots" / "price-updates-storage.json").read_bytes() == b'{"a": 1}'
    assert storage.get_item("price-updates-storage") == b'{"a": 1}'
    assert list((tmp_path / "snapshots").glob("*.tmp")) == []

    storage.remove_item("price-updates-storage")
    storage.remove_item("price-updates-storage")
    assert storage.get_item("price-updates-storage") is None


def test_file_storage_wraps_os_errors(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file")
    storage = FileSnapshotStorage(blocker)

    with pytest.raises(SnapshotStorageError) as exc_info:
        storage.set_item("price-updates-storage", b"{}")

    assert exc_info.value.storage_key == "price-updates-storage"
    assert exc_info.value.to_dict()["error_type"] == "SnapshotStorageError"
    assert exc_info.value.retryable is True


def test_store_survives_restart_with_file_storage(tmp_path: Path) -> None:
    store = PriceStore(FileSnapshotStorage(tmp_path))
    store.add_price_update(build_observation(price=3100.0))
    store.persist()

    reloaded = PriceStore(FileSnapshotStorage(tmp_path))

    current = reloaded.get_current_price(1, 10)
    assert current is not None
    assert current.price == 3100.0


def test_redis_storage_uses_namespaced_keys() -> None:
    manager = _FakeRedisManager()
    storage = RedisSnapshotStorage(manager, namespace="mandi")  # type: ignore[arg-type]

    storage.set_item("price-updates-storage", b"{}")

    assert manager.client.data == {"mandi:price-updates-storage": b"{}"}
    assert storage.get_item("price-updates-storage") == b"{}"
    storage.remove_item("price-updates-storage")
    assert storage.get_item("price-updates-storage") is None


def test_build_snapshot_storage_selects_backend(tmp_path: Path) -> None:
    manager = _FakeRedisManager()

    assert isinstance(build_snapshot_storage("file", snapshot_dir=tmp_path), FileSnapshotStorage)
    assert isinstance(build_snapshot_storage("memory"), InMemorySnapshotStorage)
    assert isinstance(
        build_snapshot_storage("redis", redis_manager=manager),  # type: ignore[arg-type]
        RedisSnapshotStorage,
    )
    assert manager.initialized is True
    assert isinstance(build_snapshot_storage("unknown"), InMemorySnapshotStorage)
