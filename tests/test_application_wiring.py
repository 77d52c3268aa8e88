from __future__ import annotations

import asyncio
import contextlib
from typing import Any

import pytest

from main import Application
from src.common.events import EventBus, NotificationEvent
from src.config.containers import ApplicationContainer
from src.core.connection import manager as manager_module
from src.core.store.price_store import PriceStore
from src.core.types import ConnectionStatus, MessageType, connection_status_label
from tests.factory_builders import build_observation


class _IdleWebsocket:
    def __init__(self) -> None:
        self.closed = asyncio.Event()
        self.sent: list[str] = []

    async def send(self, message: str) -> None:
        self.sent.append(message)

    async def close(self) -> None:
        self.closed.set()

    def __aiter__(self) -> "_IdleWebsocket":
        return self

    async def __anext__(self) -> str:
        await self.closed.wait()
        raise StopAsyncIteration


async def _fake_connect(uri: str, **kwargs: Any) -> _IdleWebsocket:
    return _IdleWebsocket()


@pytest.mark.parametrize(
    ("status", "label"),
    [
        (ConnectionStatus.OPEN, "Connected"),
        (ConnectionStatus.CONNECTING, "Connecting..."),
        (ConnectionStatus.CLOSING, "Disconnecting..."),
        (ConnectionStatus.CLOSED, "Disconnected"),
    ],
)
def test_connection_status_label(status: ConnectionStatus, label: str) -> None:
    assert connection_status_label(status) == label


def test_container_wires_store_dispatcher_and_connection() -> None:
    container = ApplicationContainer()
    container.init_resources()
    try:
        store = container.infra.price_store()
        dispatcher = container.dispatcher()
        connection = container.connection_manager()

        assert PriceStore.get_instance() is store
        assert dispatcher.store is store
        assert connection is container.connection_manager()
        assert connection.url == container.websocket_config().url
        assert connection.status is ConnectionStatus.CLOSED
    finally:
        container.shutdown_resources()
        PriceStore.reset_instance()


@pytest.mark.asyncio
async def test_application_lifecycle(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(manager_module.websockets, "connect", _fake_connect)
    app = Application()

    await app.initialize()
    assert app.store is not None and app.connection is not None

    run_task = asyncio.create_task(app.run())
    try:
        for _ in range(100):
            if app.connection.status is ConnectionStatus.OPEN:
                break
            await asyncio.sleep(0.01)
        assert app.connection.status is ConnectionStatus.OPEN

        app.store.add_price_update(build_observation())
        await EventBus.emit(
            NotificationEvent(message_type=MessageType.NOTIFICATION, payload={"type": "notification"})
        )
    finally:
        run_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await run_task
        await app.shutdown()
        PriceStore.reset_instance()

    assert app.connection.status is ConnectionStatus.CLOSED
    assert app.store.subscriber_count == 0
    assert not app.store.has_pending_snapshot
