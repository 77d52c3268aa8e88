from __future__ import annotations

import pytest

from src.common.events import EventBus, NotificationEvent
from src.core.connection.dispatcher import PriceMessageDispatcher
from src.core.store.price_store import PriceStore
from src.core.types import ChangeDirection, MessageType
from src.infra.storage.snapshot_storage import InMemorySnapshotStorage
from tests.factory_builders import (
    build_notification_payload,
    build_price_update_payload,
    build_scope_domain,
)


class _RecordingSink:
    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    async def __call__(self, event: NotificationEvent) -> None:
        self.events.append(event)


@pytest.fixture
def storage() -> InMemorySnapshotStorage:
    return InMemorySnapshotStorage()


@pytest.fixture
def store(storage: InMemorySnapshotStorage) -> PriceStore:
    return PriceStore(storage)


@pytest.fixture
def sink() -> _RecordingSink:
    return _RecordingSink()


@pytest.fixture
def dispatcher(store: PriceStore, sink: _RecordingSink) -> PriceMessageDispatcher:
    return PriceMessageDispatcher(build_scope_domain(), store=store, notification_sink=sink)


@pytest.mark.asyncio
async def test_price_update_is_translated_and_ingested(
    dispatcher: PriceMessageDispatcher, store: PriceStore
) -> None:
    payload = build_price_update_payload(
        commodityId=3, circleId=7, newPrice=2515, priceChange=-15, changeDirection="down"
    )

    outcome = await dispatcher.dispatch(payload)

    assert outcome == "ingested"
    current = store.get_current_price(3, 7)
    assert current is not None
    assert current.price == 2515.0
    assert current.price_change == -15.0
    assert current.change_direction is ChangeDirection.DOWN
    assert current.timestamp == payload["timestamp"]
    assert current.quality == "Standard"


@pytest.mark.asyncio
async def test_source_strings_are_stored_verbatim(
    dispatcher: PriceMessageDispatcher, store: PriceStore, storage: InMemorySnapshotStorage
) -> None:
    payload = build_price_update_payload(quality="  Grade A ", arrivals="120 quintals ")

    await dispatcher.dispatch(payload)
    await store.wait_for_flush()

    current = store.get_current_price(1, 10)
    assert current is not None
    assert current.quality == "  Grade A "
    assert current.arrivals == "120 quintals "

    restored = PriceStore(storage).get_current_price(1, 10)
    assert restored is not None
    assert restored.quality == "  Grade A "
    assert restored.arrivals == "120 quintals "


@pytest.mark.asyncio
async def test_price_update_without_optional_fields(
    dispatcher: PriceMessageDispatcher, store: PriceStore
) -> None:
    payload = build_price_update_payload()
    payload.pop("quality")
    payload.pop("arrivals")

    assert await dispatcher.dispatch(payload) == "ingested"
    current = store.get_current_price(1, 10)
    assert current is not None
    assert current.quality is None
    assert current.arrivals is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"commodityId": "abc"},
        {"newPrice": "not-a-number"},
        {"changeDirection": "sideways"},
        {"timestamp": "yesterday"},
    ],
)
async def test_invalid_price_update_is_dropped(
    dispatcher: PriceMessageDispatcher, store: PriceStore, overrides: dict
) -> None:
    outcome = await dispatcher.dispatch(build_price_update_payload(**overrides))

    assert outcome == "invalid"
    assert store.recent_updates == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message_type",
    ["notification", "listing_update", "offer_received", "trade_update", "circle_update"],
)
async def test_notification_types_go_to_sink(
    dispatcher: PriceMessageDispatcher, sink: _RecordingSink, message_type: str
) -> None:
    payload = build_notification_payload(message_type)

    outcome = await dispatcher.dispatch(payload)

    assert outcome == "notified"
    assert len(sink.events) == 1
    assert sink.events[0].message_type is MessageType(message_type)
    assert sink.events[0].payload == payload


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"type": "heartbeat"}, {"type": "connect"}, {"data": 1}, {"type": 5}])
async def test_unknown_types_are_ignored(
    dispatcher: PriceMessageDispatcher,
    sink: _RecordingSink,
    store: PriceStore,
    payload: dict,
) -> None:
    assert await dispatcher.dispatch(payload) == "ignored"
    assert sink.events == []
    assert store.recent_updates == []


@pytest.mark.asyncio
async def test_default_sink_is_event_bus(store: PriceStore) -> None:
    received: list[NotificationEvent] = []

    async def _handler(event: NotificationEvent) -> None:
        received.append(event)

    off = EventBus.on(NotificationEvent, _handler)
    try:
        dispatcher = PriceMessageDispatcher(build_scope_domain(), store=store)
        await dispatcher.dispatch(build_notification_payload("offer_received"))
    finally:
        off()

    assert [event.message_type for event in received] == [MessageType.OFFER_RECEIVED]


@pytest.mark.asyncio
async def test_event_bus_isolates_failing_handler() -> None:
    received: list[str] = []

    async def _boom(event: NotificationEvent) -> None:
        raise RuntimeError("handler bug")

    async def _ok(event: NotificationEvent) -> None:
        received.append(event.message_type.value)

    offs = [EventBus.on(NotificationEvent, _boom), EventBus.on(NotificationEvent, _ok)]
    try:
        await EventBus.emit(
            NotificationEvent(message_type=MessageType.TRADE_UPDATE, payload={"type": "trade_update"})
        )
    finally:
        for off in offs:
            off()

    assert received == ["trade_update"]
