from __future__ import annotations

from typing import Any, Awaitable, Callable, Literal, TypeAlias

from src.common.events import EventBus, NotificationEvent
from src.common.exceptions.exception_rule import DESERIALIZATION_ERRORS
from src.common.logger import PipelineLogger
from src.core.connection.utils.logging.log_phases import PHASE_DISPATCH
from src.core.connection.utils.logging.logging_mixin import ScopedConnectionLoggingMixin
from src.core.connection.utils.parse import message_type_of
from src.core.dto.internal.common import StreamScopeDomain
from src.core.dto.io.messages import PriceUpdateMessageDTO
from src.core.store.price_store import PriceStore
from src.core.types import NOTIFICATION_MESSAGE_TYPES, MessageType

logger = PipelineLogger.get_logger("message_dispatcher", "connection")

DispatchOutcome: TypeAlias = Literal["ingested", "notified", "invalid", "ignored"]
NotificationSink: TypeAlias = Callable[[NotificationEvent], Awaitable[None]]


class PriceMessageDispatcher(ScopedConnectionLoggingMixin):
    """인바운드 메시지 타입별 라우팅

    - price_update → 필드 변환 후 가격 스토어 적재
    - notification / listing_update / offer_received / trade_update / circle_update
      → 알림 싱크 (기본: EventBus)
    - 그 외 → 로깅 후 무시
    """

    _logger = logger

    def __init__(
        self,
        scope: StreamScopeDomain,
        store: PriceStore | None = None,
        notification_sink: NotificationSink | None = None,
    ) -> None:
        self.scope = scope
        self._store = store
        self._notification_sink: NotificationSink = notification_sink or EventBus.emit

    @property
    def store(self) -> PriceStore:
        return self._store or PriceStore.get_instance()

    async def dispatch(self, payload: dict[str, Any]) -> DispatchOutcome:
        raw_type = message_type_of(payload)
        try:
            message_type = MessageType(raw_type) if raw_type is not None else None
        except ValueError:
            message_type = None

        match message_type:
            case MessageType.PRICE_UPDATE:
                return self._ingest_price_update(payload)
            case message_type if message_type in NOTIFICATION_MESSAGE_TYPES:
                await self._notification_sink(
                    NotificationEvent(message_type=message_type, payload=payload)
                )
                return "notified"
            case _:
                self._log_info(
                    "Unhandled message type ignored",
                    phase=PHASE_DISPATCH,
                    message_type=raw_type,
                )
                return "ignored"

    def _ingest_price_update(self, payload: dict[str, Any]) -> DispatchOutcome:
        try:
            message = PriceUpdateMessageDTO.model_validate(payload)
        except DESERIALIZATION_ERRORS as e:
            self._log_warning(
                "Invalid price_update dropped",
                phase=PHASE_DISPATCH,
                error=str(e),
                commodity_id=payload.get("commodityId"),
                circle_id=payload.get("circleId"),
            )
            return "invalid"

        self.store.add_price_update(message.to_domain())
        return "ingested"
