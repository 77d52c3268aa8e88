"""알림 싱크 (in-process Event Bus)

가격 업데이트가 아닌 서버 메시지(notification, listing_update, offer_received,
trade_update, circle_update)를 구독자에게 넘기는 통로입니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from src.common.logger import PipelineLogger
from src.core.types import MessageType

logger = PipelineLogger.get_logger("event_bus", "common")

EventHandler = Callable[[Any], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class NotificationEvent:
    """알림 이벤트 (순수 데이터)

    message_type 으로 구분되며 payload 는 서버가 보낸 원본 envelope 입니다.
    """

    message_type: MessageType
    payload: dict[str, Any]
    received_at: datetime = field(default_factory=datetime.now)


class EventBus:
    """클래스 레벨 핸들러 레지스트리

    특징:
    - 이벤트 클래스 단위로 핸들러 보관
    - 등록 순서대로 순차 실행
    - 핸들러 예외는 로깅 후 격리 (다음 핸들러 계속 실행)
    """

    _handlers: dict[type, list[EventHandler]] = {}

    @classmethod
    async def emit(cls, event: Any) -> None:
        """등록 순서대로 핸들러 호출

        Args:
            event: NotificationEvent 등 이벤트 인스턴스
        """
        event_type = type(event)
        handlers = list(cls._handlers.get(event_type, []))

        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                await logger.aerror(
                    f"notification handler raised: {e}",
                    # executor 스레드에서 기록되므로 예외 객체를 직접 전달
                    exc_info=e,
                    extra={
                        "event_type": event_type.__name__,
                        "handler": getattr(handler, "__name__", repr(handler)),
                    },
                )

    @classmethod
    def on(cls, event_type: type, handler: EventHandler) -> Callable[[], None]:
        """핸들러 등록

        Args:
            event_type: 구독할 이벤트 클래스
            handler: async 콜러블

        Returns:
            등록 해제 함수
        """
        cls._handlers.setdefault(event_type, []).append(handler)

        def _off() -> None:
            cls.off(event_type, handler)

        return _off

    @classmethod
    def off(cls, event_type: type, handler: EventHandler) -> None:
        handlers = cls._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    @classmethod
    def clear(cls) -> None:
        """레지스트리 초기화 (테스트 격리용)"""
        cls._handlers.clear()


__all__ = ["NotificationEvent", "EventBus"]
