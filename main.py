"""애플리케이션 진입점 (DI Container 기반)

농산물 시장 실시간 가격 스트림 클라이언트
- WebSocket 으로 가격 업데이트 수신 (종료 시 5초 후 자동 재접속)
- (commodity, circle) 정규화 가격 스토어 적재 및 스냅샷 영속화
- Event Bus 기반 알림 처리 (EDA)

Usage:
    python main.py                              # 개발 환경
    WS_URL=wss://mandi.example.com/ws python main.py
"""

import asyncio
from typing import Callable

from src.common.events import EventBus, NotificationEvent
from src.common.logger import PipelineLogger
from src.config.containers import ApplicationContainer
from src.config.settings import app_settings
from src.core.connection.manager import PriceStreamConnectionManager
from src.core.store.price_store import PriceStore
from src.core.types import ConnectionStatus, connection_status_label
from src.core.utils.price_format import (
    direction_style,
    format_change_percentage,
    format_price,
    format_price_change,
)

logger = PipelineLogger.get_logger("main", "app")


class Application:
    """애플리케이션 메인 클래스

    책임:
    - DI Container 관리
    - Event Bus 리스너 / 스토어 구독자 등록
    - 연결 시작 후 취소될 때까지 대기
    - Graceful Shutdown (연결 종료 → 스냅샷 기록)
    """

    def __init__(self) -> None:
        self.container = ApplicationContainer()
        self.store: PriceStore | None = None
        self.connection: PriceStreamConnectionManager | None = None
        self._disposers: list[Callable[[], None]] = []

    def _setup_event_bus(self) -> None:
        """Event Bus 리스너 등록 (EDA 패턴)

        NotificationEvent → 로그 (알림 UI 대체)
        """

        async def handle_notification(event: NotificationEvent) -> None:
            await logger.ainfo(
                f"🔔 {event.message_type.value}",
                extra={"message_type": event.message_type.value, "payload": event.payload},
            )

        self._disposers.append(EventBus.on(NotificationEvent, handle_notification))

    def _setup_ticker(self, store: PriceStore) -> None:
        """스토어 구독: 적재될 때마다 최신 관측치를 티커 형태로 출력"""

        def print_ticker(current: PriceStore) -> None:
            latest = current.get_recent_updates(limit=1)
            if not latest:
                return
            item = latest[0]
            style = direction_style(item.change_direction)
            logger.info(
                f"{style.emoji} commodity={item.commodity_id} circle={item.circle_id} "
                f"{format_price(item.price)} {format_price_change(item.price_change)} "
                f"({format_change_percentage(item.change_percentage)})"
            )

        self._disposers.append(store.subscribe(print_ticker))

    def _setup_status_listener(self, connection: PriceStreamConnectionManager) -> None:
        def log_status(previous: ConnectionStatus, current: ConnectionStatus) -> None:
            logger.info(
                f"연결 상태: {connection_status_label(current)}",
                extra={"previous": previous.value, "current": current.value},
            )

        self._disposers.append(connection.add_status_listener(log_status))

    async def initialize(self) -> None:
        """애플리케이션 초기화

        Flow:
        1. Resource 초기화 (가격 스토어 + 스냅샷 복원)
        2. Event Bus 리스너 / 스토어 구독자 등록
        3. 연결 관리자 가져오기
        """
        logger.set_context(environment=app_settings.environment)
        store_config = self.container.infra.price_store_config()
        logger.info(
            "실시간 가격 스트림 클라이언트 시작 (DI 모드)",
            extra={
                "endpoint": self.container.websocket_config().url,
                "storage_backend": store_config.storage_backend,
            },
        )

        self.container.init_resources()
        self.store = self.container.infra.price_store()
        logger.info("✅ 가격 스토어 준비 완료")

        self._setup_event_bus()
        self._setup_ticker(self.store)
        logger.info("✅ Event Bus 리스너 / 구독자 등록 완료")

        self.connection = self.container.connection_manager()
        self._setup_status_listener(self.connection)

    async def run(self) -> None:
        """연결 시작 후 취소될 때까지 대기 (재접속은 연결 관리자가 담당)"""
        assert self.connection is not None
        self.connection.connect()
        await asyncio.Event().wait()

    async def shutdown(self) -> None:
        """Graceful Shutdown

        Flow:
        1. 연결 종료 (예약된 재접속 취소)
        2. 리스너 / 구독 해제
        3. 진행 중인 백그라운드 스냅샷 기록 대기
        4. Resource 정리 (마지막 스냅샷 기록)
        """
        logger.info("정리 작업 시작...")

        if self.connection is not None:
            await self.connection.disconnect()

        for dispose in self._disposers:
            dispose()
        self._disposers.clear()

        if self.store is not None:
            await self.store.wait_for_flush()
        self.container.shutdown_resources()
        logger.info("✅ 프로그램 종료 완료")
        logger.clear_context()


async def main() -> None:
    """메인 실행 함수"""
    app = Application()

    try:
        await app.initialize()
        await app.run()
    except asyncio.CancelledError:
        logger.info("사용자에 의해 프로그램이 종료되었습니다")
    finally:
        await app.shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n프로그램이 종료되었습니다.")
