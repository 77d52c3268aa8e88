from __future__ import annotations

import asyncio
import contextlib
from itertools import count
from typing import Any, Callable, TypeAlias

import websockets

from src.common.exceptions.exception_rule import DESERIALIZATION_ERRORS, SOCKET_EXCEPTIONS
from src.common.logger import PipelineLogger
from src.common.serde import to_text
from src.config.settings import websocket_settings
from src.core.connection.dispatcher import PriceMessageDispatcher
from src.core.connection.utils.logging.log_phases import (
    PHASE_CLOSE,
    PHASE_CONNECT,
    PHASE_DISCONNECT,
    PHASE_DISPATCH,
    PHASE_HANDSHAKE,
    PHASE_OPEN,
    PHASE_PARSE,
    PHASE_RECONNECT,
    PHASE_SEND,
    PHASE_STATUS,
)
from src.core.connection.utils.logging.logging_mixin import ScopedConnectionLoggingMixin
from src.core.connection.utils.parse import parse_message
from src.core.dto.internal.common import StreamScopeDomain
from src.core.dto.io._base import BaseOutboundDTO
from src.core.dto.io.messages import ConnectHandshakeDTO
from src.core.types import ALLOWED_STATUS_TRANSITIONS, ConnectionStatus
from src.infra.identity.identity_cache import IdentityProvider

logger = PipelineLogger.get_logger("price_stream", "connection")

StatusListener: TypeAlias = Callable[[ConnectionStatus, ConnectionStatus], None]


class PriceStreamConnectionManager(ScopedConnectionLoggingMixin):
    """가격 업데이트 서버와의 단일 WebSocket 연결 관리자

    책임:
    - 동시에 최대 1개의 소켓 유지 (connecting/open 중 connect 는 no-op)
    - 상태 전이 추적 (connecting → open → closing → closed)
    - 종료 시 고정 지연(기본 5초) 후 재접속 1회 예약, 이전 예약은 교체
    - 수신 메시지 파싱 후 디스패처로 전달 (파싱 실패는 로깅 후 폐기)
    - open 상태에서만 전송 (그 외에는 로깅 후 폐기, 큐잉/예외 없음)

    재접속은 무조건/무기한이다. 지수 백오프, 지터, 최대 시도 횟수 없음.
    disconnect() 만이 재접속 루프를 멈춘다.
    """

    _logger = logger

    def __init__(
        self,
        url: str | None = None,
        dispatcher: PriceMessageDispatcher | None = None,
        identity: IdentityProvider | None = None,
        *,
        reconnect_delay: float | None = None,
        open_timeout: float | None = None,
        ping_interval: float | None = None,
    ) -> None:
        self.url = url or websocket_settings.url
        self.scope = StreamScopeDomain(endpoint=self.url)
        self._dispatcher = dispatcher or PriceMessageDispatcher(self.scope)
        self._identity = identity

        self.reconnect_delay = (
            websocket_settings.reconnect_delay if reconnect_delay is None else reconnect_delay
        )
        self.open_timeout = (
            websocket_settings.open_timeout if open_timeout is None else open_timeout
        )
        interval = websocket_settings.ping_interval if ping_interval is None else ping_interval
        self.ping_interval: float | None = interval if interval > 0 else None

        # 연결 상태 (소켓 핸들은 이 클래스만 조작)
        self._status = ConnectionStatus.CLOSED
        self._websocket: Any = None
        self._session_task: asyncio.Task[None] | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._stop_requested = False
        self._connect_attempts = 0

        self._status_listeners: dict[int, StatusListener] = {}
        self._listener_ids = count()

    # ========================================
    # 상태
    # ========================================

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_open(self) -> bool:
        return self._status is ConnectionStatus.OPEN and self._websocket is not None

    @property
    def connect_attempts(self) -> int:
        """소켓 생성 시도 횟수 (세션 누적)"""
        return self._connect_attempts

    @property
    def reconnect_handle(self) -> asyncio.TimerHandle | None:
        """예약된 재접속 타이머 (없으면 None)"""
        return self._reconnect_handle

    @property
    def reconnect_scheduled(self) -> bool:
        handle = self._reconnect_handle
        return handle is not None and not handle.cancelled()

    def add_status_listener(self, listener: StatusListener) -> Callable[[], None]:
        """상태 전이 리스너 등록 (previous, current). 해지 함수를 반환."""
        token = next(self._listener_ids)
        self._status_listeners[token] = listener

        def _remove() -> None:
            self._status_listeners.pop(token, None)

        return _remove

    def _set_status(self, status: ConnectionStatus) -> None:
        previous = self._status
        if previous is status:
            return
        if status not in ALLOWED_STATUS_TRANSITIONS[previous]:
            self._log_warning(
                "Unexpected status transition",
                phase=PHASE_STATUS,
                previous=previous.value,
                current=status.value,
            )
        self._status = status
        self._log_debug(
            "Status changed", phase=PHASE_STATUS, previous=previous.value, current=status.value
        )

        for listener in list(self._status_listeners.values()):
            try:
                listener(previous, status)
            except Exception as e:
                self._log_exception("status listener failed", PHASE_STATUS, e)

    # ========================================
    # 연결 / 종료
    # ========================================

    def connect(self) -> None:
        """소켓 연결 시작 (실행 중인 이벤트 루프 필요).

        connecting/open 상태에서는 중복 소켓 방지를 위해 아무것도 하지 않는다.
        closing 은 disconnect() 진행 중이므로 마찬가지로 무시한다.
        """
        if self._status in (ConnectionStatus.OPEN, ConnectionStatus.CONNECTING):
            self._log_debug("Connect skipped", phase=PHASE_CONNECT, status=self._status.value)
            return
        if self._status is ConnectionStatus.CLOSING:
            self._log_info("Connect ignored while closing", phase=PHASE_CONNECT)
            return

        loop = asyncio.get_running_loop()
        self._stop_requested = False
        self._cancel_reconnect()

        self._set_status(ConnectionStatus.CONNECTING)
        self._connect_attempts += 1
        self._log_info("Connecting", phase=PHASE_CONNECT, attempt=self._connect_attempts)
        self._session_task = loop.create_task(
            self._run_session(), name=f"price-stream-session-{self._connect_attempts}"
        )

    async def disconnect(self) -> None:
        """연결 종료 및 예약된 재접속 취소. 이미 끊긴 상태에서도 안전."""
        self._stop_requested = True
        self._cancel_reconnect()

        websocket = self._websocket
        if websocket is not None:
            self._set_status(ConnectionStatus.CLOSING)
            self._websocket = None
            await self._close_socket(websocket)

        task = self._session_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._session_task = None

        self._set_status(ConnectionStatus.CLOSED)
        self._log_info("Disconnected", phase=PHASE_DISCONNECT)

    async def _run_session(self) -> None:
        """소켓 1회 수명: open → 핸드셰이크 → 수신 루프 → close"""
        websocket: Any = None
        cancelled = False
        try:
            websocket = await websockets.connect(
                self.url,
                open_timeout=self.open_timeout,
                ping_interval=self.ping_interval,
            )
            self._websocket = websocket
            self._set_status(ConnectionStatus.OPEN)
            self._log_info("Connected", phase=PHASE_OPEN)

            await self._send_handshake()

            async for raw in websocket:
                await self._handle_raw_message(raw)

            self._log_info("Socket closed by peer", phase=PHASE_CLOSE)
        except asyncio.CancelledError:
            cancelled = True
            if websocket is not None:
                await self._close_socket(websocket)
            raise
        except SOCKET_EXCEPTIONS as e:
            self._log_warning("Socket error", phase=PHASE_CLOSE, error=str(e))
            # 에러 시 능동적으로 닫아 정상 종료와 같은 경로로 수렴
            if websocket is not None:
                await self._close_socket(websocket)
        except Exception as e:
            # 아무도 await 하지 않는 태스크이므로 여기서 기록하고 재접속 경로로 넘김
            self._log_exception("session failed", PHASE_CLOSE, e)
            if websocket is not None:
                await self._close_socket(websocket)
        finally:
            self._on_session_closed(websocket, cancelled=cancelled)

    def _on_session_closed(self, websocket: Any, *, cancelled: bool) -> None:
        if self._session_task is not None and self._session_task is not asyncio.current_task():
            # 이미 새 세션이 시작됨
            return
        if websocket is not None and self._websocket is websocket:
            self._websocket = None

        self._set_status(ConnectionStatus.CLOSED)

        if self._stop_requested or cancelled:
            self._log_info("Reconnect suppressed", phase=PHASE_RECONNECT, cancelled=cancelled)
            return
        self._schedule_reconnect()

    async def _close_socket(self, websocket: Any) -> None:
        try:
            await websocket.close()
        except SOCKET_EXCEPTIONS as e:
            self._log_warning("Socket close failed", phase=PHASE_CLOSE, error=str(e))

    # ========================================
    # 재접속
    # ========================================

    def _schedule_reconnect(self) -> None:
        """고정 지연 후 재접속 1회 예약 (기존 예약은 교체)"""
        loop = asyncio.get_running_loop()
        self._cancel_reconnect()
        self._reconnect_handle = loop.call_later(self.reconnect_delay, self._on_reconnect_timer)
        self._log_info(
            f"Reconnecting in {self.reconnect_delay:.1f}s",
            phase=PHASE_RECONNECT,
            delay=self.reconnect_delay,
        )

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _on_reconnect_timer(self) -> None:
        self._reconnect_handle = None
        if self._stop_requested:
            return
        self.connect()

    # ========================================
    # 수신 / 전송
    # ========================================

    async def _handle_raw_message(self, raw: str | bytes) -> None:
        try:
            payload = parse_message(raw)
        except DESERIALIZATION_ERRORS as e:
            self._log_warning(
                "Malformed message dropped",
                phase=PHASE_PARSE,
                error=str(e),
                raw_message=repr(raw)[:200],
            )
            return

        if not payload:
            return

        try:
            await self._dispatcher.dispatch(payload)
        except Exception as e:
            # 디스패치/구독자 오류가 수신 루프를 끊지 않도록 격리
            self._log_exception(
                "dispatch failed", PHASE_DISPATCH, e, message_type=payload.get("type")
            )

    async def _send_handshake(self) -> None:
        """캐시된 식별자가 있으면 connect 메시지 전송 (best-effort)"""
        if self._identity is None:
            return
        try:
            user_id = self._identity.get_user_id()
            if user_id is None:
                self._log_debug("No cached identity, handshake skipped", phase=PHASE_HANDSHAKE)
                return
            handshake = ConnectHandshakeDTO(user_id=user_id)
        except Exception as e:
            self._log_warning("Identity lookup failed", phase=PHASE_HANDSHAKE, error=str(e))
            return

        if await self.send(handshake):
            self._log_info("Handshake sent", phase=PHASE_HANDSHAKE, user_id=str(user_id))

    async def send(self, message: dict[str, Any] | BaseOutboundDTO) -> bool:
        """open 상태에서만 직렬화 후 전송. 실패 시 로깅하고 False (예외 없음)."""
        websocket = self._websocket
        if self._status is not ConnectionStatus.OPEN or websocket is None:
            self._log_warning(
                "Send dropped, socket not open", phase=PHASE_SEND, status=self._status.value
            )
            return False

        try:
            payload = message.to_wire() if isinstance(message, BaseOutboundDTO) else message
            text = to_text(payload)
        except DESERIALIZATION_ERRORS as e:
            self._log_warning("Send dropped, unserializable message", phase=PHASE_SEND, error=str(e))
            return False

        try:
            await websocket.send(text)
        except SOCKET_EXCEPTIONS as e:
            self._log_warning("Send failed", phase=PHASE_SEND, error=str(e))
            return False
        return True
