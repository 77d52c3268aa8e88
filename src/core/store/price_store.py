"""가격 업데이트 스토어

세션 동안 관측된 모든 가격의 단일 진실 공급원입니다.

구조:
- history[commodity][circle]: 삽입 순서 deque (키당 최대 100, 앞쪽부터 제거)
- current[commodity][circle]: 키별 마지막 적재 관측치
- recent: 전체 키 통합 최신순 피드 (최대 50, 뒤쪽부터 제거)

영속화: current 와 recent 앞 10개만 스냅샷으로 저장합니다. history 는 매 세션 비어서 시작합니다.
적재는 메모리만 갱신하고 dirty 표시만 남깁니다. 실제 저장소 쓰기는 이벤트 루프의
기본 executor 에서 한 번에 모아 처리하고, 종료 시 persist() 로 마지막 스냅샷을 기록합니다.
"""

from __future__ import annotations

import asyncio
import threading
from collections import deque
from itertools import count, islice
from typing import Any, Callable, ClassVar, TypeAlias

from src.common.exceptions.base import PriceStreamException
from src.common.exceptions.exception_rule import DESERIALIZATION_ERRORS, STORAGE_EXCEPTIONS
from src.common.logger import PipelineLogger
from src.common.serde import from_bytes, to_bytes
from src.config.settings import price_store_settings
from src.core.connection.utils.logging.log_phases import (
    PHASE_INGEST,
    PHASE_NOTIFY,
    PHASE_PERSIST,
    PHASE_REHYDRATE,
)
from src.core.connection.utils.timestamp import timestamp_sort_key
from src.core.dto.internal.price import PriceObservationDomain
from src.core.dto.io.messages import PriceObservationDTO, PriceSnapshotDTO
from src.core.types import DEFAULT_STORAGE_KEY
from src.infra.storage.snapshot_storage import (
    InMemorySnapshotStorage,
    SnapshotStorage,
    build_snapshot_storage,
)

logger = PipelineLogger.get_logger("price_store", "store")

PriceSubscriber: TypeAlias = Callable[["PriceStore"], None]
Unsubscribe: TypeAlias = Callable[[], None]

DEFAULT_HISTORY_LIMIT = 100
DEFAULT_RECENT_LIMIT = 50
DEFAULT_PERSISTED_RECENT_LIMIT = 10
DEFAULT_HISTORY_READ_LIMIT = 10


def _storage_error_extra(error: Exception, phase: str, storage_key: str) -> dict[str, Any]:
    """저장소 예외 → 로그 extra (PriceStreamException 은 to_dict 스키마 사용)"""
    if isinstance(error, PriceStreamException):
        details = error.to_dict()
    else:
        details = {"error": str(error), "error_type": type(error).__name__}
    return {**details, "phase": phase, "storage_key": storage_key}


class PriceStore:
    """(commodity, circle) 로 정규화된 가격 캐시.

    쓰기 경로는 add_price_update 하나뿐이며, 히스토리/현재가/최근 피드 갱신과
    구독자 알림이 하나의 RLock 안에서 실행됩니다. 읽기 접근자도 같은 락을 잡으므로
    외부에서 current 만 갱신되고 history/recent 가 뒤처진 상태를 관찰할 수 없습니다.
    저장소 I/O 는 이 락 밖에서 일어납니다.
    """

    _instance: ClassVar[PriceStore | None] = None

    def __init__(
        self,
        storage: SnapshotStorage | None = None,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        recent_limit: int = DEFAULT_RECENT_LIMIT,
        persisted_recent_limit: int = DEFAULT_PERSISTED_RECENT_LIMIT,
    ) -> None:
        if history_limit <= 0 or recent_limit <= 0:
            raise ValueError("history_limit and recent_limit must be positive")

        self.storage_key = storage_key
        self.history_limit = history_limit
        self.recent_limit = recent_limit
        self.persisted_recent_limit = max(0, min(persisted_recent_limit, recent_limit))

        self._storage = storage
        self._lock = threading.RLock()
        # 저장소 쓰기 직렬화 (획득 순서: _write_lock → _lock)
        self._write_lock = threading.Lock()
        self._dirty = False
        self._flush_future: asyncio.Future[None] | None = None

        self._history: dict[int, dict[int, deque[PriceObservationDomain]]] = {}
        self._current: dict[int, dict[int, PriceObservationDomain]] = {}
        self._recent: deque[PriceObservationDomain] = deque(maxlen=recent_limit)

        # 등록 순서 유지 (dict 삽입 순서)
        self._subscribers: dict[int, PriceSubscriber] = {}
        self._subscriber_ids = count()

        self._rehydrate()

    # ========================================
    # 싱글톤 관리
    # ========================================

    @classmethod
    def get_instance(cls) -> PriceStore:
        """프로세스 전역 스토어 (없으면 설정 기반으로 생성)"""
        if cls._instance is None:
            cls._instance = create_price_store()
        return cls._instance

    @classmethod
    def reset_instance(cls, store: PriceStore | None = None) -> PriceStore | None:
        """전역 스토어 교체/초기화 (테스트마다 새 스토어 주입용)"""
        cls._instance = store
        return store

    # ========================================
    # 구독
    # ========================================

    def subscribe(self, callback: PriceSubscriber) -> Unsubscribe:
        """적재 성공 후마다 호출될 콜백 등록.

        Returns:
            해지 함수. 반환 즉시 이후 호출이 중단되며, 여러 번 호출해도 안전합니다.
        """
        with self._lock:
            token = next(self._subscriber_ids)
            self._subscribers[token] = callback

        def _unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _notify(self) -> None:
        for token, callback in list(self._subscribers.items()):
            # 같은 라운드의 앞선 콜백이 해지했을 수 있음
            if token not in self._subscribers:
                continue
            try:
                callback(self)
            except Exception as e:
                logger.error(
                    f"price subscriber failed: {e}",
                    exc_info=True,
                    extra={"phase": PHASE_NOTIFY, "subscriber": getattr(callback, "__name__", repr(callback))},
                )

    # ========================================
    # 쓰기
    # ========================================

    def add_price_update(self, observation: PriceObservationDomain) -> None:
        """유일한 변경 진입점.

        1. commodity → circle 중첩 구조 보장 (처음 보는 키도 에러 없음)
        2. 히스토리에 추가, 상한 초과분은 앞에서 제거
        3. 현재가 덮어쓰기
        4. 최근 피드 앞에 추가, 상한 초과분은 뒤에서 제거
        5. 스냅샷 dirty 표시 (저장소 쓰기는 executor 로 미룸)
        6. 구독자에게 등록 순서대로 동기 알림
        """
        commodity_id, circle_id = observation.key
        with self._lock:
            circles = self._history.setdefault(commodity_id, {})
            history = circles.get(circle_id)
            if history is None:
                history = circles[circle_id] = deque(maxlen=self.history_limit)
            history.append(observation)

            self._current.setdefault(commodity_id, {})[circle_id] = observation
            self._recent.appendleft(observation)

            logger.debug(
                "price update ingested",
                extra={
                    "phase": PHASE_INGEST,
                    "commodity_id": commodity_id,
                    "circle_id": circle_id,
                    "history_size": len(history),
                },
            )

            self._dirty = True
            self._schedule_flush()
            self._notify()

    def clear(self) -> None:
        """전체 상태와 영속 스냅샷 삭제 (로그아웃 등)"""
        with self._write_lock:
            with self._lock:
                self._history.clear()
                self._current.clear()
                self._recent.clear()
                self._dirty = False
            if self._storage is not None:
                try:
                    self._storage.remove_item(self.storage_key)
                except STORAGE_EXCEPTIONS as e:
                    logger.warning(
                        f"snapshot remove failed: {e}",
                        extra=_storage_error_extra(e, PHASE_PERSIST, self.storage_key),
                    )
        with self._lock:
            self._notify()

    # ========================================
    # 읽기
    # ========================================

    def get_current_price(
        self, commodity_id: int, circle_id: int | None = None
    ) -> PriceObservationDomain | None:
        """현재가 조회.

        circle_id 를 생략하면 해당 commodity 에서 가장 먼저 관측된 circle 의 현재가를 돌려준다.
        삽입 순서에 의존하는 값이며 "최적가" 같은 선택 규칙이 아니다.
        """
        with self._lock:
            circles = self._current.get(commodity_id)
            if not circles:
                return None
            if circle_id is None:
                return next(iter(circles.values()))
            return circles.get(circle_id)

    def get_price_history(
        self, commodity_id: int, circle_id: int, limit: int = DEFAULT_HISTORY_READ_LIMIT
    ) -> list[PriceObservationDomain]:
        """최근 limit 개 (삽입 기준) 를 timestamp 내림차순으로 반환.

        관측치가 시간 역순으로 도착할 수 있으므로 읽을 때마다 다시 정렬한다.
        timestamp 가 같으면 나중에 적재된 것이 앞에 온다.
        """
        if limit <= 0:
            return []
        with self._lock:
            history = self._history.get(commodity_id, {}).get(circle_id)
            if not history:
                return []
            start = max(0, len(history) - limit)
            latest = list(islice(history, start, None))
        latest.reverse()
        return sorted(latest, key=lambda item: timestamp_sort_key(item.timestamp), reverse=True)

    def get_recent_updates(
        self,
        limit: int | None = None,
        *,
        commodity_id: int | None = None,
        circle_id: int | None = None,
    ) -> list[PriceObservationDomain]:
        """전역 최근 피드 (최신 적재순), commodity/circle 필터 후 limit 적용"""
        with self._lock:
            updates = list(self._recent)
        if commodity_id is not None:
            updates = [item for item in updates if item.commodity_id == commodity_id]
        if circle_id is not None:
            updates = [item for item in updates if item.circle_id == circle_id]
        if limit is not None:
            updates = updates[: max(0, limit)]
        return updates

    @property
    def current_prices(self) -> dict[int, dict[int, PriceObservationDomain]]:
        """현재가 맵 사본"""
        with self._lock:
            return {commodity: dict(circles) for commodity, circles in self._current.items()}

    @property
    def recent_updates(self) -> list[PriceObservationDomain]:
        with self._lock:
            return list(self._recent)

    def history_size(self, commodity_id: int, circle_id: int) -> int:
        with self._lock:
            return len(self._history.get(commodity_id, {}).get(circle_id, ()))

    # ========================================
    # 영속화
    # ========================================

    def snapshot(self) -> PriceSnapshotDTO:
        """영속 대상 부분 상태 (current + recent 앞 N개)"""
        with self._lock:
            return PriceSnapshotDTO(
                current_prices={
                    commodity: {
                        circle: PriceObservationDTO.from_domain(observation)
                        for circle, observation in circles.items()
                    }
                    for commodity, circles in self._current.items()
                },
                recent_updates=[
                    PriceObservationDTO.from_domain(observation)
                    for observation in islice(self._recent, self.persisted_recent_limit)
                ],
            )

    @property
    def has_pending_snapshot(self) -> bool:
        """메모리 상태가 마지막 기록 이후 바뀌었는지"""
        return self._dirty

    def persist(self) -> bool:
        """스냅샷을 저장소에 기록 (호출 스레드에서 블로킹). 실패는 로깅만 하고 False 반환."""
        if self._storage is None:
            return False
        with self._write_lock:
            with self._lock:
                blob = to_bytes(self.snapshot().model_dump(mode="json", by_alias=True))
                self._dirty = False
            try:
                self._storage.set_item(self.storage_key, blob)
            except STORAGE_EXCEPTIONS as e:
                with self._lock:
                    self._dirty = True
                logger.warning(
                    f"snapshot persist failed: {e}",
                    extra=_storage_error_extra(e, PHASE_PERSIST, self.storage_key),
                )
                return False
        return True

    def flush(self) -> bool:
        """dirty 일 때만 persist (루프 밖 호출자/테스트용)"""
        if not self._dirty:
            return True
        return self.persist()

    async def wait_for_flush(self) -> None:
        """진행 중인 백그라운드 기록이 끝날 때까지 대기"""
        while (future := self._flush_future) is not None:
            await asyncio.wait({future})

    def _schedule_flush(self) -> None:
        """executor 기록 예약. 이미 예약돼 있으면 그 작업이 최신 상태까지 이어서 기록한다.

        실행 중인 루프가 없으면 dirty 로만 남기고 flush()/persist() 에 맡긴다.
        """
        if self._storage is None or self._flush_future is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        # _lock 보유 중에 등록하므로 워커가 먼저 끝나 None 으로 되돌릴 수 없음
        self._flush_future = loop.run_in_executor(None, self._drain_pending)
        self._flush_future.add_done_callback(self._on_flush_done)

    def _drain_pending(self) -> None:
        while True:
            with self._lock:
                if not self._dirty:
                    self._flush_future = None
                    return
            if not self.persist():
                # 다음 적재가 다시 예약
                with self._lock:
                    self._flush_future = None
                return

    def _on_flush_done(self, future: asyncio.Future[None]) -> None:
        if future.cancelled() or future.exception() is not None:
            with self._lock:
                if self._flush_future is future:
                    self._flush_future = None
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(
                f"background snapshot flush failed: {error}",
                exc_info=error,
                extra={"phase": PHASE_PERSIST, "storage_key": self.storage_key},
            )

    def _rehydrate(self) -> None:
        """저장된 스냅샷 복원. 없거나 손상되었으면 빈 상태로 시작."""
        if self._storage is None:
            return
        try:
            raw = self._storage.get_item(self.storage_key)
        except STORAGE_EXCEPTIONS as e:
            logger.warning(
                f"snapshot load failed, starting empty: {e}",
                extra=_storage_error_extra(e, PHASE_REHYDRATE, self.storage_key),
            )
            return

        if raw is None:
            logger.info(
                "no persisted snapshot, starting empty",
                extra={"phase": PHASE_REHYDRATE, "storage_key": self.storage_key},
            )
            return

        try:
            snapshot = PriceSnapshotDTO.model_validate(from_bytes(raw))
            current = {
                commodity: {circle: dto.to_domain() for circle, dto in circles.items()}
                for commodity, circles in snapshot.current_prices.items()
            }
            recent = [dto.to_domain() for dto in snapshot.recent_updates]
        except DESERIALIZATION_ERRORS as e:
            logger.warning(
                f"persisted snapshot unreadable, starting empty: {e}",
                extra={"phase": PHASE_REHYDRATE, "storage_key": self.storage_key},
            )
            return

        self._current = current
        self._recent.extend(recent)
        logger.info(
            "snapshot rehydrated",
            extra={
                "phase": PHASE_REHYDRATE,
                "commodities": len(current),
                "recent": len(self._recent),
            },
        )


def create_price_store(storage: SnapshotStorage | None = None) -> PriceStore:
    """설정 기반 스토어 생성 후 프로세스 전역 인스턴스로 등록"""
    if storage is None:
        try:
            storage = build_snapshot_storage(
                price_store_settings.storage_backend,
                snapshot_dir=price_store_settings.snapshot_dir,
            )
        except STORAGE_EXCEPTIONS as e:
            logger.warning(
                f"snapshot backend unavailable, falling back to memory: {e}",
                extra={"phase": PHASE_REHYDRATE, "backend": price_store_settings.storage_backend},
            )
            storage = InMemorySnapshotStorage()

    store = PriceStore(
        storage,
        storage_key=price_store_settings.storage_key,
        history_limit=price_store_settings.history_limit,
        recent_limit=price_store_settings.recent_limit,
        persisted_recent_limit=price_store_settings.persisted_recent_limit,
    )
    PriceStore.reset_instance(store)
    return store
