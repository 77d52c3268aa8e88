from typing import Iterator

from src.core.store.price_store import PriceStore, create_price_store
from src.infra.cache.cache_client import RedisConnectionManager


def init_price_store() -> Iterator[PriceStore]:
    """가격 스토어 초기화 및 정리

    설정된 스냅샷 백엔드로 스토어를 만들고 전역 인스턴스로 등록합니다.
    종료 시 마지막 스냅샷을 기록하고 Redis 연결(사용했다면)을 닫습니다.
    """
    store = create_price_store()
    try:
        yield store
    finally:
        store.persist()
        RedisConnectionManager.get_instance().close()
