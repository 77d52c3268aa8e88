from __future__ import annotations

import redis

from src.common.logger import PipelineLogger
from src.config.settings import redis_settings

logger = PipelineLogger.get_logger("redis", "cache_client")


class RedisConnectionManager:
    """프로세스 단위 Redis 클라이언트 보관소.

    스냅샷 쓰기는 스토어 락 안에서 동기로 일어나므로 `redis.Redis` 를 씁니다.
    `initialize()` 는 여러 번 불려도 한 번만 연결합니다.
    """

    _instance: RedisConnectionManager | None = None

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None

    @classmethod
    def get_instance(cls) -> RedisConnectionManager:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def is_initialized(self) -> bool:
        return self._redis is not None

    def initialize(self, redis_url: str | None = None) -> None:
        if self.is_initialized:
            return

        target = f"{redis_settings.host}:{redis_settings.port}/{redis_settings.db}"
        logger.info("Redis 연결 시도", extra={"target": target})
        client = redis.from_url(
            url=redis_url or redis_settings.url,
            socket_timeout=redis_settings.connection_timeout,
        )
        # 연결 실패는 호출자(build_snapshot_storage)까지 전파
        client.ping()
        self._redis = client
        logger.info("Redis 연결 성공", extra={"target": target})

    @property
    def client(self) -> redis.Redis:
        if self._redis is None:
            raise RuntimeError("Redis 가 초기화되지 않았습니다 (initialize() 먼저 호출)")
        return self._redis

    def close(self) -> None:
        if self._redis is None:
            return
        self._redis.close()
        self._redis = None
        logger.info("Redis 연결 종료")
