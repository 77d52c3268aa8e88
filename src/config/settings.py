"""가격 스트림 클라이언트 설정 (pydantic-settings)

값 결정 순서:
    환경변수 (WS_URL=... 등) > config/.env > 아래 클래스 기본값

설정 그룹마다 환경변수 접두사가 다릅니다:
    APP_, LOG_, WS_, PRICE_STORE_, REDIS_, IDENTITY_

예:
    WS_URL=wss://mandi.example.com/ws PRICE_STORE_STORAGE_BACKEND=redis python main.py
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.types import DEFAULT_RECONNECT_DELAY, DEFAULT_STORAGE_KEY

# 설정 파일 경로
config_dir = Path(__file__).parent.parent / "config"


def env_settings(prefix: str) -> SettingsConfigDict:
    """환경변수 + .env 통합 설정

    Args:
        prefix: 환경변수 접두사 (예: WS_, REDIS_)

    Returns:
        Pydantic 설정 딕셔너리
    """
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=config_dir / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppSettings(BaseSettings):
    """애플리케이션 일반 설정

    환경변수 오버라이드:
        APP_ENVIRONMENT: 실행 환경 (dev, prod, test) (기본: dev)
        APP_DEBUG: 디버그 모드 (기본: false)
    """

    environment: str = "dev"
    debug: bool = False

    model_config = env_settings("APP_")


class LoggingSettings(BaseSettings):
    """로깅 설정

    환경변수 오버라이드:
        LOG_LEVEL: 기본 로깅 레벨 (기본: INFO)
        LOG_TO_FILE: 파일 로깅 여부 (기본: true)
        LOG_DIR: 로그 디렉토리 (기본: logs)
    """

    level: str = "INFO"
    to_file: bool = True
    dir: str = "logs"

    model_config = env_settings("LOG_")


class WebsocketSettings(BaseSettings):
    """WebSocket 설정 (모든 타이밍 설정은 초 단위)

    환경변수 오버라이드:
        WS_URL: 가격 업데이트 서버 엔드포인트 (기본: ws://localhost:5000/ws)
        WS_RECONNECT_DELAY: 연결 종료 후 재접속 대기 시간 (기본: 5초, 고정)
        WS_OPEN_TIMEOUT: 핸드셰이크 타임아웃 (기본: 10초)
        WS_PING_INTERVAL: 프레임 ping 간격, 0이면 비활성화 (기본: 20초)
    """

    url: str = "ws://localhost:5000/ws"
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    open_timeout: float = 10.0
    ping_interval: float = 20.0

    model_config = env_settings("WS_")


class PriceStoreSettings(BaseSettings):
    """가격 스토어 설정

    환경변수 오버라이드:
        PRICE_STORE_HISTORY_LIMIT: (commodity, circle) 별 히스토리 상한 (기본: 100)
        PRICE_STORE_RECENT_LIMIT: 전역 최근 피드 상한 (기본: 50)
        PRICE_STORE_PERSISTED_RECENT_LIMIT: 스냅샷에 저장되는 최근 피드 수 (기본: 10)
        PRICE_STORE_STORAGE_KEY: 스냅샷 저장 키 (기본: price-updates-storage)
        PRICE_STORE_STORAGE_BACKEND: file | memory | redis (기본: file)
        PRICE_STORE_SNAPSHOT_DIR: file 백엔드 저장 디렉토리 (기본: .cache)
    """

    history_limit: int = 100
    recent_limit: int = 50
    persisted_recent_limit: int = 10
    storage_key: str = DEFAULT_STORAGE_KEY
    storage_backend: Literal["file", "memory", "redis"] = "file"
    snapshot_dir: str = ".cache"

    model_config = env_settings("PRICE_STORE_")


class RedisSettings(BaseSettings):
    """스냅샷 Redis 백엔드 접속 정보

    PRICE_STORE_STORAGE_BACKEND=redis 일 때만 읽힙니다.
    REDIS_HOST / REDIS_PORT / REDIS_DB / REDIS_PASSWORD / REDIS_SSL /
    REDIS_CONNECTION_TIMEOUT (초)
    """

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str | None = None
    ssl: bool = False
    connection_timeout: int = 10

    model_config = env_settings("REDIS_")

    @property
    def url(self) -> str:
        """Redis URL 생성 (redis:// 또는 rediss://)"""
        protocol = "rediss" if self.ssl else "redis"
        auth = f":{self.password}@" if self.password else ""
        return f"{protocol}://{auth}{self.host}:{self.port}/{self.db}"


class IdentitySettings(BaseSettings):
    """캐시된 사용자 식별자 설정 (connect 핸드셰이크용)

    환경변수 오버라이드:
        IDENTITY_CACHE_PATH: 사용자 캐시 JSON 파일 경로 (기본: .cache/user.json)
    """

    cache_path: str = ".cache/user.json"

    model_config = env_settings("IDENTITY_")


# ========================================
# 설정 인스턴스 (싱글톤)
# ========================================

app_settings = AppSettings()
logging_settings = LoggingSettings()
websocket_settings = WebsocketSettings()
price_store_settings = PriceStoreSettings()
redis_settings = RedisSettings()
identity_settings = IdentitySettings()
