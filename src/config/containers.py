"""
Dependency Injection Containers

이 모듈은 가격 스트림 클라이언트의 의존성을 관리하는 DI 컨테이너를 정의합니다.

아키텍처:
- InfrastructureContainer: 가격 스토어(스냅샷 저장소 포함), 식별자 캐시 + Settings 주입
- ApplicationContainer: 최상위 컨테이너 (디스패처, 연결 관리자)

주요 패턴:
- Resource Provider: 스토어 생성/종료 시 영속화 자동 관리
- Object Provider: settings.py 싱글톤 주입 (DI)
- Singleton: 프로세스당 연결 1개, 스토어 1개

Settings 주입:
    container.websocket_config().url           # → websocket_settings.url
    container.infra.price_store_config()       # → price_store_settings 인스턴스
"""

from dependency_injector import containers, providers

from src.config.init_infra import init_price_store
from src.config.settings import (
    identity_settings,
    price_store_settings,
    websocket_settings,
)
from src.core.connection.dispatcher import PriceMessageDispatcher
from src.core.connection.manager import PriceStreamConnectionManager
from src.core.dto.internal.common import StreamScopeDomain
from src.infra.identity.identity_cache import FileIdentityCache


# ========================================
# 1. Infrastructure Container (인프라 레이어)
# ========================================
class InfrastructureContainer(containers.DeclarativeContainer):
    """인프라 컨테이너

    - 가격 스토어 (file | memory | redis 스냅샷 백엔드)
    - 캐시된 사용자 식별자
    - Settings: settings.py 싱글톤 주입 (DI)
    """

    # ===== Settings 주입 (DI) =====
    price_store_config = providers.Object(price_store_settings)
    identity_config = providers.Object(identity_settings)

    price_store = providers.Resource(init_price_store)

    identity = providers.Singleton(
        FileIdentityCache,
        path=identity_config.provided.cache_path,
    )


# ========================================
# 2. Application Container (최상위)
# ========================================
class ApplicationContainer(containers.DeclarativeContainer):
    """애플리케이션 최상위 컨테이너

    Features:
    - 인프라 컨테이너 통합
    - 디스패처 → 스토어, 연결 관리자 → 디스패처/식별자 자동 주입
    """

    websocket_config = providers.Object(websocket_settings)

    # ===== 하위 컨테이너 포함 =====
    infra = providers.Container(InfrastructureContainer)

    # ===== Core Components =====
    scope = providers.Singleton(
        StreamScopeDomain,
        endpoint=websocket_config.provided.url,
    )

    dispatcher = providers.Singleton(
        PriceMessageDispatcher,
        scope=scope,
        store=infra.price_store,
    )

    connection_manager = providers.Singleton(
        PriceStreamConnectionManager,
        url=websocket_config.provided.url,
        dispatcher=dispatcher,
        identity=infra.identity,
        reconnect_delay=websocket_config.provided.reconnect_delay,
        open_timeout=websocket_config.provided.open_timeout,
        ping_interval=websocket_config.provided.ping_interval,
    )
