from __future__ import annotations

from typing import Any

from src.common.logger import PipelineLogger
from src.core.connection.utils.logging.pydantic_filter import PydanticFilter
from src.core.dto.internal.common import StreamScopeDomain


class ScopedConnectionLoggingMixin:
    """endpoint / channel / phase 를 모든 레코드에 붙여주는 로깅 헬퍼.

    사용하는 클래스는 `_logger` 와 `scope` 를 가지고 있어야 합니다.
    """

    _logger: PipelineLogger
    scope: StreamScopeDomain

    def _scope_log_extra(self, phase: str, **extra: Any) -> dict[str, Any]:
        return PydanticFilter.filter_dict(
            {"endpoint": self.scope.endpoint, "channel": self.scope.channel, "phase": phase, **extra}
        )

    def _log_debug(self, message: str, phase: str, **extra: Any) -> None:
        self._logger.debug(message, extra=self._scope_log_extra(phase, **extra))

    def _log_info(self, message: str, phase: str, **extra: Any) -> None:
        self._logger.info(message, extra=self._scope_log_extra(phase, **extra))

    def _log_warning(self, message: str, phase: str, **extra: Any) -> None:
        self._logger.warning(message, extra=self._scope_log_extra(phase, **extra))

    def _log_exception(self, message: str, phase: str, exc: BaseException, **extra: Any) -> None:
        """격리된 예외 기록 (traceback 포함, 흐름은 계속 진행)"""
        self._logger.error(
            f"{message}: {exc}", exc_info=exc, extra=self._scope_log_extra(phase, **extra)
        )
