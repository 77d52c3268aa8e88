from __future__ import annotations

import asyncio
import logging
import queue
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any

from src.common.serde import to_text
from src.config.settings import logging_settings

# LogRecord 기본 속성 (extra 로 들어온 키만 골라내기 위함)
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """기본 포맷 뒤에 extra 필드를 JSON 한 덩어리로 덧붙이는 포맷터

    2024-05-01 09:30:00 INFO price_stream.connection [connection] Connected | {"endpoint": "...", "phase": "open"}
    """

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key != "component"
        }
        if not fields:
            return base
        return f"{base} | {to_text(fields)}"


class PipelineLogger:
    """
    가격 스트림 클라이언트용 로깅 시스템
    큐 기반 비동기 출력, 컴포넌트별 로거, 구조화 extra 출력 기능 제공
    """

    @classmethod
    def get_logger(cls, name: str, component: str | None = None, **kwargs) -> PipelineLogger:
        """
        로거 인스턴스를 반환하는 팩토리 메서드.
        표준 logging.getLogger가 이름 단위 싱글톤이므로 별도 레지스트리는 두지 않습니다.
        """
        return cls(name, component, **kwargs)

    def __init__(
        self,
        name: str,
        component: str | None = None,
        level: int | str | None = None,
        log_to_file: bool | None = None,
        log_to_console: bool = True,
        log_dir: str | None = None,
        rotation: str = "midnight",
    ):
        """
        Args:
            name: 로거 이름
            component: 컴포넌트 이름 (connection, store, storage ...)
            level: 로깅 레벨 (기본: LOG_LEVEL)
            log_to_file: 파일 로깅 여부 (기본: LOG_TO_FILE)
            log_to_console: 콘솔 로깅 여부
            log_dir: 로그 디렉토리 (기본: LOG_DIR)
            rotation: 로그 로테이션 주기
        """
        self.name = name
        self.component = component
        self.level = level or logging_settings.level
        self.log_to_file = logging_settings.to_file if log_to_file is None else log_to_file
        self.log_to_console = log_to_console
        self.log_dir = log_dir or logging_settings.dir
        self.rotation = rotation

        # 무제한 버퍼 (queue.Full 방지)
        self.log_queue: queue.Queue = queue.Queue()
        self.context: dict[str, Any] = {}

        self.logger_name = f"{self.name}.{self.component}" if self.component else self.name
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(self.level)
        self.logger.propagate = False
        if self.logger.hasHandlers():
            self.logger.handlers.clear()

        self.logger.addHandler(QueueHandler(self.log_queue))
        self.listener = QueueListener(
            self.log_queue, *self._build_handlers(), respect_handler_level=True
        )
        self.listener.start()

    def _build_handlers(self) -> list[logging.Handler]:
        formatter = StructuredFormatter(
            "%(asctime)s %(levelname)s %(name)s [%(component)s] %(message)s"
        )
        handlers: list[logging.Handler] = []

        if self.log_to_console:
            handlers.append(logging.StreamHandler(sys.stdout))

        if self.log_to_file:
            today = datetime.now().strftime("%Y-%m-%d")
            component_part = f"{self.component}/" if self.component else ""
            log_file = Path(self.log_dir) / f"{component_part}{self.name}_{today}.log"
            # 디렉터리만 생성하고 파일 생성은 핸들러에 위임
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                TimedRotatingFileHandler(filename=log_file, when=self.rotation, backupCount=7)
            )

        for handler in handlers:
            handler.setFormatter(formatter)
        return handlers

    def set_context(self, **kwargs) -> None:
        """이후 모든 레코드에 병합될 컨텍스트 (environment 등)"""
        self.context.update(kwargs)

    def clear_context(self) -> None:
        self.context.clear()

    def _write(self, level: int, msg: str, extra: dict[str, Any] | None = None) -> None:
        """
        kwargs 를 logging 파라미터(exc_info, stack_info)와 extra 로 분리해 기록
        """
        options = dict(extra or {})
        exc_info = options.pop("exc_info", None)
        stack_info = bool(options.pop("stack_info", False))

        log_extra: dict[str, Any] = {"component": self.component or "main", **self.context}
        nested = options.pop("extra", None)
        if isinstance(nested, dict):
            log_extra.update(nested)
        log_extra.update(options)

        self.logger.log(level, msg, exc_info=exc_info, stack_info=stack_info, extra=log_extra)

    async def alog(self, level: int, msg: str, **kwargs) -> None:
        """
        비동기 로그 기록
        - 실행 중인 이벤트 루프가 있으면 스레드 풀로 위임
        - 루프가 없으면 동기 처리
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write(level, msg, kwargs)
            return
        await loop.run_in_executor(None, self._write, level, msg, kwargs)

    def debug(self, msg: str, **kwargs) -> None:
        self._write(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs) -> None:
        self._write(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs) -> None:
        self._write(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs) -> None:
        self._write(logging.ERROR, msg, kwargs)

    async def ainfo(self, msg: str, **kwargs) -> None:
        await self.alog(logging.INFO, msg, **kwargs)

    async def aerror(self, msg: str, **kwargs) -> None:
        await self.alog(logging.ERROR, msg, **kwargs)

    def close(self) -> None:
        """큐 리스너 정지 (남은 레코드 flush)"""
        self.listener.stop()
