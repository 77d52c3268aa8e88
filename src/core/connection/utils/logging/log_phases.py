"""연결/스토어 로그 phase 상수 (인라인 문자열 금지)"""

from __future__ import annotations

from typing import Final

PHASE_CONNECT: Final[str] = "connect"
PHASE_OPEN: Final[str] = "open"
PHASE_HANDSHAKE: Final[str] = "handshake"
PHASE_PARSE: Final[str] = "parse"
PHASE_DISPATCH: Final[str] = "dispatch"
PHASE_SEND: Final[str] = "send"
PHASE_CLOSE: Final[str] = "close"
PHASE_RECONNECT: Final[str] = "reconnect"
PHASE_DISCONNECT: Final[str] = "disconnect"
PHASE_STATUS: Final[str] = "status"
PHASE_INGEST: Final[str] = "ingest"
PHASE_NOTIFY: Final[str] = "notify"
PHASE_PERSIST: Final[str] = "persist"
PHASE_REHYDRATE: Final[str] = "rehydrate"
