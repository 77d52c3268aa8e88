from __future__ import annotations

import logging
from pathlib import Path

from src.common.logger import StructuredFormatter
from src.core.connection.dispatcher import PriceMessageDispatcher
from src.core.connection.manager import PriceStreamConnectionManager
from src.core.connection.utils.logging.pydantic_filter import PydanticFilter
from tests.factory_builders import build_scope_domain


def test_connection_modules_do_not_use_inline_phase_literals() -> None:
    root = Path(__file__).resolve().parents[1]
    targets = [
        root / "src" / "core" / "connection" / "manager.py",
        root / "src" / "core" / "connection" / "dispatcher.py",
        root / "src" / "core" / "store" / "price_store.py",
    ]

    violations: list[str] = []
    for path in targets:
        content = path.read_text(encoding="utf-8")
        if 'phase="' in content or "phase='" in content or '"phase": "' in content:
            violations.append(str(path))

    assert not violations, f"Inline phase literals found in: {violations}"


def test_log_phase_constants_are_unique() -> None:
    import src.core.connection.utils.logging.log_phases as log_phases

    phase_values = [
        value
        for name, value in vars(log_phases).items()
        if name.startswith("PHASE_") and isinstance(value, str)
    ]
    assert len(phase_values) == len(set(phase_values))


def test_dispatcher_scope_log_extra_has_standard_keys() -> None:
    dispatcher = PriceMessageDispatcher(build_scope_domain())

    payload = dispatcher._scope_log_extra("dispatch", message_type="price_update")

    assert payload["endpoint"] == "ws://localhost:5000/ws"
    assert payload["channel"] == "price_updates"
    assert payload["phase"] == "dispatch"
    assert payload["message_type"] == "price_update"


def test_manager_scope_log_extra_drops_none_values() -> None:
    manager = PriceStreamConnectionManager("ws://example.test/ws", reconnect_delay=1.0)

    payload = manager._scope_log_extra("send", status=None, attempt=2)

    assert payload["endpoint"] == "ws://example.test/ws"
    assert "status" not in payload
    assert payload["attempt"] == 2


def test_pydantic_filter_removes_none() -> None:
    assert PydanticFilter.filter_dict({"a": 1, "b": None}) == {"a": 1}


def test_structured_formatter_appends_extra_fields_as_json() -> None:
    formatter = StructuredFormatter("[%(component)s] %(message)s")
    record = logging.makeLogRecord(
        {"msg": "Connected", "component": "connection", "endpoint": "ws://x", "phase": "open"}
    )

    line = formatter.format(record)

    assert line == '[connection] Connected | {"endpoint":"ws://x","phase":"open"}'


def test_structured_formatter_without_extra_keeps_plain_line() -> None:
    formatter = StructuredFormatter("[%(component)s] %(message)s")
    record = logging.makeLogRecord({"msg": "Disconnected", "component": "connection"})

    assert formatter.format(record) == "[connection] Disconnected"
