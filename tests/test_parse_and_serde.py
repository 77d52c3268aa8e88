from __future__ import annotations

import orjson
import pytest

from src.common.serde import to_bytes, to_text
from src.core.connection.utils.parse import message_type_of, parse_message
from src.core.connection.utils.timestamp import (
    parse_iso_timestamp,
    timestamp_sort_key,
    utc_now_iso,
)
from src.core.dto.io.messages import ConnectHandshakeDTO


def test_parse_message_accepts_text_bytes_and_dict() -> None:
    assert parse_message('{"type": "price_update"}') == {"type": "price_update"}
    assert parse_message(b'{"type": "notification"}') == {"type": "notification"}
    assert parse_message({"type": "x"}) == {"type": "x"}
    assert parse_message("   ") == {}


@pytest.mark.parametrize("raw", ["{not json", b"\xff\xfe", "[1, 2]", '"text"'])
def test_parse_message_rejects_malformed_frames(raw: str | bytes) -> None:
    with pytest.raises((ValueError, TypeError)):
        parse_message(raw)


def test_message_type_of_requires_string() -> None:
    assert message_type_of({"type": "price_update"}) == "price_update"
    assert message_type_of({"type": 1}) is None
    assert message_type_of({}) is None


def test_utc_now_iso_is_parseable_utc() -> None:
    value = utc_now_iso()

    assert value.endswith("Z")
    assert parse_iso_timestamp(value).utcoffset().total_seconds() == 0  # type: ignore[union-attr]


def test_timestamp_sort_key_handles_mixed_and_invalid_values() -> None:
    naive = timestamp_sort_key("2024-05-01T09:30:00")
    aware = timestamp_sort_key("2024-05-01T09:30:00Z")
    invalid = timestamp_sort_key("garbage")

    assert naive == aware
    assert invalid < aware


def test_handshake_wire_shape() -> None:
    handshake = ConnectHandshakeDTO(user_id=7)

    payload = orjson.loads(to_text(handshake.to_wire()))

    assert payload["type"] == "connect"
    assert payload["userId"] == 7
    assert payload["timestamp"].endswith("Z")
    assert set(payload) == {"type", "userId", "timestamp"}


def test_to_bytes_supports_int_keys() -> None:
    assert orjson.loads(to_bytes({1: {2: "x"}})) == {"1": {"2": "x"}}
