from __future__ import annotations

from pathlib import Path

import pytest

from src.infra.identity.identity_cache import FileIdentityCache, StaticIdentity


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ('{"id": 7, "name": "Ramesh"}', 7),
        ('{"userId": "u-42"}', "u-42"),
        ('{"id": null}', None),
        ('{"id": true}', None),
        ('{"name": "no id"}', None),
        ("[7]", None),
        ("{broken", None),
    ],
)
def test_file_identity_cache_reads_user_id(tmp_path: Path, content: str, expected: object) -> None:
    path = tmp_path / "user.json"
    path.write_text(content, encoding="utf-8")

    assert FileIdentityCache(path).get_user_id() == expected


def test_missing_identity_file_means_no_identity(tmp_path: Path) -> None:
    assert FileIdentityCache(tmp_path / "absent.json").get_user_id() is None


def test_static_identity() -> None:
    assert StaticIdentity(3).get_user_id() == 3
    assert StaticIdentity(None).get_user_id() is None
