from __future__ import annotations

import re
from datetime import UTC, datetime

import pytest

from planboard.services.share_links import (
    build_share_url,
    generate_share_token,
    to_base36,
)

TOKEN_PATTERN = re.compile(r"^[0-9a-z]+-[0-9a-z]{6}$")


def test_to_base36() -> None:
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"
    assert to_base36(1295) == "zz"


def test_to_base36_rejects_negative() -> None:
    with pytest.raises(ValueError):
        to_base36(-1)


def test_token_format_is_url_safe() -> None:
    token = generate_share_token()
    assert TOKEN_PATTERN.match(token)


def test_token_prefix_is_millisecond_timestamp() -> None:
    moment = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
    token = generate_share_token(moment)
    prefix = token.split("-")[0]
    assert int(prefix, 36) == int(moment.timestamp() * 1000)


def test_tokens_differ_for_same_instant() -> None:
    moment = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
    tokens = {generate_share_token(moment) for _ in range(20)}
    assert len(tokens) > 1


def test_build_share_url() -> None:
    assert (
        build_share_url("https://plans.example.com/", "abc-123456")
        == "https://plans.example.com/shared/abc-123456"
    )
