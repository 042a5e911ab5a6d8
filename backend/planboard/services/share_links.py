from __future__ import annotations

import secrets
from datetime import UTC, datetime

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
SUFFIX_LENGTH = 6


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_share_token(now: datetime | None = None) -> str:
    """Return ``<base36 ms timestamp>-<6 random base36 chars>``.

    Short and roughly sortable by creation time; not a secret of adequate
    strength for sensitive data.
    """
    moment = now or datetime.now(UTC)
    timestamp = to_base36(int(moment.timestamp() * 1000))
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{timestamp}-{suffix}"


def build_share_url(app_base_url: str, shareable_link: str) -> str:
    return f"{app_base_url.rstrip('/')}/shared/{shareable_link}"
