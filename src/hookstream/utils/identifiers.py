"""Identifier formatting for the downstream stream API."""

from __future__ import annotations

from typing import Final

SYSTEM_ACTOR_ID: Final = "00000000-0000-0000-0000-000000000000"

_ACCOUNT_PREFIX: Final = "00000000-0000-0000-0000-"
_ACCOUNT_DIGITS: Final = 12
MAX_ACCOUNT_ID: Final = 10**_ACCOUNT_DIGITS - 1


def account_uuid(account_id: int) -> str:
    """Format an account id as the UUID-shaped string the stream API expects.

    The id is zero-padded into the last group, so ``42`` becomes
    ``00000000-0000-0000-0000-000000000042``. This is a display format, not a
    real UUID, and it is not meant to be parsed back.

    Raises:
        ValueError: If ``account_id`` does not fit in the last group.
    """
    if account_id < 0 or account_id > MAX_ACCOUNT_ID:
        raise ValueError(f"account id out of range for UUID formatting: {account_id}")
    return f"{_ACCOUNT_PREFIX}{account_id:0{_ACCOUNT_DIGITS}d}"
