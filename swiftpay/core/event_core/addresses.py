"""Cheap structural checks for base58 Solana addresses."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from solders.pubkey import Pubkey

from swiftpay.core.core_constants import SYSTEM_ADDRESSES

BASE58_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
# Unanchored form used to pull candidate addresses out of free log text.
ADDRESS_TOKEN_RE = re.compile(r"\b[1-9A-HJ-NP-Za-km-z]{32,44}\b")


def is_valid_address(value: object) -> bool:
    """Return ``True`` when ``value`` looks like a 32-byte base58 public key.

    Syntactic only: length, alphabet and a successful ``Pubkey`` parse. It
    says nothing about whether the account exists.
    """
    if not isinstance(value, str) or not BASE58_ADDRESS_RE.match(value):
        return False
    try:
        Pubkey.from_string(value)
    except ValueError:
        return False
    return True


def is_participant_address(value: object, program_id: Optional[str] = None) -> bool:
    """Valid address that is neither infrastructure nor the emitting program."""
    if not is_valid_address(value):
        return False
    if value in SYSTEM_ADDRESSES:
        return False
    return not (program_id and value == program_id)


def first_participant_address(
    candidates: Iterable[str], program_id: Optional[str] = None
) -> Optional[str]:
    for candidate in candidates:
        if is_participant_address(candidate, program_id):
            return candidate
    return None


__all__ = [
    "BASE58_ADDRESS_RE",
    "ADDRESS_TOKEN_RE",
    "is_valid_address",
    "is_participant_address",
    "first_participant_address",
]
