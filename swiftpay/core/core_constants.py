"""Shared constants for the swiftpay engines."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.getenv("SWIFTPAY_BASE_DIR", Path(__file__).resolve().parents[2]))
DATA_DIR = BASE_DIR / "data"
DEFAULT_DB_PATH = str(DATA_DIR / "swiftpay.db")

# Token amounts on chain are integer base units; 9 decimals unless the mint says otherwise.
DEFAULT_TOKEN_DECIMALS = 9

# Log line markers emitted by the Solana runtime / Anchor.
PROGRAM_DATA_MARKER = "Program data:"
INSTRUCTION_MARKER = "Program log: Instruction:"

KNOWN_ROLES = ("buyer", "seller", "maker", "taker", "user")

# Infrastructure program / sysvar ids that are never a participant.
SYSTEM_ADDRESSES = frozenset(
    {
        "11111111111111111111111111111111",
        "ComputeBudget111111111111111111111111111111",
        "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
        "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb",
        "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
        "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr",
        "SysvarRent111111111111111111111111111111111",
        "SysvarC1ock11111111111111111111111111111111",
    }
)

NOTIFICATION_LOG_RETENTION_DAYS = 30

__all__ = [
    "BASE_DIR",
    "DATA_DIR",
    "DEFAULT_DB_PATH",
    "DEFAULT_TOKEN_DECIMALS",
    "PROGRAM_DATA_MARKER",
    "INSTRUCTION_MARKER",
    "KNOWN_ROLES",
    "SYSTEM_ADDRESSES",
    "NOTIFICATION_LOG_RETENTION_DAYS",
]
