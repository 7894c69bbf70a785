from .core_constants import (
    BASE_DIR,
    DEFAULT_DB_PATH,
    DEFAULT_TOKEN_DECIMALS,
    KNOWN_ROLES,
    SYSTEM_ADDRESSES,
)
from .logging import log, configure_console_log

__all__ = [
    "BASE_DIR",
    "DEFAULT_DB_PATH",
    "DEFAULT_TOKEN_DECIMALS",
    "KNOWN_ROLES",
    "SYSTEM_ADDRESSES",
    "log",
    "configure_console_log",
]
