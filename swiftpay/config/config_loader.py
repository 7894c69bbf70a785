"""Runtime settings for the notifier.

Precedence (lowest → highest): built-in defaults, the ``swiftpay:`` section
of an optional YAML file, then environment variables. ``.env`` is loaded
first so it feeds both ``ENV:NAME`` placeholders and the overrides.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from dotenv import load_dotenv

from swiftpay.core.core_constants import DEFAULT_DB_PATH, DEFAULT_TOKEN_DECIMALS

logger = logging.getLogger(__name__)

CONFIG_PATH_VAR = "SWIFTPAY_CONFIG"
SENSITIVE_NAME_TOKENS: Tuple[str, ...] = ("SID", "TOKEN", "KEY", "SECRET", "PASSWORD")
CHANNELS = ("discord", "sms", "dry_run")

ENV_OVERRIDES: Dict[str, str] = {
    "program_id": "SWIFT_PAY_PROGRAM_ID",
    "rpc_url": "SOLANA_RPC_URL",
    "db_path": "SWIFTPAY_DB_PATH",
    "channel": "SWIFTPAY_CHANNEL",
    "discord_bot_token": "DISCORD_BOT_TOKEN",
    "twilio_account_sid": "TWILIO_ACCOUNT_SID",
    "twilio_auth_token": "TWILIO_AUTH_TOKEN",
    "twilio_from_phone": "TWILIO_FROM_PHONE",
    "max_attempts": "SWIFTPAY_MAX_ATTEMPTS",
    "retry_base_delay": "SWIFTPAY_RETRY_BASE_DELAY",
    "bulk_concurrency": "SWIFTPAY_BULK_CONCURRENCY",
    "token_decimals": "SWIFTPAY_TOKEN_DECIMALS",
    "debug": "SWIFTPAY_DEBUG",
}


class ConfigError(RuntimeError):
    pass


@dataclass
class BotSettings:
    program_id: Optional[str] = None
    rpc_url: str = "https://api.devnet.solana.com"
    db_path: str = DEFAULT_DB_PATH
    channel: str = "dry_run"
    discord_bot_token: Optional[str] = None
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_from_phone: Optional[str] = None
    max_attempts: int = 3
    retry_base_delay: float = 1.0
    bulk_concurrency: int = 5
    token_decimals: int = DEFAULT_TOKEN_DECIMALS
    debug: bool = False

    def redacted(self) -> Dict[str, Any]:
        return {k: _redact_value(k, v) for k, v in asdict(self).items()}


def _redact_value(key: str, value: Any) -> Any:
    if isinstance(value, str) and any(tok in key.upper() for tok in SENSITIVE_NAME_TOKENS):
        return "****" if len(value) <= 4 else f"{'*' * 4}…{value[-4:]}"
    return value


def _resolve_env(val: Any) -> Any:
    """Resolve ENV:FOO placeholders recursively."""
    if isinstance(val, str) and val.startswith("ENV:"):
        env_key = val.split("ENV:", 1)[1].strip()
        v = os.environ.get(env_key)
        if v is None or v == "":
            raise ConfigError(f"Missing required environment variable: {env_key}")
        return v
    if isinstance(val, dict):
        return {k: _resolve_env(v) for k, v in val.items()}
    if isinstance(val, list):
        return [_resolve_env(v) for v in val]
    return val


def _load_yaml_section(path: Union[str, os.PathLike]) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")
    with p.open("r", encoding="utf-8") as fh:
        try:
            raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {p}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Root of {p} must be a mapping.")
    section = raw.get("swiftpay")
    if section is None:
        raise ConfigError("Missing 'swiftpay' section in config.")
    if not isinstance(section, dict):
        raise ConfigError("'swiftpay' section must be a mapping.")
    return _resolve_env(section)


def _load_env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name, env_key in ENV_OVERRIDES.items():
        v = os.environ.get(env_key)
        if v is not None and v != "":
            out[name] = v
    return out


def _coerce(name: str, value: Any, default: Any) -> Any:
    if value is None:
        return None
    try:
        if isinstance(default, bool):
            if isinstance(value, bool):
                return value
            return str(value).strip().lower() in ("1", "true", "yes", "on")
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {name}: {value!r}") from exc
    return str(value)


def _validate(settings: BotSettings) -> None:
    if settings.channel not in CHANNELS:
        raise ConfigError(f"channel must be one of {CHANNELS}, got {settings.channel!r}")
    if settings.max_attempts < 1:
        raise ConfigError("max_attempts must be >= 1")
    if settings.retry_base_delay < 0:
        raise ConfigError("retry_base_delay must be >= 0")
    if settings.bulk_concurrency < 1:
        raise ConfigError("bulk_concurrency must be >= 1")
    if not 0 <= settings.token_decimals <= 18:
        raise ConfigError("token_decimals must be between 0 and 18")


def load_settings(path: Optional[Union[str, os.PathLike]] = None) -> BotSettings:
    """Build :class:`BotSettings` from defaults, YAML and the environment."""
    load_dotenv()
    merged: Dict[str, Any] = {}
    cfg_path = path or os.environ.get(CONFIG_PATH_VAR)
    if cfg_path:
        merged.update(_load_yaml_section(cfg_path))
    merged.update(_load_env_overrides())

    defaults = BotSettings()
    known = {f.name for f in fields(BotSettings)}
    unknown = sorted(set(merged) - known)
    if unknown:
        logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))

    values = {
        name: _coerce(name, merged[name], getattr(defaults, name))
        for name in known
        if name in merged
    }
    settings = BotSettings(**values)
    settings.channel = settings.channel.lower()
    _validate(settings)
    logger.info("Settings loaded from %s", cfg_path or "<env>")
    return settings


__all__ = ["BotSettings", "ConfigError", "load_settings"]
