"""Outbound delivery channels (Discord REST, Twilio SMS, dry run)."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from swiftpay.config.config_loader import ConfigError
from swiftpay.models.message import Message

from .errors import (
    NON_RETRYABLE_DISCORD_CODES,
    NON_RETRYABLE_TWILIO_CODES,
    DeliveryError,
    DiscordErrorCode,
    NonRetryableDeliveryError,
)

_log = logging.getLogger("swiftpay.notify")

DISCORD_API_BASE = "https://discord.com/api/v10"


class DeliveryChannel(ABC):
    """One attempt to hand a message to an external service.

    Implementations raise :class:`DeliveryError` (or a subclass) on failure
    and return normally on success. Retrying is the caller's job.
    """

    name = "channel"

    @abstractmethod
    async def send_to_target(
        self, target_id: str, message: Message, channel_id: Optional[str] = None
    ) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Discord
# ---------------------------------------------------------------------------
def _discord_error(response: httpx.Response, target_id: str) -> DeliveryError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    code = body.get("code")
    text = body.get("message") or response.reason_phrase or "Discord request failed"
    status = response.status_code

    if status == 429:
        retry_after = body.get("retry_after") or response.headers.get("retry-after")
        return DeliveryError(
            f"rate limited delivering to {target_id}",
            status=status,
            code=code,
            retry_after=float(retry_after) if retry_after is not None else None,
        )
    if status >= 500:
        return DeliveryError(f"Discord {status}: {text}", status=status, code=code)
    if code in NON_RETRYABLE_DISCORD_CODES:
        _log.warning(
            "Discord %s for %s: %s", DiscordErrorCode(code).name, target_id, text
        )
    return NonRetryableDeliveryError(f"Discord {status}: {text}", status=status, code=code)


class DiscordChannel(DeliveryChannel):
    """Bot-token REST client.

    Messages go to ``channel_id`` when the subscription has one, otherwise to
    the user's DM channel, opened on demand.
    """

    name = "discord"

    def __init__(
        self,
        token: str,
        base_url: str = DISCORD_API_BASE,
        timeout: float = 10.0,
        **client_kwargs: Any,
    ) -> None:
        self._client_kwargs: Dict[str, Any] = dict(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bot {token}",
                "User-Agent": "swiftpay-notifier (https://swiftpay.app, 0.3)",
            },
        )
        self._client_kwargs.update(client_kwargs)

    async def _request(self, client: httpx.AsyncClient, url: str, payload: dict, target_id: str) -> dict:
        try:
            response = await client.post(url, json=payload)
        except httpx.TransportError as exc:
            raise DeliveryError(f"Discord transport error: {exc}") from exc
        if response.status_code >= 400:
            raise _discord_error(response, target_id)
        try:
            return response.json()
        except ValueError:
            return {}

    async def send_to_target(
        self, target_id: str, message: Message, channel_id: Optional[str] = None
    ) -> None:
        payload = {"embeds": [message.to_embed()]}
        async with httpx.AsyncClient(**self._client_kwargs) as client:
            if not channel_id:
                dm = await self._request(
                    client, "/users/@me/channels", {"recipient_id": target_id}, target_id
                )
                channel_id = dm.get("id")
                if not channel_id:
                    raise DeliveryError(f"Discord returned no DM channel for {target_id}")
            await self._request(client, f"/channels/{channel_id}/messages", payload, target_id)
        _log.info("Discord message delivered to %s", target_id)


# ---------------------------------------------------------------------------
# Twilio SMS
# ---------------------------------------------------------------------------
def _twilio_error(exc: TwilioRestException) -> DeliveryError:
    status = getattr(exc, "status", None)
    code = getattr(exc, "code", None)
    text = getattr(exc, "msg", None) or str(exc)
    if code in NON_RETRYABLE_TWILIO_CODES:
        return NonRetryableDeliveryError(f"Twilio {code}: {text}", status=status, code=code)
    if status is not None and (status == 429 or status >= 500):
        return DeliveryError(f"Twilio {status}: {text}", status=status, code=code)
    if status is not None and 400 <= status < 500:
        return NonRetryableDeliveryError(f"Twilio {status}: {text}", status=status, code=code)
    return DeliveryError(f"Twilio error: {text}", status=status, code=code)


class TwilioSMSChannel(DeliveryChannel):
    """Send the text rendering of a message as SMS; ``target_id`` is a phone number."""

    name = "sms"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_phone: str,
        client: Optional[Client] = None,
    ) -> None:
        self.from_phone = from_phone
        self._client = client or Client(account_sid, auth_token)

    def _send_sync(self, to: str, body: str) -> str:
        msg = self._client.messages.create(body=body, from_=self.from_phone, to=to)
        return getattr(msg, "sid", "")

    async def send_to_target(
        self, target_id: str, message: Message, channel_id: Optional[str] = None
    ) -> None:
        try:
            sid = await asyncio.to_thread(self._send_sync, target_id, message.to_text())
        except TwilioRestException as exc:
            raise _twilio_error(exc) from exc
        _log.info("SMS sent to %s (sid=%s)", target_id, sid)


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------
class DryRunChannel(DeliveryChannel):
    """Log instead of sending; keeps what it would have sent."""

    name = "dry_run"

    def __init__(self) -> None:
        self.sent: List[Tuple[str, Message, Optional[str]]] = []

    async def send_to_target(
        self, target_id: str, message: Message, channel_id: Optional[str] = None
    ) -> None:
        self.sent.append((target_id, message, channel_id))
        _log.info("[DRY-RUN] %s -> %s", message.title, target_id)


def build_channel(settings: Any) -> DeliveryChannel:
    """Pick the channel named by ``settings.channel``."""
    kind = (getattr(settings, "channel", None) or "dry_run").lower()
    if kind == "discord":
        if not settings.discord_bot_token:
            raise ConfigError("discord channel selected but DISCORD_BOT_TOKEN is not set")
        return DiscordChannel(settings.discord_bot_token)
    if kind == "sms":
        missing = [
            name
            for name in ("twilio_account_sid", "twilio_auth_token", "twilio_from_phone")
            if not getattr(settings, name, None)
        ]
        if missing:
            raise ConfigError(f"sms channel selected but missing: {', '.join(missing)}")
        return TwilioSMSChannel(
            settings.twilio_account_sid,
            settings.twilio_auth_token,
            settings.twilio_from_phone,
        )
    if kind == "dry_run":
        return DryRunChannel()
    raise ConfigError(f"Unknown delivery channel: {kind}")


__all__ = [
    "DeliveryChannel",
    "DiscordChannel",
    "TwilioSMSChannel",
    "DryRunChannel",
    "build_channel",
    "DISCORD_API_BASE",
]
