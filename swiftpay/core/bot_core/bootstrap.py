"""Wire settings, storage, channel and parser into a ready pipeline."""

from __future__ import annotations

from typing import Optional

from swiftpay.config.config_loader import BotSettings, load_settings
from swiftpay.core.event_core.event_parser import EventParser
from swiftpay.core.logging import configure_console_log, log
from swiftpay.core.notify_core.channels import DeliveryChannel, build_channel
from swiftpay.core.notify_core.manager import NotificationManager
from swiftpay.core.notify_core.retry import RetryPolicy
from swiftpay.data.data_locker import DataLocker
from swiftpay.data.store import SqliteSubscriptionStore
from swiftpay.models.message import MessageRenderer

from .event_pipeline import EventPipeline


def build_manager(
    settings: BotSettings,
    locker: DataLocker,
    channel: Optional[DeliveryChannel] = None,
) -> NotificationManager:
    policy = RetryPolicy(max_attempts=settings.max_attempts, base_delay=settings.retry_base_delay)
    return NotificationManager(
        SqliteSubscriptionStore(locker),
        channel or build_channel(settings),
        policy=policy,
        concurrency=settings.bulk_concurrency,
    )


def build_pipeline(
    renderer: MessageRenderer,
    settings: Optional[BotSettings] = None,
    locker: Optional[DataLocker] = None,
    channel: Optional[DeliveryChannel] = None,
) -> EventPipeline:
    settings = settings or load_settings()
    configure_console_log(settings.debug)
    locker = locker or DataLocker(settings.db_path)
    log.info(f"Starting notifier with {settings.redacted()}", source="bootstrap")
    return EventPipeline(
        EventParser(decimals=settings.token_decimals),
        renderer,
        build_manager(settings, locker, channel),
    )


__all__ = ["build_manager", "build_pipeline"]
