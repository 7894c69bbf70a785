"""Subscriber routing and retried delivery."""

from .channels import DeliveryChannel, DiscordChannel, DryRunChannel, TwilioSMSChannel, build_channel
from .errors import DeliveryError, DispatchError, NonRetryableDeliveryError
from .manager import NotificationManager
from .retry import DeliveryOutcome, RetryPolicy, deliver_with_retry
from .roles import preference_key_for

__all__ = [
    "DeliveryChannel",
    "DiscordChannel",
    "DryRunChannel",
    "TwilioSMSChannel",
    "build_channel",
    "DeliveryError",
    "DispatchError",
    "NonRetryableDeliveryError",
    "NotificationManager",
    "DeliveryOutcome",
    "RetryPolicy",
    "deliver_with_retry",
    "preference_key_for",
]
