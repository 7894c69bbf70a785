import json

import pytest
from solders.pubkey import Pubkey

from swiftpay.core.notify_core.channels import DeliveryChannel
from swiftpay.data.data_locker import DataLocker
from swiftpay.data.store import SqliteSubscriptionStore


def _address(seed: int) -> str:
    return str(Pubkey.from_bytes(bytes([seed % 256]) * 32))


@pytest.fixture
def make_address():
    """Deterministic, structurally valid wallet address for a small seed."""
    return _address


@pytest.fixture
def dl_tmp(tmp_path):
    dl = DataLocker(str(tmp_path / "swiftpay.db"))
    yield dl
    dl.close()


@pytest.fixture
def store(dl_tmp):
    return SqliteSubscriptionStore(dl_tmp)


@pytest.fixture
def seed_subscription(dl_tmp):
    """Insert a subscription row the way the onboarding flow would."""

    def _seed(wallet_address, target_id, preferences=None, channel_id=None):
        cur = dl_tmp.db.get_cursor()
        cur.execute(
            """INSERT INTO user_subscriptions
                    (wallet_address, target_id, channel_id, notification_preferences)
                 VALUES (?, ?, ?, ?)""",
            (wallet_address, target_id, channel_id, json.dumps(preferences or {})),
        )
        dl_tmp.db.commit()
        return cur.lastrowid

    return _seed


class RecordingChannel(DeliveryChannel):
    """Channel double: raises queued errors first, then succeeds."""

    name = "recording"

    def __init__(self, failures=None):
        self.failures = dict(failures or {})
        self.calls = []
        self.sent = []

    async def send_to_target(self, target_id, message, channel_id=None):
        self.calls.append(target_id)
        queued = self.failures.get(target_id)
        if queued:
            raise queued.pop(0)
        self.sent.append((target_id, message, channel_id))


@pytest.fixture
def recording_channel():
    return RecordingChannel


@pytest.fixture
def no_sleep():
    delays = []

    async def _sleep(delay):
        delays.append(delay)

    _sleep.delays = delays
    return _sleep
