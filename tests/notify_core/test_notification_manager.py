from datetime import datetime, timedelta, timezone

import pytest

from swiftpay.core.event_core.encoder import encode_program_data
from swiftpay.core.event_core.event_parser import EventParser
from swiftpay.core.notify_core.errors import (
    DeliveryError,
    DispatchError,
    NonRetryableDeliveryError,
)
from swiftpay.core.notify_core.manager import NotificationManager
from swiftpay.data.store import StoreError
from swiftpay.models.events import InstantPaymentReserved, LogContext, ParsedEvent
from swiftpay.models.message import Message


def _message(title="SwiftPay"):
    return Message(title=title, description="body")


@pytest.mark.asyncio
async def test_disabled_preference_is_not_attempted_or_logged(
    dl_tmp, store, seed_subscription, recording_channel, no_sleep, make_address
):
    taker, maker = make_address(20), make_address(21)
    seed_subscription(taker, "taker-discord", {"instant_payment_reserved": False})
    maker_sub = seed_subscription(maker, "maker-discord")
    channel = recording_channel()
    manager = NotificationManager(store, channel, sleep=no_sleep)

    event = ParsedEvent(
        event_type="InstantPaymentReservedEvent",
        signature="sig",
        participants={"taker": taker, "maker": maker},
    )
    delivered = await manager.dispatch(event, {"taker": _message("t"), "maker": _message("m")})

    assert delivered == ["maker-discord"]
    assert channel.calls == ["maker-discord"]
    logs = dl_tmp.notification_logs.list_since(datetime.now(timezone.utc) - timedelta(minutes=5))
    assert len(logs) == 1
    assert logs[0].subscription_id == maker_sub
    assert logs[0].event_type == "instant_payment_reserved"
    assert logs[0].success is True


@pytest.mark.asyncio
async def test_invalid_roles_and_addresses_are_skipped(
    store, seed_subscription, recording_channel, no_sleep, make_address
):
    buyer = make_address(22)
    seed_subscription(buyer, "buyer-discord")
    channel = recording_channel()
    manager = NotificationManager(store, channel, sleep=no_sleep)
    event = ParsedEvent(
        event_type="BuyOrderCreatedEvent",
        signature="sig",
        participants={"buyer": buyer, "seller": "unknown_seller", "admin": buyer},
    )
    delivered = await manager.dispatch(
        event, {"buyer": _message(), "seller": _message(), "admin": _message()}
    )
    assert delivered == ["buyer-discord"]
    assert channel.calls == ["buyer-discord"]


@pytest.mark.asyncio
async def test_failed_delivery_logs_one_attempt_after_retries(
    dl_tmp, store, seed_subscription, recording_channel, no_sleep, make_address
):
    wallet = make_address(23)
    seed_subscription(wallet, "flaky")
    channel = recording_channel({"flaky": [DeliveryError("503") for _ in range(3)]})
    manager = NotificationManager(store, channel, sleep=no_sleep)

    delivered = await manager.send_notification_to_wallet(wallet, "price_updated", _message())

    assert delivered == []
    assert channel.calls == ["flaky"] * 3
    (attempt,) = dl_tmp.notification_logs.list_since(datetime.now(timezone.utc) - timedelta(minutes=5))
    assert attempt.success is False
    assert attempt.attempts == 3
    assert attempt.error_message == "503"


@pytest.mark.asyncio
async def test_every_subscription_for_an_address_is_served(
    store, seed_subscription, recording_channel, no_sleep, make_address
):
    wallet = make_address(24)
    seed_subscription(wallet, "dm-user")
    seed_subscription(wallet, "gone", channel_id="123")
    channel = recording_channel({"gone": [NonRetryableDeliveryError("unknown channel", code=10003)]})
    manager = NotificationManager(store, channel, sleep=no_sleep)

    delivered = await manager.send_notification_to_wallet(wallet, "buy_order_created", _message())

    assert delivered == ["dm-user"]
    assert sorted(channel.calls) == ["dm-user", "gone"]


@pytest.mark.asyncio
async def test_bulk_failure_for_one_address_does_not_stop_others(
    store, seed_subscription, recording_channel, no_sleep, make_address
):
    addresses = [make_address(30 + i) for i in range(7)]
    for i, address in enumerate(addresses):
        seed_subscription(address, f"target-{i}")

    class FlakyStore:
        def __init__(self, inner, broken):
            self.inner = inner
            self.broken = broken

        async def find_by_address(self, address):
            if address == self.broken:
                raise StoreError("database is locked")
            return await self.inner.find_by_address(address)

        def __getattr__(self, name):
            return getattr(self.inner, name)

    channel = recording_channel()
    manager = NotificationManager(FlakyStore(store, addresses[1]), channel, sleep=no_sleep)

    with pytest.raises(DispatchError) as excinfo:
        await manager.send_bulk_notifications(addresses, "price_updated", _message(), concurrency=5)

    err = excinfo.value
    assert sorted(err.delivered) == sorted(f"target-{i}" for i in range(7) if i != 1)
    assert len(err.errors) == 1
    assert isinstance(err.errors[0], StoreError)


@pytest.mark.asyncio
async def test_stats_and_cleanup(dl_tmp, store, seed_subscription, recording_channel, no_sleep, make_address):
    wallet = make_address(40)
    seed_subscription(wallet, "stats-user")
    channel = recording_channel({"stats-user": [NonRetryableDeliveryError("blocked", code=50007)]})
    now = datetime.now(timezone.utc)
    clock_value = [now - timedelta(days=40)]
    manager = NotificationManager(store, channel, sleep=no_sleep, clock=lambda: clock_value[0])

    await manager.send_notification_to_wallet(wallet, "price_updated", _message())
    clock_value[0] = now
    await manager.send_notification_to_wallet(wallet, "price_updated", _message())
    await manager.send_notification_to_wallet(wallet, "buy_order_created", _message())

    stats = await manager.get_notification_stats(hours=24)
    assert (stats.total, stats.successful, stats.failed) == (2, 2, 0)
    assert stats.by_event_type["price_updated"].total == 1

    removed = await manager.cleanup_old_logs(days_to_keep=30)
    assert removed == 1
    assert dl_tmp.notification_logs.count() == 2


@pytest.mark.asyncio
async def test_test_notification_uses_target_subscription(
    dl_tmp, store, seed_subscription, recording_channel, no_sleep, make_address
):
    seed_subscription(make_address(41), "tester", channel_id="555")
    channel = recording_channel()
    manager = NotificationManager(store, channel, sleep=no_sleep)

    assert await manager.send_test_notification("tester") is True
    assert await manager.send_test_notification("nobody") is False
    target, message, channel_id = channel.sent[0]
    assert (target, channel_id) == ("tester", "555")
    assert message.title == "Test Notification"
    assert dl_tmp.notification_logs.count() == 1


@pytest.mark.asyncio
async def test_taker_and_user_on_one_wallet_get_one_message(
    dl_tmp, store, seed_subscription, recording_channel, no_sleep, make_address
):
    taker = make_address(42)
    seed_subscription(taker, "taker-dm")
    reserved = InstantPaymentReserved(
        swift_pay=make_address(43),
        taker=taker,
        amount=1_000_000_000,
        fiat_amount=1500,
        currency="NGN",
        payout_details="acct 0123",
        payout_reference="ref-1",
    )
    (event,) = EventParser().parse_logs_for_events(
        [f"Program data: {encode_program_data(reserved)}"], LogContext(signature="sig")
    )
    assert event.participants == {"taker": taker, "user": taker}
    channel = recording_channel()
    manager = NotificationManager(store, channel, sleep=no_sleep)

    delivered = await manager.dispatch(event, {"taker": _message("t"), "user": _message("u")})

    assert delivered == ["taker-dm"]
    assert channel.calls == ["taker-dm"]
    assert channel.sent[0][1].title == "t"
    assert dl_tmp.notification_logs.count() == 1


@pytest.mark.asyncio
async def test_sent_message_counts_as_delivered_when_log_write_fails(
    store, seed_subscription, recording_channel, no_sleep, make_address
):
    wallet = make_address(44)
    seed_subscription(wallet, "got-it")

    class ReadOnlyStore:
        def __init__(self, inner):
            self.inner = inner

        async def insert_delivery_log(self, attempt):
            raise StoreError("disk full")

        def __getattr__(self, name):
            return getattr(self.inner, name)

    channel = recording_channel()
    manager = NotificationManager(ReadOnlyStore(store), channel, sleep=no_sleep)

    with pytest.raises(DispatchError) as excinfo:
        await manager.send_bulk_notifications([wallet], "price_updated", _message())

    assert channel.calls == ["got-it"]
    assert excinfo.value.delivered == ["got-it"]
    assert [str(e) for e in excinfo.value.errors] == ["disk full"]
