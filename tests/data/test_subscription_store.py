import sqlite3
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from swiftpay.data.store import SqliteSubscriptionStore, StoreError
from swiftpay.models.subscription import DeliveryAttempt


@pytest.mark.asyncio
async def test_find_by_address_parses_preferences(store, seed_subscription, make_address):
    wallet = make_address(50)
    sub_id = seed_subscription(wallet, "discord-1", {"price_updated": False}, channel_id="99")
    seed_subscription(make_address(51), "discord-2")

    (sub,) = await store.find_by_address(wallet)
    assert sub.id == sub_id
    assert sub.target_id == "discord-1"
    assert sub.channel_id == "99"
    assert sub.is_enabled("price_updated") is False
    assert sub.is_enabled("buy_order_created") is True
    assert await store.find_by_address(make_address(52)) == []


@pytest.mark.asyncio
async def test_find_by_target(store, seed_subscription, make_address):
    seed_subscription(make_address(53), "shared")
    seed_subscription(make_address(54), "shared")
    assert len(await store.find_by_target("shared")) == 2


def test_corrupt_preferences_fall_back_to_enabled(dl_tmp, make_address):
    cur = dl_tmp.db.get_cursor()
    cur.execute(
        "INSERT INTO user_subscriptions (wallet_address, target_id, notification_preferences) VALUES (?, ?, ?)",
        (make_address(55), "t", "{not json"),
    )
    dl_tmp.db.commit()
    (sub,) = dl_tmp.subscriptions.find_by_address(make_address(55))
    assert sub.notification_preferences == {}
    assert sub.is_enabled("anything")


@pytest.mark.asyncio
async def test_delivery_log_round_trip_and_cleanup(store):
    now = datetime.now(timezone.utc)
    await store.insert_delivery_log(
        DeliveryAttempt(subscription_id=1, event_type="price_updated", success=True, created_at=now)
    )
    await store.insert_delivery_log(
        DeliveryAttempt(
            subscription_id=1,
            event_type="price_updated",
            success=False,
            error_message="blocked",
            attempts=3,
            created_at=now - timedelta(days=31),
        )
    )

    recent = await store.list_delivery_logs(now - timedelta(hours=1))
    assert [a.success for a in recent] == [True]

    removed = await store.delete_delivery_logs_before(now - timedelta(days=30))
    assert removed == 1
    remaining = await store.list_delivery_logs(now - timedelta(days=365))
    assert len(remaining) == 1


@pytest.mark.asyncio
async def test_sqlite_errors_surface_as_store_error(dl_tmp):
    store = SqliteSubscriptionStore(dl_tmp)
    cur = dl_tmp.db.get_cursor()
    cur.execute("DROP TABLE notification_logs")
    dl_tmp.db.commit()

    with pytest.raises(StoreError) as excinfo:
        await store.insert_delivery_log(
            DeliveryAttempt(subscription_id=1, event_type="x", success=True)
        )
    assert isinstance(excinfo.value.__cause__, sqlite3.Error)


@pytest.mark.asyncio
async def test_unreadable_subscription_row_surfaces_as_store_error(dl_tmp, store, make_address):
    cur = dl_tmp.db.get_cursor()
    cur.execute(
        "INSERT INTO user_subscriptions (wallet_address, target_id, notification_preferences) VALUES (?, ?, ?)",
        (make_address(56), "t", '{"price_updated": "sometimes"}'),
    )
    dl_tmp.db.commit()

    with pytest.raises(StoreError) as excinfo:
        await store.find_by_address(make_address(56))
    assert isinstance(excinfo.value.__cause__, ValidationError)
