"""Tests for plan subscriptions synced from Stripe."""
import json
import time

import pytest
from sqlalchemy import func, select

from app.models.revenue import SubscriptionRevenue
from app.models.subscription import Subscription
from app.models.user import UserRole
from app.services.subscriptions import map_stripe_status, unix_to_date
from conftest import auth_headers, make_plan, make_user

DAY = 24 * 60 * 60


def _stripe_subscription(user, plan, status="active", subscription_id="sub_test_1", start=None, end=None):
    start = start or int(time.time())
    end = end or start + 30 * DAY
    return {
        "id": subscription_id,
        "status": status,
        "customer": "cus_test_9",
        "cancel_at_period_end": False,
        "current_period_start": start,
        "current_period_end": end,
        "items": {"data": [{"price": {"id": plan.stripe_price_id}}]},
        "metadata": {"userId": user.uuid, "planId": plan.uuid},
    }


async def _post_event(client, event_type, obj):
    payload = json.dumps({"id": "evt_sub", "type": event_type, "data": {"object": obj}})
    return await client.post("/api/webhooks/stripe", content=payload, headers={"stripe-signature": "valid"})


async def _revenue_rows(db):
    return (await db.execute(select(func.count()).select_from(SubscriptionRevenue))).scalar_one()


@pytest.fixture
async def subscriber(test_db):
    user = await make_user(test_db)
    return {"user": user, "headers": auth_headers(user), "plan": await make_plan(test_db)}


def test_stripe_status_mapping():
    assert map_stripe_status("active") == "active"
    assert map_stripe_status("trialing") == "active"
    assert map_stripe_status("past_due") == "active"
    assert map_stripe_status("canceled") == "canceled"
    assert map_stripe_status("unpaid") == "expired"
    assert map_stripe_status("incomplete_expired") == "expired"
    assert unix_to_date(None) is None
    assert unix_to_date(0).year == 1970


@pytest.mark.asyncio
async def test_checkout_uses_plan_price(client, gateway, subscriber):
    response = await client.post(
        "/api/subscriptions/checkout", json={"planId": subscriber["plan"].uuid}, headers=subscriber["headers"]
    )

    assert response.status_code == 200
    session = gateway.created_sessions[0]
    assert response.json()["data"]["sessionId"] == session["id"]
    assert session["mode"] == "subscription"
    assert session["line_items"] == [{"price": "price_monthly", "quantity": 1}]
    assert session["metadata"] == {"userId": subscriber["user"].uuid, "planId": subscriber["plan"].uuid}


@pytest.mark.asyncio
async def test_checkout_rejects_inactive_plan(client, test_db, subscriber):
    plan = await make_plan(test_db, stripe_price_id="price_retired", is_active=False)

    response = await client.post("/api/subscriptions/checkout", json={"planId": plan.uuid}, headers=subscriber["headers"])

    assert response.status_code == 400
    assert response.json()["message"] == "Plan is not active"


@pytest.mark.asyncio
async def test_verify_activates_subscription(client, gateway, test_db, subscriber):
    user, plan = subscriber["user"], subscriber["plan"]
    gateway.subscriptions["sub_test_1"] = _stripe_subscription(user, plan)
    gateway.sessions["cs_sub"] = {
        "id": "cs_sub",
        "mode": "subscription",
        "payment_status": "paid",
        "subscription": "sub_test_1",
        "metadata": {"userId": user.uuid, "planId": plan.uuid},
    }

    response = await client.get("/api/subscriptions/me", headers=subscriber["headers"])
    assert response.status_code == 404

    response = await client.post("/api/subscriptions/verify", json={"sessionId": "cs_sub"}, headers=subscriber["headers"])
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "active"
    assert response.json()["data"]["stripeSubscriptionId"] == "sub_test_1"

    await test_db.refresh(user)
    assert user.is_premium is True
    assert user.stripe_customer_id == "cus_test_9"
    assert await _revenue_rows(test_db) == 1

    response = await client.get("/api/subscriptions/me", headers=subscriber["headers"])
    assert response.json()["data"]["planId"] == plan.uuid

    response = await client.post(
        "/api/subscriptions/checkout", json={"planId": plan.uuid}, headers=subscriber["headers"]
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_verify_rejects_someone_elses_session(client, gateway, test_db, subscriber):
    other = await make_user(test_db)
    gateway.sessions["cs_other"] = {
        "id": "cs_other",
        "payment_status": "paid",
        "subscription": "sub_other",
        "metadata": {"userId": other.uuid, "planId": subscriber["plan"].uuid},
    }

    response = await client.post("/api/subscriptions/verify", json={"sessionId": "cs_other"}, headers=subscriber["headers"])

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_webhook_lifecycle(client, test_db, subscriber):
    user, plan = subscriber["user"], subscriber["plan"]
    stripe_subscription = _stripe_subscription(user, plan)

    response = await _post_event(client, "customer.subscription.created", stripe_subscription)
    assert response.json() == {"status": "processed"}
    response = await _post_event(client, "customer.subscription.updated", stripe_subscription)
    assert response.json() == {"status": "processed"}
    assert await _revenue_rows(test_db) == 1

    response = await _post_event(client, "customer.subscription.deleted", stripe_subscription)
    assert response.json() == {"status": "processed"}

    result = await test_db.execute(select(Subscription).where(Subscription.user_id == user.uuid))
    subscription = result.scalar_one()
    await test_db.refresh(subscription)
    assert subscription.status == "canceled"
    await test_db.refresh(user)
    assert user.is_premium is False


@pytest.mark.asyncio
async def test_deleting_unknown_subscription_is_ignored(client):
    response = await _post_event(client, "customer.subscription.deleted", {"id": "sub_unknown", "status": "canceled"})

    assert response.json() == {"status": "ignored"}


@pytest.mark.asyncio
async def test_inverted_period_is_rejected(client, test_db, subscriber):
    now = int(time.time())
    stripe_subscription = _stripe_subscription(
        subscriber["user"], subscriber["plan"], start=now, end=now - DAY
    )

    response = await _post_event(client, "customer.subscription.created", stripe_subscription)

    assert response.status_code == 400
    assert response.json()["message"] == "Current period end must be after current period start"
    assert await _revenue_rows(test_db) == 0


@pytest.mark.asyncio
async def test_admin_lists_subscriptions(client, test_db, subscriber):
    admin = await make_user(test_db, role=UserRole.ADMIN)
    await _post_event(client, "customer.subscription.created", _stripe_subscription(subscriber["user"], subscriber["plan"]))

    response = await client.get("/api/subscriptions", headers=subscriber["headers"])
    assert response.status_code == 403

    response = await client.get("/api/subscriptions", params={"status": "active"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["meta"]["total"] == 1
