"""Tests for asset purchases and the Stripe webhook."""
import json

import pytest
from sqlalchemy import func, select

from app.models.asset import AssetStatus
from app.models.earning import Earning
from app.models.individual_payment import PaymentStatus
from app.models.revenue import IndividualPaymentRevenue
from app.models.user import UserRole
from conftest import auth_headers, make_asset, make_payment, make_user


@pytest.fixture
async def sale(test_db):
    author = await make_user(test_db, role=UserRole.AUTHOR)
    buyer = await make_user(test_db)
    asset = await make_asset(test_db, author, price=100.0)
    return {"author": author, "buyer": buyer, "asset": asset, "headers": auth_headers(buyer)}


def _paid_session(session_id, buyer, asset, payment_intent="pi_test_1"):
    return {
        "id": session_id,
        "mode": "payment",
        "payment_status": "paid",
        "status": "complete",
        "payment_intent": payment_intent,
        "metadata": {
            "userId": buyer.uuid,
            "assetId": asset.uuid,
            "originalPrice": "100.00",
            "discountAmount": "0.00",
            "finalPrice": "100.00",
            "isPremiumUser": "false",
            "paymentType": "individual_asset",
        },
    }


async def _post_event(client, event_type, obj, signature="valid"):
    payload = json.dumps({"id": "evt_test", "type": event_type, "data": {"object": obj}})
    return await client.post(
        "/api/webhooks/stripe",
        content=payload,
        headers={"stripe-signature": signature, "content-type": "application/json"},
    )


async def _count(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_checkout_records_pending_payment(client, gateway, sale):
    response = await client.post(
        "/api/payments/checkout", json={"assetId": sale["asset"].uuid}, headers=sale["headers"]
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["sessionId"] == gateway.created_sessions[0]["id"]
    assert data["finalPrice"] == 100.0
    assert data["discountAmount"] == 0.0
    assert gateway.created_sessions[0]["metadata"]["paymentType"] == "individual_asset"
    assert gateway.created_sessions[0]["line_items"][0]["price_data"]["unit_amount"] == 10000


@pytest.mark.asyncio
async def test_premium_buyer_pays_less(client, gateway, test_db, sale):
    premium = await make_user(test_db, is_premium=True)

    response = await client.post(
        "/api/payments/checkout", json={"assetId": sale["asset"].uuid}, headers=auth_headers(premium)
    )

    data = response.json()["data"]
    assert data["originalPrice"] == 100.0
    assert data["discountAmount"] == 30.0
    assert data["finalPrice"] == 70.0


@pytest.mark.asyncio
async def test_checkout_rejects_unavailable_or_owned_assets(client, test_db, sale):
    pending = await make_asset(test_db, sale["author"], status=AssetStatus.PENDING_REVIEW)
    response = await client.post("/api/payments/checkout", json={"assetId": pending.uuid}, headers=sale["headers"])
    assert response.status_code == 400
    assert response.json()["message"] == "Asset is not available for purchase"

    await make_payment(test_db, sale["buyer"], sale["asset"])
    response = await client.post(
        "/api/payments/checkout", json={"assetId": sale["asset"].uuid}, headers=sale["headers"]
    )
    assert response.status_code == 400
    assert response.json()["message"] == "You have already purchased this asset"


@pytest.mark.asyncio
async def test_verify_and_webhook_book_earnings_once(client, gateway, test_db, sale):
    response = await client.post(
        "/api/payments/checkout", json={"assetId": sale["asset"].uuid}, headers=sale["headers"]
    )
    session_id = response.json()["data"]["sessionId"]
    session = _paid_session(session_id, sale["buyer"], sale["asset"])
    gateway.sessions[session_id] = session

    response = await client.post("/api/payments/verify", json={"sessionId": session_id}, headers=sale["headers"])
    assert response.status_code == 200
    assert response.json()["data"]["paymentStatus"] == "completed"
    assert response.json()["data"]["stripePaymentIntentId"] == "pi_test_1"

    response = await _post_event(client, "checkout.session.completed", session)
    assert response.json() == {"status": "processed"}
    response = await _post_event(client, "payment_intent.succeeded", {"id": "pi_test_1"})
    assert response.json() == {"status": "processed"}

    assert await _count(test_db, Earning) == 1
    assert await _count(test_db, IndividualPaymentRevenue) == 1
    await test_db.refresh(sale["author"])
    assert sale["author"].total_earnings == 42.0


@pytest.mark.asyncio
async def test_webhook_alone_completes_payment(client, gateway, test_db, sale):
    response = await client.post(
        "/api/payments/checkout", json={"assetId": sale["asset"].uuid}, headers=sale["headers"]
    )
    session_id = response.json()["data"]["sessionId"]

    response = await _post_event(
        client, "checkout.session.completed", _paid_session(session_id, sale["buyer"], sale["asset"])
    )

    assert response.json() == {"status": "processed"}
    response = await client.get(f"/api/payments/check/{sale['asset'].uuid}", headers=sale["headers"])
    assert response.json()["data"] == {"assetId": sale["asset"].uuid, "hasPurchased": True}


@pytest.mark.asyncio
async def test_unpaid_session_cannot_be_verified(client, gateway, sale):
    response = await client.post(
        "/api/payments/checkout", json={"assetId": sale["asset"].uuid}, headers=sale["headers"]
    )
    session_id = response.json()["data"]["sessionId"]
    gateway.sessions[session_id] = {"id": session_id, "payment_status": "unpaid", "status": "open"}

    response = await client.post("/api/payments/verify", json={"sessionId": session_id}, headers=sale["headers"])

    assert response.status_code == 400
    assert response.json()["message"] == "Payment not completed"


@pytest.mark.asyncio
async def test_webhook_signature_checks(client):
    response = await _post_event(client, "checkout.session.completed", {"id": "cs_x"}, signature="forged")
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid signature"

    response = await client.post("/api/webhooks/stripe", content=b"{}")
    assert response.status_code == 400
    assert response.json()["message"] == "Missing stripe-signature header"

    response = await client.post("/api/webhooks/stripe", content=b"not json", headers={"stripe-signature": "valid"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid payload"


@pytest.mark.asyncio
async def test_unknown_event_is_ignored(client):
    response = await _post_event(client, "invoice.finalized", {"id": "in_1"})

    assert response.status_code == 200
    assert response.json() == {"status": "ignored"}


@pytest.mark.asyncio
async def test_payment_history_is_scoped_to_caller(client, test_db, sale):
    other = await make_user(test_db)
    await make_payment(test_db, sale["buyer"], sale["asset"])
    await make_payment(test_db, other, sale["asset"])
    await make_payment(test_db, sale["buyer"], sale["asset"], status=PaymentStatus.FAILED)

    response = await client.get("/api/payments/history", headers=sale["headers"])
    assert response.json()["meta"]["total"] == 2
    assert {p["userId"] for p in response.json()["data"]} == {sale["buyer"].uuid}

    response = await client.get("/api/payments/history", params={"status": "failed"}, headers=sale["headers"])
    assert response.json()["meta"]["total"] == 1
