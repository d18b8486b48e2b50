"""Stripe webhook endpoint."""
import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.services import payments as payment_service
from app.services import subscriptions as subscription_service
from app.services.payment_gateway import StripeGateway, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter()

SUBSCRIPTION_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "customer.subscription.trial_will_end",
)
PAYMENT_FAILED_EVENTS = ("payment_intent.payment_failed", "payment_intent.canceled")


async def dispatch_event(db: AsyncSession, gateway: StripeGateway, event: dict) -> bool:
    """Route a verified event to its handler. Returns False when nothing handled it."""
    event_type = event["type"]
    obj = event["data"]["object"]

    if event_type == "checkout.session.completed":
        if await payment_service.handle_checkout_session_completed(db, obj):
            return True
        return await subscription_service.handle_checkout_session_completed(db, gateway, obj)
    if event_type == "payment_intent.succeeded":
        return await payment_service.handle_payment_intent_succeeded(db, obj)
    if event_type in PAYMENT_FAILED_EVENTS:
        return await payment_service.handle_payment_intent_failed(db, obj)
    if event_type in SUBSCRIPTION_EVENTS:
        return await subscription_service.handle_subscription_event(db, event_type, obj)
    return False


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    """
    Handle Stripe webhook events.

    - Verifies webhook signature
    - checkout.session.completed: asset purchase or subscription checkout
    - payment_intent.*: purchase status updates
    - customer.subscription.*: subscription sync
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    if not sig_header:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing stripe-signature header"
        )

    # Verify webhook signature
    try:
        event = gateway.construct_event(payload, sig_header)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid payload"
        )
    except stripe.SignatureVerificationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature"
        )

    handled = await dispatch_event(db, gateway, event)
    logger.info(f"Stripe event {event.get('id')} ({event['type']}) {'processed' if handled else 'ignored'}")
    return {"status": "processed" if handled else "ignored"}
