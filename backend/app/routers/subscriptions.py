"""Subscription checkout and query endpoints."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import admin_required, get_current_active_user
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.common import serialize, serialize_many
from app.schemas.subscriptions import CheckoutVerifyRequest, SubscriptionCheckoutRequest, SubscriptionResponse
from app.services import subscriptions as subscription_service
from app.services.payment_gateway import StripeGateway, get_payment_gateway

router = APIRouter()


@router.post("/checkout")
async def create_checkout_session(
    data: SubscriptionCheckoutRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    """
    Start a Stripe Checkout session for a plan.

    - Plan must be active and have a Stripe price
    - Users with an active subscription are rejected
    """
    session = await subscription_service.create_checkout_session(db, gateway, current_user, data.plan_id)
    return success_response("Checkout session created successfully", session)


@router.post("/verify")
async def verify_checkout_session(
    data: CheckoutVerifyRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    subscription = await subscription_service.verify_checkout_session(db, gateway, current_user, data.session_id)
    return success_response("Subscription verified successfully", serialize(SubscriptionResponse, subscription))


@router.get("/me")
async def get_my_subscription(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    subscription = await subscription_service.get_my_subscription(db, current_user)
    return success_response("Subscription retrieved successfully", serialize(SubscriptionResponse, subscription))


@router.get("")
async def list_subscriptions(
    request: Request,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    page = await subscription_service.list_subscriptions(db, request.query_params)
    return success_response(
        "Subscriptions retrieved successfully",
        serialize_many(SubscriptionResponse, page.items, page.builder),
        page.meta,
    )
