"""Individual asset purchase endpoints."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_active_user
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.common import serialize, serialize_many
from app.schemas.payments import PaymentCheckoutRequest, PaymentResponse
from app.schemas.subscriptions import CheckoutVerifyRequest
from app.services import payments as payment_service
from app.services.payment_gateway import StripeGateway, get_payment_gateway

router = APIRouter()


@router.post("/checkout")
async def create_checkout_session(
    data: PaymentCheckoutRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    """
    Start a Stripe Checkout session for one asset.

    - Asset must be approved and not already purchased
    - Premium subscribers get 30% off
    - A pending payment is recorded until Stripe confirms it
    """
    session = await payment_service.create_checkout_session(db, gateway, current_user, data.asset_id)
    return success_response("Checkout session created successfully", session)


@router.post("/verify")
async def verify_checkout_session(
    data: CheckoutVerifyRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    """Confirm a paid session, write the earnings ledger and return the payment."""
    payment = await payment_service.verify_checkout_session(db, gateway, data.session_id)
    return success_response("Payment verified successfully", serialize(PaymentResponse, payment))


@router.get("/history")
async def payment_history(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    page = await payment_service.list_payment_history(db, current_user, request.query_params)
    return success_response("Payment history retrieved successfully", serialize_many(PaymentResponse, page.items), page.meta)


@router.get("/check/{asset_id}")
async def check_purchase(
    asset_id: str,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    purchased = await payment_service.has_purchased(db, current_user.uuid, asset_id)
    return success_response("Purchase status retrieved successfully", {"assetId": asset_id, "hasPurchased": purchased})
