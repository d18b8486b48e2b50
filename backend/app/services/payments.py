"""One-off asset purchases through Stripe Checkout.

A purchase can be confirmed twice: by the buyer's browser calling
``verify_checkout_session`` and by the ``checkout.session.completed``
webhook. Both go through ``complete_payment``, and the ledger writes behind
it are idempotent per payment, so the outcome is the same in either order.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.builder.query_builder import QueryBuilder
from app.builder.sql import Page, fetch_builder_page
from app.config import settings
from app.errors import BadRequestError, NotFoundError
from app.models.asset import Asset, AssetStatus
from app.models.individual_payment import IndividualPayment, PaymentStatus
from app.models.user import User
from app.services.earnings import create_earning_record, create_individual_payment_revenue_record
from app.services.earnings_calculator import calculate_payment_amount
from app.services.email_service import EmailService
from app.services.payment_gateway import StripeGateway

logger = logging.getLogger(__name__)

PAYMENT_TYPE_INDIVIDUAL = "individual_asset"

PAYMENT_FIELDS = {
    "paymentStatus": IndividualPayment.payment_status,
    "assetId": IndividualPayment.asset_id,
    "finalPrice": IndividualPayment.final_price,
    "transactionDate": IndividualPayment.transaction_date,
    "createdAt": IndividualPayment.created_at,
}


async def get_payment_by_session(db: AsyncSession, session_id: str) -> Optional[IndividualPayment]:
    result = await db.execute(
        select(IndividualPayment).where(IndividualPayment.stripe_session_id == session_id)
    )
    return result.scalar_one_or_none()


async def has_purchased(db: AsyncSession, user_id: str, asset_id: str) -> bool:
    result = await db.execute(
        select(IndividualPayment.uuid).where(
            IndividualPayment.user_id == user_id,
            IndividualPayment.asset_id == asset_id,
            IndividualPayment.payment_status == PaymentStatus.COMPLETED,
        ).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def create_checkout_session(
    db: AsyncSession,
    gateway: StripeGateway,
    user: User,
    asset_id: str,
) -> Dict[str, Any]:
    """
    Open a Stripe Checkout session for one asset and record a pending payment.

    - Asset must exist and be approved
    - A buyer cannot purchase the same asset twice
    - Premium buyers pay 30% less
    """
    asset = await db.get(Asset, asset_id)
    if asset is None:
        raise NotFoundError("Asset not found")
    if asset.status != AssetStatus.APPROVED:
        raise BadRequestError("Asset is not available for purchase")
    if await has_purchased(db, user.uuid, asset.uuid):
        raise BadRequestError("You have already purchased this asset")

    amount = calculate_payment_amount(asset.price, asset.discount_price, user.is_premium)
    if amount.final_price <= 0:
        raise BadRequestError("This asset is free and does not require payment")

    session = gateway.create_checkout_session(
        mode="payment",
        payment_method_types=["card"],
        customer_email=user.email,
        line_items=[
            {
                "price_data": {
                    "currency": "usd",
                    "product_data": {
                        "name": asset.title,
                        "description": (asset.description or asset.title)[:500],
                    },
                    "unit_amount": int(amount.final_price * 100),
                },
                "quantity": 1,
            }
        ],
        success_url=f"{settings.FRONTEND_URL}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{settings.FRONTEND_URL}/assets/{asset.uuid}",
        metadata={
            "userId": user.uuid,
            "assetId": asset.uuid,
            "originalPrice": str(amount.original_price),
            "discountAmount": str(amount.discount_amount),
            "finalPrice": str(amount.final_price),
            "isPremiumUser": "true" if user.is_premium else "false",
            "paymentType": PAYMENT_TYPE_INDIVIDUAL,
        },
    )

    payment = IndividualPayment(
        user_id=user.uuid,
        asset_id=asset.uuid,
        original_price=float(amount.original_price),
        discount_amount=float(amount.discount_amount),
        final_price=float(amount.final_price),
        is_premium_user=user.is_premium,
        payment_status=PaymentStatus.PENDING,
        stripe_session_id=session["id"],
    )
    db.add(payment)
    await db.commit()

    logger.info(f"Checkout session {session['id']} created for user {user.uuid} asset {asset.uuid}")
    return {
        "sessionId": session["id"],
        "url": session.get("url"),
        "paymentId": payment.uuid,
        "originalPrice": float(amount.original_price),
        "discountAmount": float(amount.discount_amount),
        "finalPrice": float(amount.final_price),
    }


async def process_payment_earnings(db: AsyncSession, payment: IndividualPayment) -> None:
    """Write the earning and revenue ledger rows for a completed payment."""
    if payment.payment_status != PaymentStatus.COMPLETED:
        return

    asset = await db.get(Asset, payment.asset_id)
    if asset is None:
        raise NotFoundError("Asset not found")

    # Plain values: a rollback inside the ledger expires ORM instances
    payment_id = payment.uuid
    asset_id = asset.uuid
    author_id = asset.author_id
    buyer_id = payment.user_id
    is_premium = payment.is_premium_user
    original_price = payment.original_price
    final_price = payment.final_price
    intent_id = payment.stripe_payment_intent_id
    transaction_date = payment.transaction_date

    earning = await create_earning_record(
        db,
        author_id=author_id,
        asset_id=asset_id,
        payment_id=payment_id,
        buyer_id=buyer_id,
        asset_price=original_price,
        is_premium_buyer=is_premium,
        earning_date=transaction_date,
    )
    await create_individual_payment_revenue_record(
        db,
        payment_id=payment_id,
        asset_id=asset_id,
        author_id=author_id,
        buyer_id=buyer_id,
        amount=final_price,
        author_revenue=earning.author_earning,
        company_revenue=earning.company_earning,
        is_premium_buyer=is_premium,
        stripe_payment_intent_id=intent_id,
        revenue_date=transaction_date,
    )


async def complete_payment(
    db: AsyncSession,
    payment: IndividualPayment,
    payment_intent_id: Optional[str] = None,
) -> IndividualPayment:
    """Mark ``payment`` completed and book its earnings. Safe to call repeatedly."""
    newly_completed = payment.payment_status != PaymentStatus.COMPLETED
    if newly_completed:
        payment.payment_status = PaymentStatus.COMPLETED
        payment.stripe_payment_intent_id = payment_intent_id or payment.stripe_payment_intent_id
        payment.transaction_date = datetime.utcnow()
        await db.commit()
        logger.info(f"Payment {payment.uuid} completed")

    payment_id = payment.uuid
    await process_payment_earnings(db, payment)

    payment = await db.get(IndividualPayment, payment_id)
    if newly_completed:
        await _send_invoice(db, payment)
    return payment


async def _send_invoice(db: AsyncSession, payment: IndividualPayment) -> None:
    user = await db.get(User, payment.user_id)
    asset = await db.get(Asset, payment.asset_id)
    if user is None or asset is None:
        return
    EmailService.send_purchase_invoice_email(user, asset, payment)


async def verify_checkout_session(db: AsyncSession, gateway: StripeGateway, session_id: str) -> IndividualPayment:
    """Confirm a checkout session after the buyer returns from Stripe."""
    session = gateway.retrieve_checkout_session(session_id)

    payment = await get_payment_by_session(db, session_id)
    if payment is None:
        raise NotFoundError("Payment record not found")

    if session.get("payment_status") == "paid":
        return await complete_payment(db, payment, session.get("payment_intent"))

    if session.get("status") == "expired":
        payment.payment_status = PaymentStatus.FAILED
        await db.commit()
        raise BadRequestError("Payment session expired")

    raise BadRequestError("Payment not completed")


# ── Webhook handlers ─────────────────────────────────────────────────────────

async def handle_checkout_session_completed(db: AsyncSession, session: Dict[str, Any]) -> bool:
    """Handle ``checkout.session.completed`` for asset purchases.

    Returns False when the session belongs to another flow (subscriptions).
    """
    metadata = session.get("metadata") or {}
    if metadata.get("paymentType") != PAYMENT_TYPE_INDIVIDUAL:
        return False

    payment = await get_payment_by_session(db, session["id"])
    if payment is None:
        user_id = metadata.get("userId")
        asset_id = metadata.get("assetId")
        if not user_id or not asset_id:
            raise BadRequestError("Invalid metadata in checkout session")
        # Checkout started elsewhere, e.g. the pending row was never written
        payment = IndividualPayment(
            user_id=user_id,
            asset_id=asset_id,
            original_price=float(metadata.get("originalPrice") or 0),
            discount_amount=float(metadata.get("discountAmount") or 0),
            final_price=float(metadata.get("finalPrice") or 0),
            is_premium_user=metadata.get("isPremiumUser") == "true",
            payment_status=PaymentStatus.PENDING,
            stripe_session_id=session["id"],
        )
        db.add(payment)
        await db.commit()
        logger.info(f"Payment recreated from webhook for session {session['id']}")

    if session.get("payment_status") == "paid":
        await complete_payment(db, payment, session.get("payment_intent"))
    return True


async def _payment_for_intent(db: AsyncSession, payment_intent: Dict[str, Any]) -> Optional[IndividualPayment]:
    result = await db.execute(
        select(IndividualPayment).where(IndividualPayment.stripe_payment_intent_id == payment_intent["id"])
    )
    return result.scalar_one_or_none()


async def handle_payment_intent_succeeded(db: AsyncSession, payment_intent: Dict[str, Any]) -> bool:
    payment = await _payment_for_intent(db, payment_intent)
    if payment is None:
        return False
    await complete_payment(db, payment, payment_intent["id"])
    return True


async def handle_payment_intent_failed(db: AsyncSession, payment_intent: Dict[str, Any]) -> bool:
    """``payment_intent.payment_failed`` and ``payment_intent.canceled``."""
    payment = await _payment_for_intent(db, payment_intent)
    if payment is None or payment.payment_status == PaymentStatus.COMPLETED:
        return False
    payment.payment_status = PaymentStatus.FAILED
    await db.commit()
    logger.info(f"Payment {payment.uuid} marked failed")
    return True


# ── Queries ──────────────────────────────────────────────────────────────────

async def list_payment_history(db: AsyncSession, user: User, params) -> Page:
    builder = (
        QueryBuilder(params)
        .filter_exact("status", "paymentStatus")
        .filter_identifier("assetId", "assetId")
        .sort(default="-transactionDate")
        .paginate()
    )
    return await fetch_builder_page(
        db, IndividualPayment, builder, PAYMENT_FIELDS, scope=[IndividualPayment.user_id == user.uuid]
    )
