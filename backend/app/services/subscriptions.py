"""Plan subscriptions mirrored from Stripe.

Stripe is the source of truth. Checkout verification and the subscription
webhooks all funnel into ``sync_subscription_from_stripe``, which upserts the
local row, keeps ``User.is_premium`` in step and books subscription revenue.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.builder.query_builder import QueryBuilder
from app.builder.sql import Page, fetch_builder_page
from app.config import settings
from app.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.models.plan import Plan
from app.models.subscription import Subscription, SubscriptionStatus
from app.models.user import User
from app.services.earnings import create_subscription_revenue_record
from app.services.email_service import EmailService
from app.services.payment_gateway import StripeGateway

logger = logging.getLogger(__name__)

EXPIRED_STRIPE_STATUSES = ("unpaid", "incomplete_expired")
INCOMPLETE_STRIPE_STATUSES = ("incomplete", "incomplete_expired")

SUBSCRIPTION_FIELDS = {
    "status": Subscription.status,
    "planId": Subscription.plan_id,
    "userId": Subscription.user_id,
    "stripeSubscriptionId": Subscription.stripe_subscription_id,
    "currentPeriodEnd": Subscription.current_period_end,
    "createdAt": Subscription.created_at,
}


def map_stripe_status(stripe_status: Optional[str]) -> str:
    if stripe_status == "canceled":
        return SubscriptionStatus.CANCELED
    if stripe_status in EXPIRED_STRIPE_STATUSES:
        return SubscriptionStatus.EXPIRED
    return SubscriptionStatus.ACTIVE


def unix_to_date(timestamp: Optional[int]) -> Optional[datetime]:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).replace(tzinfo=None)


def ensure_period_range_is_valid(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is None or end is None:
        raise BadRequestError("Subscription period is missing from Stripe payload")
    if end < start:
        raise BadRequestError("Current period end must be after current period start")


def _first_item(stripe_subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (stripe_subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def _period(stripe_subscription: Dict[str, Any]) -> Tuple[Optional[datetime], Optional[datetime]]:
    # Newer Stripe API versions report the period on the subscription item
    item = _first_item(stripe_subscription)
    start = stripe_subscription.get("current_period_start") or item.get("current_period_start")
    end = stripe_subscription.get("current_period_end") or item.get("current_period_end")
    return unix_to_date(start), unix_to_date(end)


async def get_subscription_by_stripe_id(db: AsyncSession, stripe_subscription_id: str) -> Optional[Subscription]:
    result = await db.execute(
        select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
    )
    return result.scalar_one_or_none()


async def get_subscription_for_user(db: AsyncSession, user_id: str) -> Optional[Subscription]:
    result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    return result.scalar_one_or_none()


async def has_active_subscription(db: AsyncSession, user_id: str) -> bool:
    subscription = await get_subscription_for_user(db, user_id)
    return (
        subscription is not None
        and subscription.status == SubscriptionStatus.ACTIVE
        and subscription.current_period_end >= datetime.utcnow()
    )


async def ensure_user_subscription_limit(db: AsyncSession, user_id: str) -> None:
    subscription = await get_subscription_for_user(db, user_id)
    if subscription is not None and subscription.status == SubscriptionStatus.ACTIVE:
        raise ConflictError("User already has an active subscription")


async def create_checkout_session(
    db: AsyncSession,
    gateway: StripeGateway,
    user: User,
    plan_id: str,
) -> Dict[str, Any]:
    plan = await db.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("Plan not found")
    if not plan.is_active:
        raise BadRequestError("Plan is not active")
    if not plan.stripe_price_id:
        raise BadRequestError("Plan is not configured for Stripe billing")
    await ensure_user_subscription_limit(db, user.uuid)

    metadata = {"userId": user.uuid, "planId": plan.uuid}
    params: Dict[str, Any] = {
        "mode": "subscription",
        "line_items": [{"price": plan.stripe_price_id, "quantity": 1}],
        "success_url": f"{settings.FRONTEND_URL}/subscription/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{settings.FRONTEND_URL}/pricing",
        "metadata": metadata,
        "subscription_data": {"metadata": metadata},
    }
    if user.stripe_customer_id:
        params["customer"] = user.stripe_customer_id
    else:
        params["customer_email"] = user.email

    session = gateway.create_checkout_session(**params)
    logger.info(f"Subscription checkout {session['id']} created for user {user.uuid} plan {plan.uuid}")
    return {"sessionId": session["id"], "url": session.get("url")}


async def resolve_user_and_plan(
    db: AsyncSession,
    stripe_subscription: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None,
) -> Tuple[str, str]:
    """Work out which local user and plan a Stripe subscription belongs to.

    Metadata written at checkout wins, then the plan matching the item's
    price, then the existing local subscription.
    """
    merged = {**(metadata or {}), **(stripe_subscription.get("metadata") or {})}
    user_id = merged.get("userId")
    plan_id = merged.get("planId")

    price_id = (_first_item(stripe_subscription).get("price") or {}).get("id")
    if price_id:
        result = await db.execute(select(Plan.uuid).where(Plan.stripe_price_id == price_id))
        plan_id = result.scalar_one_or_none() or plan_id

    if not user_id or not plan_id:
        existing = await get_subscription_by_stripe_id(db, stripe_subscription["id"])
        if existing is not None:
            user_id = user_id or existing.user_id
            plan_id = plan_id or existing.plan_id

    if not user_id or not plan_id:
        raise BadRequestError("Unable to resolve subscription owner from Stripe metadata")
    return user_id, plan_id


async def sync_subscription_from_stripe(
    db: AsyncSession,
    stripe_subscription: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None,
) -> Subscription:
    """Upsert the local subscription from a Stripe subscription payload."""
    user_id, plan_id = await resolve_user_and_plan(db, stripe_subscription, metadata)

    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    plan = await db.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("Plan not found")

    status = map_stripe_status(stripe_subscription.get("status"))
    period_start, period_end = _period(stripe_subscription)
    ensure_period_range_is_valid(period_start, period_end)

    stripe_subscription_id = stripe_subscription["id"]
    customer_id = stripe_subscription.get("customer") or user.stripe_customer_id or ""

    subscription = await get_subscription_by_stripe_id(db, stripe_subscription_id)
    if subscription is None:
        subscription = await get_subscription_for_user(db, user_id)

    created = subscription is None
    if created:
        subscription = Subscription(user_id=user_id)
        db.add(subscription)

    subscription.plan_id = plan_id
    subscription.status = status
    subscription.current_period_start = period_start
    subscription.current_period_end = period_end
    subscription.cancel_at_period_end = bool(stripe_subscription.get("cancel_at_period_end"))
    subscription.stripe_customer_id = customer_id
    subscription.stripe_subscription_id = stripe_subscription_id

    user.is_premium = status == SubscriptionStatus.ACTIVE
    if customer_id and not user.stripe_customer_id:
        user.stripe_customer_id = customer_id

    await db.commit()
    await db.refresh(subscription)
    logger.info(
        f"Subscription {subscription.uuid} synced from Stripe {stripe_subscription_id}: "
        f"status={status} created={created}"
    )

    if created or status == SubscriptionStatus.ACTIVE:
        await create_subscription_revenue_record(
            db,
            subscription_id=subscription.uuid,
            plan_id=plan.uuid,
            user_id=user.uuid,
            amount=plan.price,
            billing_cycle=plan.billing_cycle,
            stripe_subscription_id=stripe_subscription_id,
        )

    if created:
        EmailService.send_subscription_confirmation_email(user, plan, subscription)
    return subscription


async def verify_checkout_session(
    db: AsyncSession,
    gateway: StripeGateway,
    user: User,
    session_id: str,
) -> Subscription:
    session = gateway.retrieve_checkout_session(session_id, expand=["subscription"])
    if session.get("payment_status") != "paid":
        raise BadRequestError("Payment is not completed for this session yet")

    metadata = session.get("metadata") or {}
    if metadata.get("userId") and metadata["userId"] != user.uuid:
        raise ForbiddenError("Checkout session does not belong to this user")

    stripe_subscription = session.get("subscription")
    if not stripe_subscription:
        raise BadRequestError("No subscription found for this checkout session")
    if isinstance(stripe_subscription, str):
        stripe_subscription = gateway.retrieve_subscription(stripe_subscription)
    if stripe_subscription.get("status") in INCOMPLETE_STRIPE_STATUSES:
        raise BadRequestError("Subscription is not active yet")

    return await sync_subscription_from_stripe(db, stripe_subscription, {"userId": user.uuid, **metadata})


# ── Webhook handlers ─────────────────────────────────────────────────────────

async def handle_checkout_session_completed(
    db: AsyncSession, gateway: StripeGateway, session: Dict[str, Any]
) -> bool:
    """Subscription-mode checkout finished; other modes are ignored."""
    if session.get("mode") != "subscription" or not session.get("subscription"):
        return False
    stripe_subscription = session["subscription"]
    if isinstance(stripe_subscription, str):
        stripe_subscription = gateway.retrieve_subscription(stripe_subscription)
    await sync_subscription_from_stripe(db, stripe_subscription, session.get("metadata") or {})
    return True


async def handle_subscription_event(db: AsyncSession, event_type: str, stripe_subscription: Dict[str, Any]) -> bool:
    """``customer.subscription.*`` events."""
    if event_type == "customer.subscription.trial_will_end":
        logger.info(f"Trial ending soon for Stripe subscription {stripe_subscription.get('id')}")
        return True

    if event_type == "customer.subscription.deleted":
        stripe_subscription = {**stripe_subscription, "status": "canceled"}
        existing = await get_subscription_by_stripe_id(db, stripe_subscription["id"])
        if existing is None and not (stripe_subscription.get("metadata") or {}).get("userId"):
            logger.info(f"Ignoring deletion of unknown Stripe subscription {stripe_subscription['id']}")
            return False

    await sync_subscription_from_stripe(db, stripe_subscription)
    return True


# ── Queries ──────────────────────────────────────────────────────────────────

async def get_my_subscription(db: AsyncSession, user: User) -> Subscription:
    subscription = await get_subscription_for_user(db, user.uuid)
    if subscription is None:
        raise NotFoundError("Subscription not found")
    return subscription


async def list_subscriptions(db: AsyncSession, params) -> Page:
    builder = (
        QueryBuilder(params)
        .filter_exact("status", "status")
        .filter_identifier("planId", "planId")
        .filter_identifier("userId", "userId")
        .sort()
        .project()
        .paginate()
    )
    return await fetch_builder_page(db, Subscription, builder, SUBSCRIPTION_FIELDS)
