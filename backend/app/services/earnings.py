"""Earnings ledger and revenue aggregation.

Three ledgers feed the dashboards:

* ``Earning``: one row per completed asset payment with the author/company
  split. Drives author dashboards and the cached ``User.total_earnings``.
* ``IndividualPaymentRevenue``: the per-payment revenue ledger read by the
  admin dashboard.
* ``SubscriptionRevenue``: one row per activated subscription, all company
  revenue.

Every period query resolves its date window through ``app.services.periods``.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select, update, func, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import BadRequestError, NotFoundError
from app.models.asset import Asset
from app.models.earning import Earning
from app.models.individual_payment import IndividualPayment
from app.models.revenue import IndividualPaymentRevenue, SubscriptionRevenue
from app.models.user import User
from app.services.earnings_calculator import calculate_earnings
from app.services.periods import within

logger = logging.getLogger(__name__)

REVENUE_KINDS = ("total", "author", "company")


async def _require(db: AsyncSession, model, uuid: str, label: str):
    result = await db.execute(select(model).where(model.uuid == uuid))
    instance = result.scalar_one_or_none()
    if instance is None:
        raise NotFoundError(f"{label} not found", context={"id": uuid})
    return instance


async def _sum(db: AsyncSession, column, *clauses) -> float:
    statement = select(func.coalesce(func.sum(column), 0))
    for clause in clauses:
        if clause is not None:
            statement = statement.where(clause)
    value = (await db.execute(statement)).scalar_one()
    return round(float(value or 0), 2)


# ── Earnings ledger ──────────────────────────────────────────────────────────

async def create_earning_record(
    db: AsyncSession,
    *,
    author_id: str,
    asset_id: str,
    payment_id: str,
    buyer_id: str,
    asset_price: float,
    is_premium_buyer: bool,
    earning_date: Optional[datetime] = None,
) -> Earning:
    """Record the split for ``payment_id`` once and credit the author.

    A second call for the same payment returns the existing row without
    touching the author's total. All referenced entities are checked before
    anything is written. The ledger row and the total increment commit
    together; the session must not hold unrelated pending changes.
    """
    existing = await db.execute(select(Earning).where(Earning.payment_id == payment_id))
    record = existing.scalar_one_or_none()
    if record is not None:
        logger.info(f"Earning for payment {payment_id} already recorded, skipping")
        return record

    author = await _require(db, User, author_id, "Author")
    await _require(db, Asset, asset_id, "Asset")
    payment = await _require(db, IndividualPayment, payment_id, "Payment")
    await _require(db, User, buyer_id, "Buyer")

    split = calculate_earnings(asset_price, is_premium_buyer)
    record = Earning(
        author_id=author_id,
        asset_id=asset_id,
        payment_id=payment_id,
        buyer_id=buyer_id,
        asset_price=float(asset_price),
        is_premium_buyer=is_premium_buyer,
        platform_fee_percentage=split.platform_fee_percentage,
        author_earning=float(split.author_earning),
        company_earning=float(split.company_earning),
        earning_date=earning_date or payment.transaction_date or datetime.utcnow(),
    )
    db.add(record)
    try:
        await db.flush()
    except IntegrityError:
        # Another request recorded this payment between our check and insert
        await db.rollback()
        logger.info(f"Earning for payment {payment_id} recorded concurrently, skipping")
        result = await db.execute(select(Earning).where(Earning.payment_id == payment_id))
        return result.scalar_one()

    await db.execute(
        update(User)
        .where(User.uuid == author_id)
        .values(total_earnings=User.total_earnings + float(split.author_earning))
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(author, ["total_earnings"])

    logger.info(
        f"Earning recorded: payment={payment_id} author={author_id} "
        f"author_earning={split.author_earning} company_earning={split.company_earning}"
    )
    return record


async def get_earnings_for_period(db: AsyncSession, author_id: str, period: str) -> float:
    """Author earnings from the earnings ledger within ``period``."""
    return await _sum(
        db,
        Earning.author_earning,
        Earning.author_id == author_id,
        within(Earning.earning_date, period),
    )


async def get_company_earnings_for_period(db: AsyncSession, period: str) -> float:
    return await _sum(db, Earning.company_earning, within(Earning.earning_date, period))


async def get_total_author_earnings_for_period(db: AsyncSession, period: str) -> float:
    return await _sum(db, Earning.author_earning, within(Earning.earning_date, period))


async def backfill_total_earnings(db: AsyncSession) -> Dict[str, Any]:
    """Recompute every author's cached ``total_earnings`` from the ledger.

    Users with a non-zero cached total but no ledger rows are reset to 0.
    """
    rows = await db.execute(
        select(Earning.author_id, func.sum(Earning.author_earning)).group_by(Earning.author_id)
    )
    totals = {author_id: round(float(total or 0), 2) for author_id, total in rows.all()}

    for author_id, total in totals.items():
        await db.execute(
            update(User)
            .where(User.uuid == author_id)
            .values(total_earnings=total)
            .execution_options(synchronize_session=False)
        )
        logger.info(f"Backfilled total earnings for author {author_id}: {total}")

    reset = await db.execute(
        update(User)
        .where(User.uuid.notin_(list(totals)), User.total_earnings != 0)
        .values(total_earnings=0)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    updated = len(totals) + (reset.rowcount or 0)
    logger.info(f"Total earnings backfill complete: {updated} users updated")
    return {"success": True, "updated": updated}


# ── Revenue ledgers ──────────────────────────────────────────────────────────

async def find_subscription_revenue(
    db: AsyncSession, subscription_id: str, stripe_subscription_id: str
) -> Optional[SubscriptionRevenue]:
    result = await db.execute(
        select(SubscriptionRevenue).where(
            SubscriptionRevenue.subscription_id == subscription_id,
            SubscriptionRevenue.stripe_subscription_id == stripe_subscription_id,
        )
    )
    return result.scalar_one_or_none()


async def create_subscription_revenue_record(
    db: AsyncSession,
    *,
    subscription_id: str,
    plan_id: str,
    user_id: str,
    amount: float,
    billing_cycle: str,
    stripe_subscription_id: str,
    revenue_date: Optional[datetime] = None,
) -> SubscriptionRevenue:
    """Book subscription revenue once per (subscription, Stripe subscription)."""
    record = await find_subscription_revenue(db, subscription_id, stripe_subscription_id)
    if record is not None:
        return record

    record = SubscriptionRevenue(
        subscription_id=subscription_id,
        plan_id=plan_id,
        user_id=user_id,
        amount=amount,
        billing_cycle=billing_cycle,
        company_revenue=amount,
        stripe_subscription_id=stripe_subscription_id,
        revenue_date=revenue_date or datetime.utcnow(),
    )
    db.add(record)
    try:
        await db.commit()
    except IntegrityError:
        # Checkout completion and subscription.created can race for the same row
        await db.rollback()
        return await find_subscription_revenue(db, subscription_id, stripe_subscription_id)
    logger.info(f"Subscription revenue recorded: subscription={subscription_id} amount={amount}")
    return record


async def get_subscription_revenue_for_period(db: AsyncSession, period: str) -> float:
    return await _sum(db, SubscriptionRevenue.company_revenue, within(SubscriptionRevenue.revenue_date, period))


async def create_individual_payment_revenue_record(
    db: AsyncSession,
    *,
    payment_id: str,
    asset_id: str,
    author_id: str,
    buyer_id: str,
    amount: float,
    author_revenue: float,
    company_revenue: float,
    is_premium_buyer: bool,
    stripe_payment_intent_id: Optional[str] = None,
    revenue_date: Optional[datetime] = None,
) -> IndividualPaymentRevenue:
    """Book the revenue split of one payment; repeated calls return the first row."""
    result = await db.execute(
        select(IndividualPaymentRevenue).where(IndividualPaymentRevenue.payment_id == payment_id)
    )
    record = result.scalar_one_or_none()
    if record is not None:
        return record

    record = IndividualPaymentRevenue(
        payment_id=payment_id,
        asset_id=asset_id,
        author_id=author_id,
        buyer_id=buyer_id,
        amount=amount,
        author_revenue=author_revenue,
        company_revenue=company_revenue,
        is_premium_buyer=is_premium_buyer,
        stripe_payment_intent_id=stripe_payment_intent_id,
        revenue_date=revenue_date or datetime.utcnow(),
    )
    db.add(record)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        result = await db.execute(
            select(IndividualPaymentRevenue).where(IndividualPaymentRevenue.payment_id == payment_id)
        )
        return result.scalar_one()
    return record


async def get_individual_payment_revenue_for_period(db: AsyncSession, period: str, kind: str = "total") -> float:
    columns = {
        "total": IndividualPaymentRevenue.amount,
        "author": IndividualPaymentRevenue.author_revenue,
        "company": IndividualPaymentRevenue.company_revenue,
    }
    if kind not in columns:
        raise BadRequestError(f"Unknown revenue kind '{kind}'")
    return await _sum(db, columns[kind], within(IndividualPaymentRevenue.revenue_date, period))


# ── Platform revenue reconciliation ──────────────────────────────────────────

async def _payment_revenue_ledger(db: AsyncSession, period: str) -> Tuple[float, float]:
    return (
        await get_individual_payment_revenue_for_period(db, period, "author"),
        await get_individual_payment_revenue_for_period(db, period, "company"),
    )


async def _legacy_earnings_ledger(db: AsyncSession, period: str) -> Tuple[float, float]:
    # Rows from before the per-payment revenue ledger existed have no mirror there
    unmirrored = ~exists().where(IndividualPaymentRevenue.payment_id == Earning.payment_id)
    date_filter = within(Earning.earning_date, period)
    return (
        await _sum(db, Earning.author_earning, unmirrored, date_filter),
        await _sum(db, Earning.company_earning, unmirrored, date_filter),
    )


# TODO: retire the legacy source once a migration copies unmirrored Earning rows
# into individual_payment_revenues.
REVENUE_SOURCES = (
    ("payment_revenue_ledger", _payment_revenue_ledger),
    ("legacy_earnings_ledger", _legacy_earnings_ledger),
)


@dataclass(frozen=True)
class PlatformRevenue:
    """Revenue for one period, summed over every revenue source."""

    author: float
    company: float
    subscription: float
    sources: Dict[str, Dict[str, float]] = field(default_factory=dict)

    @property
    def company_total(self) -> float:
        return round(self.company + self.subscription, 2)

    @property
    def total(self) -> float:
        return round(self.author + self.company + self.subscription, 2)


async def get_platform_revenue_for_period(db: AsyncSession, period: str) -> PlatformRevenue:
    """Author, company and subscription revenue across both one-off payment ledgers.

    A sale is counted once: legacy ``Earning`` rows are only included when the
    per-payment revenue ledger has no row for the same payment.
    """
    author = company = 0.0
    sources: Dict[str, Dict[str, float]] = {}
    for name, source in REVENUE_SOURCES:
        source_author, source_company = await source(db, period)
        sources[name] = {"author": source_author, "company": source_company}
        author += source_author
        company += source_company

    subscription = await get_subscription_revenue_for_period(db, period)
    return PlatformRevenue(
        author=round(author, 2),
        company=round(company, 2),
        subscription=subscription,
        sources=sources,
    )
