"""Revenue split for one-off asset purchases.

Split formula
-------------
1. The platform keeps a fixed 30% of the listed price; the remaining 70% is
   the *discounted base*.
2. The author gets 70% of the base when the buyer is premium (platform fee
   30%) and 60% otherwise (platform fee 40%). The author share is computed
   from the unrounded base and rounded to cents.
3. The company gets the base rounded to cents minus the author share, so
   ``author + company == round(price * 0.7, 2)`` holds exactly.
4. ``platform_fee`` is ``price - base`` rounded to cents.

All rounding is half-up on ``Decimal`` values.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

CENT = Decimal("0.01")
BASE_RATE = Decimal("0.70")
PREMIUM_AUTHOR_SHARE = Decimal("0.70")
STANDARD_AUTHOR_SHARE = Decimal("0.60")
PREMIUM_FEE_PERCENTAGE = 30
STANDARD_FEE_PERCENTAGE = 40
PREMIUM_BUYER_DISCOUNT = Decimal("0.30")

Number = Union[int, float, str, Decimal]


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _as_decimal(value: Number) -> Decimal:
    # str() keeps 49.99 as 49.99 instead of its binary float expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class EarningsSplit:
    platform_fee_percentage: int
    author_earning: Decimal
    company_earning: Decimal
    platform_fee: Decimal
    discounted_price: Decimal

    def as_floats(self) -> dict:
        return {
            "platformFeePercentage": self.platform_fee_percentage,
            "authorEarning": float(self.author_earning),
            "companyEarning": float(self.company_earning),
            "platformFee": float(self.platform_fee),
            "discountedPrice": float(self.discounted_price),
        }


@dataclass(frozen=True)
class PaymentAmount:
    original_price: Decimal
    discount_amount: Decimal
    final_price: Decimal


def calculate_earnings(asset_price: Number, is_premium_buyer: bool) -> EarningsSplit:
    """Split an asset price between author and company.

    Parameters
    ----------
    asset_price:
        Listed asset price in USD. Must be non-negative.
    is_premium_buyer:
        Whether the buyer held an active subscription at purchase time.

    Returns
    -------
    EarningsSplit
        Cent-rounded author and company earnings, the platform fee amount
        and percentage, and the rounded discounted base.
    """
    price = _as_decimal(asset_price)
    if price < 0:
        raise ValueError("asset_price must be non-negative")

    # ── 1. Platform baseline discount ────────────────────────────────────────
    discounted = price * BASE_RATE

    # ── 2. Author share of the unrounded base ───────────────────────────────
    if is_premium_buyer:
        share, fee_percentage = PREMIUM_AUTHOR_SHARE, PREMIUM_FEE_PERCENTAGE
    else:
        share, fee_percentage = STANDARD_AUTHOR_SHARE, STANDARD_FEE_PERCENTAGE
    author = to_cents(discounted * share)

    # ── 3. Company takes the rest of the rounded base ───────────────────────
    discounted_cents = to_cents(discounted)
    company = discounted_cents - author

    # ── 4. Platform fee ──────────────────────────────────────────────────────
    platform_fee = to_cents(price - discounted)

    return EarningsSplit(
        platform_fee_percentage=fee_percentage,
        author_earning=author,
        company_earning=company,
        platform_fee=platform_fee,
        discounted_price=discounted_cents,
    )


def calculate_payment_amount(
    price: Number,
    discount_price: Optional[Number],
    is_premium_user: bool,
) -> PaymentAmount:
    """Amount charged at checkout.

    The listing's discount price replaces the price when set and becomes the
    ``original_price`` the earnings split is computed from. Premium buyers get
    a further 30% off, reported as ``discount_amount``.
    """
    source = discount_price if discount_price is not None else price
    base = to_cents(_as_decimal(source))
    premium_discount = to_cents(base * PREMIUM_BUYER_DISCOUNT) if is_premium_user else Decimal("0.00")
    return PaymentAmount(
        original_price=base,
        discount_amount=premium_discount,
        final_price=max(Decimal("0.00"), base - premium_discount),
    )
