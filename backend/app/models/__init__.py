"""Database models for the asset marketplace API."""
from app.models.user import User
from app.models.category import Category
from app.models.asset import Asset, AssetTag, AssetTool
from app.models.asset_stats import AssetStats, AssetLike, AssetDownload
from app.models.plan import Plan
from app.models.subscription import Subscription
from app.models.individual_payment import IndividualPayment
from app.models.earning import Earning
from app.models.revenue import SubscriptionRevenue, IndividualPaymentRevenue
from app.models.review import Review
from app.models.contact import ContactTicket

__all__ = [
    "User",
    "Category",
    "Asset",
    "AssetTag",
    "AssetTool",
    "AssetStats",
    "AssetLike",
    "AssetDownload",
    "Plan",
    "Subscription",
    "IndividualPayment",
    "Earning",
    "SubscriptionRevenue",
    "IndividualPaymentRevenue",
    "Review",
    "ContactTicket",
]
