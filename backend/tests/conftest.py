"""Pytest configuration and fixtures."""
import itertools
import json
from datetime import datetime, timedelta

import pytest
import stripe
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth.security import create_access_token, hash_password
from app.database import Base, get_db
from app.models.asset import Asset, AssetStatus
from app.models.asset_stats import AssetStats
from app.models.individual_payment import IndividualPayment, PaymentStatus
from app.models.plan import Plan
from app.models.user import User, UserRole
from app.services.payment_gateway import get_payment_gateway
from main import app

TEST_PASSWORD = "TestPass123"

_counter = itertools.count(1)


class FakeGateway:
    """In-memory stand-in for ``StripeGateway``.

    Tests register the sessions and subscriptions Stripe would return, and
    sign webhook payloads by sending the ``valid`` signature.
    """

    configured = True
    VALID_SIGNATURE = "valid"

    def __init__(self):
        self.created_sessions = []
        self.sessions = {}
        self.subscriptions = {}

    def create_checkout_session(self, **params):
        session_id = f"cs_test_{next(_counter)}"
        session = {"id": session_id, "url": f"https://checkout.stripe.test/{session_id}", **params}
        self.created_sessions.append(session)
        return {"id": session_id, "url": session["url"]}

    def retrieve_checkout_session(self, session_id, expand=None):
        return self.sessions[session_id]

    def retrieve_subscription(self, subscription_id):
        return self.subscriptions[subscription_id]

    def create_customer(self, email, name):
        return {"id": f"cus_test_{next(_counter)}", "email": email, "name": name}

    def construct_event(self, payload, signature):
        if signature != self.VALID_SIGNATURE:
            raise stripe.SignatureVerificationError("No signatures found matching the expected signature", signature)
        return json.loads(payload)


@pytest.fixture
async def test_db():
    """Create test database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    AsyncSessionLocal = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with AsyncSessionLocal() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
async def client(test_db, gateway):
    """Async HTTP client with the database and Stripe gateway swapped out."""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def make_user(db, role=UserRole.SUBSCRIBER, email=None, name="Test User", **fields):
    user = User(
        name=name,
        email=email or f"user{next(_counter)}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        status="active",
        **fields,
    )
    db.add(user)
    await db.commit()
    return user


def auth_headers(user):
    token = create_access_token(data={"sub": user.uuid, "email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


async def make_asset(db, author, price=100.0, is_premium=True, status=AssetStatus.APPROVED, created_at=None, **fields):
    number = next(_counter)
    for collection in ("categories", "tags", "compatible_tools"):
        fields.setdefault(collection, [])
    asset = Asset(
        title=fields.pop("title", f"Asset {number}"),
        slug=f"asset-{number}",
        asset_type=fields.pop("asset_type", "photo"),
        status=status,
        is_premium=is_premium,
        price=price,
        author_id=author.uuid,
        created_at=created_at or datetime.utcnow(),
        **fields,
    )
    db.add(asset)
    await db.flush()
    db.add(AssetStats(asset_id=asset.uuid))
    await db.commit()
    return asset


async def make_payment(db, buyer, asset, final_price=None, status=PaymentStatus.COMPLETED, when=None, **fields):
    price = asset.price if final_price is None else final_price
    payment = IndividualPayment(
        user_id=buyer.uuid,
        asset_id=asset.uuid,
        original_price=price,
        discount_amount=0.0,
        final_price=price,
        is_premium_user=buyer.is_premium,
        payment_status=status,
        stripe_session_id=fields.pop("stripe_session_id", f"cs_seed_{next(_counter)}"),
        transaction_date=when or datetime.utcnow(),
        **fields,
    )
    db.add(payment)
    await db.commit()
    return payment


async def make_plan(db, price=19.99, billing_cycle="monthly", stripe_price_id="price_monthly", **fields):
    plan = Plan(
        name=fields.pop("name", f"Pro {next(_counter)}"),
        slug=fields.pop("slug", f"pro-{next(_counter)}"),
        billing_cycle=billing_cycle,
        price=price,
        stripe_price_id=stripe_price_id,
        features=fields.pop("features", ["unlimited downloads"]),
        **fields,
    )
    db.add(plan)
    await db.commit()
    return plan


def days_ago(days):
    return datetime.utcnow() - timedelta(days=days)
