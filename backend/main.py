"""
FastAPI application entry point for the asset marketplace API.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from app.config import settings
from app.database import build_engine, build_sessionmaker
from app.errors import register_exception_handlers
from app.logging_config import setup_logging
from app.routers import (
    asset_stats, assets, auth, categories, contacts, dashboard, payments, plans, reviews, subscriptions, users, webhooks,
)
from app.services.payment_gateway import StripeGateway

# Get logger for request logging
logger = logging.getLogger(__name__)

# Configure logging
setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    logger.info("Starting up Asset Marketplace API...")
    engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    app.state.engine = engine
    app.state.session_factory = build_sessionmaker(engine)
    app.state.payment_gateway = StripeGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY is not set; checkout endpoints will fail")

    yield
    # Shutdown
    logger.info("Shutting down Asset Marketplace API...")
    await engine.dispose()


app = FastAPI(
    title="Asset Marketplace API",
    description="Backend API for the digital asset marketplace",
    version="0.1.0",
    lifespan=lifespan
)

# Configure rate limiter
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

register_exception_handlers(app)

# Parse CORS origins from config
# In development mode, allow all origins for easier local development
if settings.ENVIRONMENT == "development" or settings.DEBUG:
    cors_origins = ["*"]
else:
    cors_origins = (
        ["*"] if settings.CORS_ORIGINS == "*"
        else [origin.strip() for origin in settings.CORS_ORIGINS.split(",")]
    )

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests with method, path, origin, and response status."""
    origin = request.headers.get("origin", "no-origin")
    logger.info(f"Request: {request.method} {request.url.path} | Origin: {origin}")

    response = await call_next(request)

    logger.info(f"Response: {request.method} {request.url.path} | Status: {response.status_code}")
    return response

# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
app.include_router(assets.router, prefix="/api/assets", tags=["assets"])
app.include_router(asset_stats.router, prefix="/api/asset-stats", tags=["asset-stats"])
app.include_router(plans.router, prefix="/api/plans", tags=["plans"])
app.include_router(subscriptions.router, prefix="/api/subscriptions", tags=["subscriptions"])
app.include_router(payments.router, prefix="/api/payments", tags=["payments"])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["webhooks"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["reviews"])
app.include_router(contacts.router, prefix="/api/contacts", tags=["contacts"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
