"""Authentication router for user registration, login, and token management."""
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.config import settings
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    RefreshTokenRequest,
    ResetPasswordRequest,
    UserLogin,
    UserRegister,
)
from app.schemas.common import serialize
from app.schemas.users import UserResponse
from app.auth.security import (
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    decode_token,
    hash_password,
    password_fingerprint,
    verify_password,
)
from app.auth.dependencies import get_current_active_user
from app.errors import BadRequestError, ConflictError, NotFoundError, UpstreamError
from app.services.email_service import EmailService
from app.services.payment_gateway import StripeGateway, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter()


def _tokens(user: User) -> dict:
    claims = {"sub": user.uuid, "email": user.email, "role": user.role}
    return {
        "accessToken": create_access_token(data=claims),
        "refreshToken": create_refresh_token(data=claims),
        "tokenType": "bearer",
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    """
    Register a new subscriber or author.

    - Checks email uniqueness
    - Hashes password with bcrypt
    - Creates Stripe customer (non-blocking)
    - Returns JWT tokens
    """
    email = user_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictError("Email already registered")

    new_user = User(
        name=user_data.name,
        email=email,
        password_hash=hash_password(user_data.password),
        role=user_data.role,
        status="active",
    )

    if gateway.configured:
        try:
            customer = gateway.create_customer(email=email, name=user_data.name)
            new_user.stripe_customer_id = customer.get("id")
        except UpstreamError as e:
            # Registration never depends on Stripe being reachable
            logger.warning(f"Stripe customer creation failed for {email}: {e.message}")

    db.add(new_user)
    await db.commit()
    logger.info(f"User registered: {new_user.uuid} ({new_user.role})")

    return success_response(
        "User registered successfully",
        {"user": serialize(UserResponse, new_user), **_tokens(new_user)},
    )


@router.post("/login")
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    """Login with email and password."""
    result = await db.execute(select(User).where(User.email == credentials.email.lower()))
    user = result.scalar_one_or_none()

    if not user or user.is_deleted or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )
    if user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not active"
        )

    return success_response("Logged in successfully", {"user": serialize(UserResponse, user), **_tokens(user)})


@router.post("/refresh")
async def refresh(request: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a refresh token for a new token pair."""
    payload = decode_token(request.refresh_token, token_type="refresh")
    if payload is None or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )

    result = await db.execute(select(User).where(User.uuid == payload["sub"]))
    user = result.scalar_one_or_none()
    if not user or user.is_deleted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return success_response("Token refreshed successfully", _tokens(user))


@router.get("/me")
async def get_current_user_profile(current_user: User = Depends(get_current_active_user)):
    return success_response("User profile retrieved successfully", serialize(UserResponse, current_user))


@router.post("/logout")
async def logout(request: RefreshTokenRequest):
    """
    Log out the caller.

    Tokens are stateless; the client discards its pair and the refresh token
    simply expires. A missing or invalid refresh token means no session.
    """
    if decode_token(request.refresh_token, token_type="refresh") is None:
        raise BadRequestError("You are not logged in")
    return success_response("Logged out successfully")


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    if not verify_password(data.old_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Password is incorrect"
        )

    current_user.password_hash = hash_password(data.new_password)
    await db.commit()
    logger.info(f"Password changed for user {current_user.uuid}")
    return success_response("Password changed successfully")


async def _active_user_by_email(db: AsyncSession, email: str) -> User:
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if not user or user.is_deleted:
        raise NotFoundError("User not found with this email")
    if user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not active"
        )
    return user


@router.post("/forgot-password")
async def forgot_password(data: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    """Mail a short-lived reset link to the account owner."""
    user = await _active_user_by_email(db, data.email)

    token = create_password_reset_token(user.uuid, user.password_hash)
    reset_url = f"{settings.FRONTEND_URL}/reset-password?{urlencode({'email': user.email, 'token': token})}"
    EmailService.send_password_reset_email(user, reset_url)

    logger.info(f"Password reset requested for user {user.uuid}")
    return success_response("Password reset link sent to your email")


@router.post("/reset-password")
async def reset_password(data: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    payload = decode_token(data.token, token_type="password_reset")
    if payload is None:
        raise BadRequestError("Invalid or expired token")

    user = await _active_user_by_email(db, data.email)
    if payload.get("sub") != user.uuid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You are not authorized to reset this user password"
        )
    # A used link no longer matches the stored hash
    if payload.get("pwd") != password_fingerprint(user.password_hash):
        raise BadRequestError("Invalid or expired token")

    user.password_hash = hash_password(data.new_password)
    await db.commit()
    logger.info(f"Password reset for user {user.uuid}")
    return success_response("Password reset successfully")
