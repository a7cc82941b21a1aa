"""Authentication routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.database import get_db
from app.models import User, SystemRole
from app.auth import schemas
from app.auth.utils import (
    get_password_hash,
    verify_password,
    create_access_token,
    generate_token,
    get_password_reset_expiry,
    is_expired,
)
from app.auth.dependencies import get_current_user
from app.businesses.service import activate_pending_memberships
from app.config import settings
from app.middleware.rate_limit import limiter
from app.notifications.service import get_notification_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _auth_response(response: Response, user: User) -> schemas.AuthResponse:
    """Issue a token, set it as the session cookie and build the response body."""
    token = create_access_token(user.id, user.email, user.system_role)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return schemas.AuthResponse(
        access_token=token,
        user=schemas.UserAuthInfo.model_validate(user)
    )


@router.post("/signup", response_model=schemas.AuthResponse)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def signup(
    request: Request,
    response: Response,
    data: schemas.SignupRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new client user with email and password.
    Returns JWT token on success.
    """
    email = data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    existing_user = result.scalar_one_or_none()

    if existing_user:
        if existing_user.hashed_password is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This email has a pending invitation. Use the invite link to set a password."
            )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        email=email,
        hashed_password=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        system_role=SystemRole.CLIENT.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"New user signed up: {user.id}")
    return _auth_response(response, user)


@router.post("/login", response_model=schemas.AuthResponse)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def login(
    request: Request,
    response: Response,
    data: schemas.LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate user with email and password.
    Returns JWT token on success and sets the session cookie.
    """
    result = await db.execute(select(User).where(User.email == data.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not user.hashed_password or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not verify_password(data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    return _auth_response(response, user)


@router.post("/logout", response_model=schemas.MessageResponse)
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return schemas.MessageResponse(message="Logged out")


@router.get("/me", response_model=schemas.UserAuthInfo)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user info."""
    return schemas.UserAuthInfo.model_validate(current_user)


@router.post("/forgot-password", response_model=schemas.MessageResponse)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def forgot_password(
    request: Request,
    data: schemas.ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Request a password reset email.
    Always returns success to prevent email enumeration attacks.
    """
    result = await db.execute(select(User).where(User.email == data.email.lower()))
    user = result.scalar_one_or_none()

    if user and user.is_active:
        token = generate_token()
        user.password_reset_token = token
        user.password_reset_expires = get_password_reset_expiry()
        await db.commit()

        await get_notification_service(db).send_password_reset_email(user.email, token)

    return schemas.MessageResponse(
        message="If an account with that email exists, we've sent password reset instructions."
    )


@router.post("/reset-password", response_model=schemas.MessageResponse)
async def reset_password(
    data: schemas.ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Reset password using a valid reset token.
    """
    result = await db.execute(
        select(User).where(User.password_reset_token == data.token)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    if is_expired(user.password_reset_expires):
        # Clear the expired token
        user.password_reset_token = None
        user.password_reset_expires = None
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reset token has expired. Please request a new one."
        )

    user.hashed_password = get_password_hash(data.new_password)
    user.password_reset_token = None
    user.password_reset_expires = None
    if user.invite_token:
        # Setting a password this way also completes a pending invite
        user.invite_token = None
        user.invite_expires = None
    await activate_pending_memberships(db, user)
    await db.commit()

    logger.info(f"Password reset for user {user.id}")

    return schemas.MessageResponse(
        message="Your password has been reset successfully. You can now log in."
    )


@router.post("/change-password", response_model=schemas.MessageResponse)
async def change_password(
    data: schemas.ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Change password for authenticated user.
    Requires current password verification.
    """
    if not current_user.hashed_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No password set. Please use forgot password to set one."
        )

    if not verify_password(data.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    current_user.hashed_password = get_password_hash(data.new_password)
    await db.commit()

    return schemas.MessageResponse(
        message="Password changed successfully"
    )


@router.post("/accept-invite", response_model=schemas.AuthResponse)
async def accept_invite(
    response: Response,
    data: schemas.AcceptInviteRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Accept an invitation: set a password and activate pending memberships.
    """
    result = await db.execute(select(User).where(User.invite_token == data.token))
    user = result.scalar_one_or_none()

    if not user or is_expired(user.invite_expires):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired invite"
        )

    user.hashed_password = get_password_hash(data.password)
    if data.first_name:
        user.first_name = data.first_name
    if data.last_name:
        user.last_name = data.last_name
    user.invite_token = None
    user.invite_expires = None

    await activate_pending_memberships(db, user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"Invite accepted by user {user.id}")
    return _auth_response(response, user)
