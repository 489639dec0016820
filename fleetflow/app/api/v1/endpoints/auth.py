"""
Authentication API endpoints.

Registration with emailed OTP verification, login, logout, password reset
and current user info.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetflow.app.db.session import get_db
from fleetflow.app.models.user import User
from fleetflow.app.schemas.auth import (
    UserRegister, VerifyOtp, EmailOnly, ResetPassword, UserLogin,
    UserResponse, MessageResponse, LoginResponse, MeResponse,
)
from fleetflow.app.core.security import get_password_hash, verify_password
from fleetflow.app.core.jwt import create_access_token
from fleetflow.app.core.dependencies import AuthSession, get_current_user
from fleetflow.app.core.exceptions import AuthenticationError, EmailDeliveryError
from fleetflow.app.core.redis_client import get_redis
from fleetflow.app.core.token_revocation import revoke_token
from fleetflow.app.services.audit import log_auth_event, AuditAction
from fleetflow.app.services.email import EmailService
from fleetflow.app.services.otp import issue_otp, verify_otp

router = APIRouter(prefix="/auth", tags=["Authentication"])


def to_user_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, name=user.full_name, email=user.email, role=user.role)


async def get_user_by_email(db: AsyncSession, email: str) -> User:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user_or_404(db: AsyncSession, email: str) -> User:
    user = await get_user_by_email(db, email)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


def require_verified(user: User) -> None:
    """Password resets are only for accounts that finished verification."""
    if not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please verify your email first"
        )


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user and email them a verification code.

    The account stays unverified, and cannot log in, until the code is
    confirmed through /auth/verify-otp. If the email cannot be sent the
    account is removed again so the address can be reused.
    """
    email = user_data.email.lower()

    if await get_user_by_email(db, email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    new_user = User(
        email=email,
        full_name=user_data.name,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        is_verified=False,
    )
    otp = issue_otp(new_user)

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    try:
        await EmailService.send_otp_email(new_user.email, new_user.full_name, otp)
    except EmailDeliveryError:
        await db.delete(new_user)
        await db.commit()
        raise

    await log_auth_event(
        db=db,
        action=AuditAction.USER_REGISTERED,
        user_id=new_user.id,
        email=new_user.email,
        metadata={"role": new_user.role.value}
    )

    return MessageResponse(
        message="Registration successful! Please check your email for OTP.",
        email=new_user.email
    )


@router.post("/verify-otp", response_model=MessageResponse)
async def verify_email(
    payload: VerifyOtp,
    db: AsyncSession = Depends(get_db)
):
    """Confirm the emailed code and mark the account verified."""
    user = await get_user_or_404(db, payload.email)

    if user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already verified"
        )

    verify_otp(user, payload.otp)
    user.is_verified = True
    await db.commit()

    await log_auth_event(
        db=db,
        action=AuditAction.USER_VERIFIED,
        user_id=user.id,
        email=user.email
    )

    return MessageResponse(message="Email verified successfully! You can now login.")


@router.post("/resend-otp", response_model=MessageResponse)
async def resend_otp(
    payload: EmailOnly,
    db: AsyncSession = Depends(get_db)
):
    """Issue a fresh verification code; the previous one stops working."""
    user = await get_user_or_404(db, payload.email)

    if user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already verified"
        )

    otp = issue_otp(user)
    await db.commit()
    await EmailService.send_otp_email(user.email, user.full_name, otp)

    return MessageResponse(message="A new OTP has been sent to your email.", email=user.email)


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Logs successful and failed login attempts for security monitoring.
    """
    user = await get_user_by_email(db, credentials.email)

    if not user or not verify_password(credentials.password, user.hashed_password):
        # Log failed login attempt
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id if user else None,
            email=credentials.email,
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        raise AuthenticationError("Invalid email or password")

    if not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email first"
        )

    # The role claim is informational; guards read the role from the database
    jwt_payload = {
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
    }
    access_token = create_access_token(data=jwt_payload)

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        email=user.email
    )

    return LoginResponse(token=access_token, user=to_user_response(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Revoke the bearer token used for this request."""
    if not await revoke_token(redis, current_user.token, current_user.claims):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not revoke token, please try again"
        )

    await log_auth_event(
        db=db,
        action=AuditAction.LOGOUT,
        user_id=current_user.user_id,
        email=current_user.email
    )
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: EmailOnly,
    db: AsyncSession = Depends(get_db)
):
    """Email a password reset code to a verified user."""
    user = await get_user_or_404(db, payload.email)
    require_verified(user)

    otp = issue_otp(user)
    await db.commit()
    await EmailService.send_otp_email(user.email, user.full_name, otp, purpose="password_reset")

    return MessageResponse(message="Password reset OTP sent to your email.", email=user.email)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPassword,
    db: AsyncSession = Depends(get_db)
):
    """Set a new password using the code from /auth/forgot-password."""
    user = await get_user_or_404(db, payload.email)
    require_verified(user)

    verify_otp(user, payload.otp)
    user.hashed_password = get_password_hash(payload.new_password)
    await db.commit()

    await log_auth_event(
        db=db,
        action=AuditAction.PASSWORD_RESET,
        user_id=user.id,
        email=user.email
    )

    return MessageResponse(message="Password reset successfully. You can now login.")


@router.get("/me", response_model=MeResponse)
async def get_current_user_info(
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Requires valid JWT token in Authorization header.
    """
    result = await db.execute(select(User).where(User.id == current_user.user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return MeResponse(user=to_user_response(user))
