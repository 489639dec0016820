"""
One-time passcodes for email verification and password resets.

Codes are six digits, stored on the user row with an expiry and cleared
once used. Expiry times are naive UTC to match the otp_expiry column.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fleetflow.app.core.config import settings
from fleetflow.app.core.exceptions import BusinessRuleError
from fleetflow.app.models.user import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_otp() -> str:
    """Random code in 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


def issue_otp(user: User, now: Optional[datetime] = None) -> str:
    """Attach a fresh code to the user and return it. The caller commits."""
    now = now or utcnow()
    code = generate_otp()
    user.otp = code
    user.otp_expiry = now + timedelta(minutes=settings.otp_ttl_minutes)
    return code


def verify_otp(user: User, code: str, now: Optional[datetime] = None) -> None:
    """
    Check a submitted code against the one stored on the user.

    Clears the stored code on success.

    Raises:
        BusinessRuleError: code missing, wrong or expired
    """
    now = now or utcnow()

    if not user.otp or user.otp != code:
        raise BusinessRuleError("Invalid OTP")

    expiry = user.otp_expiry
    if expiry is not None and expiry.tzinfo is not None:
        expiry = expiry.astimezone(timezone.utc).replace(tzinfo=None)
    if expiry is None or now > expiry:
        raise BusinessRuleError("OTP has expired. Please request a new one.")

    user.otp = None
    user.otp_expiry = None
