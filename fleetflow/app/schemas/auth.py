"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from fleetflow.app.models.enums import UserRole


class UserRegister(BaseModel):
    """
    Schema for user registration.

    Used by POST /auth/register endpoint.
    Default role is DISPATCHER.
    """
    name: str = Field(..., min_length=1, max_length=255, description="Full name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    role: Optional[UserRole] = Field(default=UserRole.DISPATCHER, description="User role (defaults to Dispatcher)")


class VerifyOtp(BaseModel):
    """Schema for POST /auth/verify-otp."""
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$", description="6-digit code from the email")


class EmailOnly(BaseModel):
    """Body of POST /auth/resend-otp and POST /auth/forgot-password."""
    email: EmailStr


class ResetPassword(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")
    new_password: str = Field(..., min_length=6, description="New password (min 6 characters)")


class UserLogin(BaseModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint.
    """
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class UserResponse(BaseModel):
    """
    Public view of a user.

    Used inside the login and /auth/me responses.
    """
    id: int
    name: str
    email: str
    role: UserRole


class MessageResponse(BaseModel):
    message: str
    email: Optional[str] = None


class LoginResponse(BaseModel):
    """
    Schema for a successful login.

    The token goes in the Authorization header as "Bearer <token>".
    """
    message: str = "Login successful"
    token: str = Field(..., description="JWT access token")
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse
