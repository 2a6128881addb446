"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from backend.app.models.enums import UserRole
from backend.app.schemas.user import UserDetailResponse


class UserLogin(BaseModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint. Users log in with their company ID.
    """
    coyno_id: str = Field(..., min_length=1, max_length=50, description="Company ID")
    password: str = Field(..., min_length=1, max_length=50, description="Password")


class UserRegister(BaseModel):
    """
    Schema for user registration.

    Used by POST /auth/register endpoint. Password is optional; users without
    one cannot log in until an admin sets it.
    """
    coyno_id: str = Field(..., min_length=1, max_length=50, description="Company ID")
    email: EmailStr = Field(..., description="User email address")
    password: Optional[str] = Field(None, min_length=6, description="Password (min 6 characters)")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    department_id: Optional[int] = None
    user_role: UserRole = Field(default=UserRole.DRIVER, description="User role (defaults to DRIVER)")


class AddAdminRequest(BaseModel):
    """Promote an existing user to admin and reset their password."""
    coyno_id: Optional[str] = Field(None, max_length=50)
    password: Optional[str] = Field(None, max_length=50)


class AuthResponse(BaseModel):
    """
    Schema for login/register responses.

    Returned by successful login/register operations.
    """
    success: bool = True
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserDetailResponse
