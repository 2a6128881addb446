"""
User Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional, List
from backend.app.models.enums import UserRole
from backend.app.schemas.common import DepartmentBrief, reject_null


class UserResponse(BaseModel):
    """Schema for user information response. Never exposes the password hash."""
    id: int
    coyno_id: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str] = None
    department_id: Optional[int] = None
    user_role: UserRole
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserDetailResponse(UserResponse):
    department: Optional[DepartmentBrief] = None


class UserUpdate(BaseModel):
    """Schema for admin updates to a user."""
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    department_id: Optional[int] = None
    user_role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=6)

    @field_validator("email", "first_name", "last_name", "user_role", "is_active")
    @classmethod
    def required_columns_not_null(cls, value):
        return reject_null(value)


class UserListResponse(BaseModel):
    """Schema for paginated user list."""
    items: List[UserDetailResponse]
    total: int
    page: int
    page_size: int
