"""
Authentication API endpoints.

Provides login, register, logout, profile and admin promotion endpoints for
the dashboard and other clients.
"""

import logging
import uuid
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.orm import selectinload
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.models.user_session import UserSession
from backend.app.models.enums import UserRole
from backend.app.schemas.auth import UserRegister, UserLogin, AddAdminRequest, AuthResponse
from backend.app.schemas.user import UserDetailResponse
from backend.app.schemas.common import MessageResponse
from backend.app.core.security import get_password_hash, verify_password
from backend.app.core.jwt import create_access_token, decode_access_token, token_expiry
from backend.app.core.dependencies import get_current_user, get_bearer_token
from backend.app.core.guards import require_role
from backend.app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


async def _load_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User)
        .options(selectinload(User.department))
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _issue_token(db: AsyncSession, user: User, request: Request) -> str:
    """Sign a token for the user and record the matching session."""
    jwt_payload = {
        "sub": str(user.id),
        "user_id": user.id,
        "email": user.email,
        "role": user.user_role.value,
        # session_token is unique, even for logins within the same second
        "jti": uuid.uuid4().hex,
    }
    token = create_access_token(data=jwt_payload)

    db.add(UserSession(
        user_id=user.id,
        session_token=token,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        expires_at=token_expiry(decode_access_token(token)),
        is_active=True,
    ))
    return token


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login with company ID and password, returning a JWT token.

    Updates last_login_at and records a session for the issued token.
    """
    result = await db.execute(
        select(User)
        .where(User.coyno_id == credentials.coyno_id)
        .order_by(User.id)
        .limit(1)
    )
    user = result.scalars().first()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning(f"Failed login attempt for company ID {credentials.coyno_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    user.last_login_at = datetime.now()
    token = await _issue_token(db, user, request)
    await db.commit()

    logger.info(f"User {user.id} logged in")
    user = await _load_user(db, user.id)
    return AuthResponse(token=token, user=UserDetailResponse.model_validate(user))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    request: Request,
    current_user: User = Depends(require_role([UserRole.ADMIN, UserRole.MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user (Admin and Manager only).

    Email and company ID must both be unused. The returned token belongs to
    the new user.
    """
    result = await db.execute(
        select(User).where(
            or_(User.email == user_data.email, User.coyno_id == user_data.coyno_id)
        )
    )
    if result.scalars().first():
        raise ConflictError("User with this email or company ID already exists")

    new_user = User(
        coyno_id=user_data.coyno_id,
        email=user_data.email,
        password_hash=get_password_hash(user_data.password) if user_data.password else None,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        phone=user_data.phone,
        department_id=user_data.department_id,
        user_role=user_data.user_role,
        is_active=True,
    )
    db.add(new_user)
    await db.flush()

    token = await _issue_token(db, new_user, request)
    await db.commit()

    logger.info(f"New user registered: {new_user.email} by user {current_user.id}")
    new_user = await _load_user(db, new_user.id)
    return AuthResponse(token=token, user=UserDetailResponse.model_validate(new_user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db)
):
    """
    Deactivate the session recorded for this token.

    The token itself remains valid until it expires.
    """
    result = await db.execute(
        select(UserSession).where(UserSession.session_token == token)
    )
    session = result.scalar_one_or_none()

    if session is None:
        logger.info(f"User {current_user.id} logged out with an unrecorded token")
    else:
        if not session.is_valid():
            logger.info(f"Session {session.id} was already inactive or expired")
        session.is_active = False
        await db.commit()

    logger.info(f"User {current_user.id} logged out")
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=UserDetailResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get current authenticated user information, including department.
    """
    return UserDetailResponse.model_validate(current_user)


@router.post("/add-admin", response_model=UserDetailResponse)
async def add_admin(
    payload: AddAdminRequest,
    current_user: User = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Promote an existing user to admin and set their password (Admin only).
    """
    if not payload.coyno_id or not payload.password:
        raise ValidationFailedError("Company ID and password are required")

    result = await db.execute(
        select(User).where(User.coyno_id == payload.coyno_id).order_by(User.id).limit(1)
    )
    user = result.scalars().first()

    if not user:
        raise ResourceNotFoundError("User", message="User with this company ID does not exist")

    if user.user_role == UserRole.ADMIN:
        raise ConflictError("User is already an admin")

    user.password_hash = get_password_hash(payload.password)
    user.user_role = UserRole.ADMIN
    await db.commit()

    logger.info(f"User {user.id} promoted to admin by user {current_user.id}")
    user = await _load_user(db, user.id)
    return UserDetailResponse.model_validate(user)
