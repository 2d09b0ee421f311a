"""
ExamFlow - Authentication Service
Business logic for setter/taker registration, login and token issuance
"""
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from examflow.core.config import settings
from examflow.core.security import (
    create_access_token,
    hash_password,
    verify_password,
)
from examflow.models.user import User, UserRole
from examflow.schemas.user import TokenResponse, UserCreate
from examflow.services.errors import AccessDeniedError, AlreadyExistsError

logger = logging.getLogger(__name__)


class InvalidCredentialsError(Exception):
    """Invalid email or password."""
    pass


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_user(self, user_data: UserCreate) -> User:
        """
        Register a new setter or taker account.

        Raises:
            AlreadyExistsError: If the email is already registered
        """
        existing = await self.db.execute(
            select(User).where(User.email == user_data.email)
        )
        if existing.scalar_one_or_none():
            raise AlreadyExistsError("User with this email already exists")

        user = User(
            email=user_data.email,
            hashed_password=hash_password(user_data.password),
            role=user_data.role,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise AlreadyExistsError("User with this email already exists")

        logger.info("Registered %s account %s", user_data.role.value, user.id)
        return user

    async def authenticate(self, email: str, password: str, role: UserRole) -> User:
        """
        Authenticate a user for the given role.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            AccessDeniedError: If the account exists but has another role
        """
        result = await self.db.execute(
            select(User).where(User.email == email)
        )
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError("Invalid email or password")

        if user.role != role:
            raise AccessDeniedError("Access denied for this role")

        return user

    def create_token(self, user: User) -> TokenResponse:
        """Create an access token carrying the user's role."""
        role_value = UserRole(user.role).value
        access_token = create_access_token(user.id, role_value)
        return TokenResponse(
            access_token=access_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            role=role_value,
            user_id=user.id,
        )

    async def get_user_by_id(self, user_id: str | uuid.UUID) -> User | None:
        """Get user by ID."""
        if isinstance(user_id, str):
            try:
                user_id = uuid.UUID(user_id)
            except ValueError:
                return None

        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()
