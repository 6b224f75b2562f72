"""
Authentication service for registration, login and token management.
Handles JWT token generation and validation and user authentication flows.
"""

from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from propmanager.repositories.user import UserRepository
from propmanager.models.user import User
from propmanager.schemas.user import UserCreate
from propmanager.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
)
from propmanager.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    DuplicateResourceError,
)
from propmanager.utils.validators import parse_uuid
from jose import JWTError, ExpiredSignatureError
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for managing user authentication and tokens.
    Registration does not provision an organization; that happens on the
    first organization-scoped request.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def register(self, user_data: UserCreate) -> User:
        """
        Register a new user.

        Raises:
            DuplicateResourceError: If the email is already registered
        """
        existing = await self.user_repo.get_by_email(user_data.email)
        if existing:
            raise DuplicateResourceError("User", user_data.email)

        user = await self.user_repo.create_user(user_data.model_dump())
        logger.info(f"User registered: {user.email} (ID: {user.id}, role: {user.role.value})")
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        user = await self.user_repo.authenticate_user(email, password)

        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning(f"Login attempt for inactive user: {email}")
            raise InactiveUserError()

        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """
        Create access and refresh tokens for user.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user and create tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)
        logger.info(f"User logged in: {user.email}")
        return user, access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Issue a new access token from a valid refresh token.

        Raises:
            TokenExpiredError: If the refresh token has expired
            InvalidTokenError: If the refresh token is invalid
            InactiveUserError: If user account is inactive
        """
        user = await self._user_from_token(refresh_token, "refresh")
        logger.debug(f"Access token refreshed for user: {user.email}")
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user behind an access token.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid or the user is gone
            InactiveUserError: If user account is inactive
        """
        return await self._user_from_token(token, "access")

    async def _user_from_token(self, token: str, token_type: str) -> User:
        try:
            token_payload = verify_token(token, token_type=token_type)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            raise InvalidTokenError(str(e))

        user_id = parse_uuid(token_payload.user_id)
        user = await self.user_repo.get_by_id(user_id) if user_id else None
        if user is None:
            raise InvalidTokenError("User not found")

        if not user.is_active:
            raise InactiveUserError()

        return user
