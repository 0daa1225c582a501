"""
Auth Service — Resolves the caller from the auth provider's bearer JWT.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from solar_portal.config import get_settings
from solar_portal.exceptions import AuthenticationError
from solar_portal.models.profile import UserRole


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    email: Optional[str] = None


class AuthService:
    """Verifies access tokens locally with the provider's shared JWT secret."""

    @staticmethod
    def decode_access_token(token: str) -> Optional[AuthenticatedUser]:
        """Decode a bearer token. Returns None for any invalid, expired or foreign token.

        Claims used:
            sub   -> user id
            email -> contact email (optional)
        """
        settings = get_settings()
        try:
            payload = jwt.decode(
                token,
                settings.AUTH_JWT_SECRET,
                algorithms=[settings.AUTH_JWT_ALGORITHM],
                audience=settings.AUTH_JWT_AUDIENCE,
            )
        except JWTError:
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None
        return AuthenticatedUser(user_id=str(user_id), email=payload.get("email"))

    @staticmethod
    def resolve_user(credentials: Optional[HTTPAuthorizationCredentials]) -> AuthenticatedUser:
        if credentials is None or not credentials.credentials:
            raise AuthenticationError("User not authenticated")
        user = AuthService.decode_access_token(credentials.credentials)
        if user is None:
            raise AuthenticationError("User not authenticated")
        return user

    @staticmethod
    def is_admin(db: Session, user_id: str) -> bool:
        role = (
            db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role == "admin")
            .first()
        )
        return role is not None
