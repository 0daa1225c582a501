"""
Shared route dependencies — bearer credential extraction and role gates.
"""
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from solar_portal.database import get_db
from solar_portal.exceptions import AuthenticationError
from solar_portal.services.auth_service import AuthService, AuthenticatedUser

# auto_error=False so payment routes can answer with their own error envelope
bearer_scheme = HTTPBearer(auto_error=False)


def client_ip(request) -> Optional[str]:
    return request.client.host if request.client else None


def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    try:
        return AuthService.resolve_user(credentials)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=e.message)


def require_admin(
    user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
) -> AuthenticatedUser:
    if not AuthService.is_admin(db, user.user_id):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
