"""
Authentication utilities for bearer JWT verification.

The identity provider signs a JWT whose ``sub`` claim is the local user id.
This module verifies the token and loads the user (and roles) from the
database so role checks always see current data.
"""
from typing import Optional

import requests
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from helpdesk.api.deps import get_db
from helpdesk.core.config import settings
from helpdesk.models.user import User

# Security scheme for Bearer token
security = HTTPBearer()

# Cache for JWKS keys (to avoid fetching on every request)
_jwks_cache = None


def get_jwks() -> dict:
    """
    Fetch the provider's JSON Web Key Set, cached for the process lifetime.

    Returns:
        dict: JWKS containing public keys for token verification
    """
    global _jwks_cache

    if _jwks_cache is not None:
        return _jwks_cache

    try:
        response = requests.get(settings.JWT_JWKS_URL, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        return _jwks_cache
    except requests.RequestException as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch JWKS: {str(e)}",
        )


def verify_token(token: str) -> dict:
    """
    Verify a JWT and return its decoded payload.

    Uses the JWKS endpoint when ``JWT_JWKS_URL`` is configured (ES256/RS256),
    otherwise the shared ``JWT_SECRET``.

    Raises:
        HTTPException: If token is invalid or expired
    """
    if settings.JWT_JWKS_URL:
        key = get_jwks()
        algorithms = ["ES256", "RS256"]
    else:
        key = settings.JWT_SECRET
        algorithms = [settings.JWT_ALGORITHM]

    try:
        return jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": settings.JWT_AUDIENCE is not None},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency returning the authenticated, active user.

    Raises:
        HTTPException: If token is missing, invalid, expired or the user is unknown
    """
    payload = verify_token(credentials.credentials)

    user_id: Optional[str] = payload.get("sub")
    user = None
    if user_id is not None and str(user_id).isdigit():
        user = db.query(User).filter(User.id == int(user_id)).first()

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate user",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_roles(*roles: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.put("/settings")
        def update_settings(current_user: User = Depends(require_roles("Admin", "Super Admin"))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if not current_user.has_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {', '.join(roles)}",
            )
        return current_user
    return role_checker
