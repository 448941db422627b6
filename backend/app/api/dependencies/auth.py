# backend/app/api/dependencies/auth.py
"""
Authentication dependencies.

Clients authenticate with the opaque session token issued at login:
``Authorization: Bearer <session_token>``. A missing or malformed header is
rejected with 403, an unknown token with 401.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ...models.user import User
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the calling user from the bearer session token.

    Raises:
        HTTPException: 403 without a bearer token, 401 for an unknown one
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Authentication required", "code": "AUTH_REQUIRED"},
        )

    user = RepositoryFactory.create_user_repository(db).get_by_session_token(credentials.credentials)
    if user is None:
        logger.info("Rejected unknown session token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid or expired session", "code": "INVALID_SESSION"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_user_id(current_user: User = Depends(get_current_user)) -> int:
    return int(current_user.id)
