# backend/app/repositories/user_repository.py
"""
User Repository for the MOVT backend.

Backs the session store (bearer token lookup) and the small profile reads the
chat listing and identity bridge need.
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User lookups."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_session_token(self, token: str) -> Optional[User]:
        """Resolve an opaque session token to its user."""
        if not token:
            return None
        return self.find_one_by(session_token=token)

    def get_by_email(self, email: str) -> Optional[User]:
        query = self.db.query(User).filter(func.lower(User.email) == email.strip().lower())
        rows = self._execute_query(query.limit(1))
        return rows[0] if rows else None

    def get_email(self, user_id: int) -> Optional[str]:
        user = self.get_by_id(user_id)
        return user.email if user else None

    def get_many(self, user_ids: Iterable[int]) -> Dict[int, User]:
        """Fetch several users at once, keyed by id."""
        ids: List[int] = sorted({int(uid) for uid in user_ids})
        if not ids:
            return {}
        try:
            rows = self.db.query(User).filter(User.id.in_(ids)).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading users {ids}: {str(e)}")
            raise RepositoryException(f"Failed to load users: {str(e)}") from e
        return {row.id: row for row in rows}
