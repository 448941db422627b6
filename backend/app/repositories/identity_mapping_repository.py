# backend/app/repositories/identity_mapping_repository.py
"""Identity mapping repository (local user id <-> external auth UUID)."""

from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, is_integrity_violation
from ..models.identity_mapping import IdentityMapping
from .base_repository import BaseRepository


class IdentityMappingRepository(BaseRepository[IdentityMapping]):
    """Repository for IdentityMapping rows."""

    def __init__(self, db: Session):
        super().__init__(db, IdentityMapping)

    def get_external_uuid(self, local_user_id: int) -> Optional[str]:
        mapping = self.get_by_id(local_user_id)
        return mapping.external_uuid if mapping else None

    def get_local_user_id(self, external_uuid: str) -> Optional[int]:
        mapping = self.find_one_by(external_uuid=external_uuid)
        return mapping.local_user_id if mapping else None

    def save_mapping(self, local_user_id: int, external_uuid: str, *, degraded: bool = False) -> str:
        """
        Persist a mapping and return the UUID that ended up stored.

        If another request mapped the same user first, the stored UUID wins.
        """
        try:
            self.create(local_user_id=local_user_id, external_uuid=external_uuid, degraded=degraded)
        except RepositoryException as exc:
            if not is_integrity_violation(exc):
                raise
            stored = self.get_external_uuid(local_user_id)
            if stored is None:
                raise
            return stored
        return external_uuid
