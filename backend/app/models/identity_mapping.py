# backend/app/models/identity_mapping.py
"""
Mapping between local integer user ids and external auth UUIDs.

``degraded`` marks identifiers derived locally because the external provider
could not provision an account; they are deterministic so a later retry
produces the same value.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String

from ..database import Base


class IdentityMapping(Base):
    """One row per local user that has been bridged to an external identity."""

    __tablename__ = "user_id_mapping"

    local_user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    external_uuid = Column(String(36), nullable=False)
    degraded = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (Index("idx_user_id_mapping_external", "external_uuid"),)

    def __repr__(self) -> str:
        flag = " degraded" if self.degraded else ""
        return f"<IdentityMapping {self.local_user_id} -> {self.external_uuid}{flag}>"
