# backend/app/services/identity_bridge.py
"""
Identity Bridge: local integer user ids <-> external auth UUIDs.

Messaging is keyed by external UUIDs while the rest of the API speaks local
integer ids. Resolution is lazy: the first time a user needs a UUID we look
for an existing account with the same email, provision one if none exists,
and as a last resort derive a deterministic UUID from the user's id and
email so messaging keeps working while the provider is down.
"""

import hashlib
import logging
from typing import Dict, Optional, Union

from sqlalchemy.orm import Session

from ..core.exceptions import IdentityNotFoundException
from ..integrations.identity_provider import IdentityProvider, NullIdentityProvider
from ..integrations.supabase_client import SupabaseError
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


def generate_fallback_uuid(local_user_id: int, email: str) -> str:
    """Deterministic UUID-shaped id: md5("<id>-<email>") laid out 8-4-4-4-12."""
    digest = hashlib.md5(f"{local_user_id}-{email}".encode("utf-8")).hexdigest()
    return f"{digest[0:8]}-{digest[8:12]}-{digest[12:16]}-{digest[16:20]}-{digest[20:32]}"


class IdentityBridgeService(BaseService):
    """
    Resolves and persists identity mappings.

    Instances are request-scoped; resolutions are memoized on the instance so
    one request never resolves the same user twice.
    """

    def __init__(self, db: Session, provider: Optional[IdentityProvider] = None):
        super().__init__(db)
        self.provider: IdentityProvider = provider or NullIdentityProvider()
        self.mapping_repository = RepositoryFactory.create_identity_mapping_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self._external_by_local: Dict[int, str] = {}
        self._local_by_external: Dict[str, int] = {}

    def _remember(self, local_user_id: int, external_uuid: str) -> str:
        self._external_by_local[local_user_id] = external_uuid
        self._local_by_external[external_uuid] = local_user_id
        return external_uuid

    @BaseService.measure_operation("resolve_external_uuid")
    def resolve_external_uuid(self, local_user_id: int) -> Optional[str]:
        """
        Return the external UUID for a local user, creating the mapping if needed.

        Returns None when the user does not exist or has no email.
        """
        if local_user_id in self._external_by_local:
            return self._external_by_local[local_user_id]

        stored = self.mapping_repository.get_external_uuid(local_user_id)
        if stored:
            prometheus_metrics.inc_identity_resolution("mapped")
            return self._remember(local_user_id, stored)

        email = self.user_repository.get_email(local_user_id)
        if not email:
            prometheus_metrics.inc_identity_resolution("missing")
            self.logger.info("No email for user; identity unresolved", extra={"user_id": local_user_id})
            return None

        external_uuid, outcome = self._lookup_or_provision(local_user_id, email)

        with self.transaction():
            persisted = self.mapping_repository.save_mapping(
                local_user_id, external_uuid, degraded=(outcome == "degraded")
            )

        prometheus_metrics.inc_identity_resolution(outcome)
        self.log_operation(
            "identity_mapped",
            user_id=local_user_id,
            outcome=outcome,
            external_uuid=persisted,
        )
        return self._remember(local_user_id, persisted)

    def _lookup_or_provision(self, local_user_id: int, email: str) -> tuple[str, str]:
        try:
            found = self.provider.find_account_by_email(email)
        except SupabaseError as exc:
            self.logger.warning(
                "Identity provider lookup failed; trying provisioning",
                extra={"user_id": local_user_id, "error": str(exc)},
            )
            found = None
        if found:
            return found, "found"

        try:
            return self.provider.provision_account(email), "provisioned"
        except SupabaseError as exc:
            fallback = generate_fallback_uuid(local_user_id, email)
            self.logger.warning(
                "Provisioning failed; using deterministic fallback identity",
                extra={"user_id": local_user_id, "error": str(exc), "external_uuid": fallback},
            )
            return fallback, "degraded"

    def require_external_uuid(self, local_user_id: int) -> str:
        external_uuid = self.resolve_external_uuid(local_user_id)
        if not external_uuid:
            raise IdentityNotFoundException(local_user_id)
        return external_uuid

    @BaseService.measure_operation("resolve_local_user_id")
    def resolve_local_user_id(self, candidate: Union[str, int, None]) -> Optional[int]:
        """
        Map a caller-supplied identifier to a local user id.

        UUID-looking strings go through the reverse mapping first; anything
        else must parse as an integer. Returns None when nothing matches.
        """
        if candidate is None or isinstance(candidate, bool):
            return None
        if isinstance(candidate, int):
            return candidate

        value = str(candidate).strip()
        if not value:
            return None

        if "-" in value:
            if value in self._local_by_external:
                return self._local_by_external[value]
            local_user_id = self.mapping_repository.get_local_user_id(value)
            if local_user_id is not None:
                self._remember(local_user_id, value)
                return local_user_id

        try:
            return int(value)
        except ValueError:
            return None
