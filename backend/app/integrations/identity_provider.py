"""External identity provider (Supabase Auth admin API)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx
from pydantic import SecretStr

from .supabase_client import SupabaseError, SupabaseHttpClient

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Account directory the identity bridge reconciles local users against."""

    def find_account_by_email(self, email: str) -> Optional[str]:
        """Return the external UUID of the account with this email, if any."""

    def provision_account(self, email: str) -> str:
        """Create a confirmed account and return its UUID; raise on failure."""


class SupabaseAuthAdminClient(SupabaseHttpClient):
    """Supabase GoTrue admin endpoints used to look up and create accounts."""

    def __init__(
        self,
        *,
        base_url: str,
        service_key: str | SecretStr,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=base_url, service_key=service_key, timeout=timeout, transport=transport)

    def find_account_by_email(self, email: str) -> Optional[str]:
        payload = self.request(
            "GET",
            "/auth/v1/admin/users",
            params={"filter": email, "per_page": 50},
        )
        users: List[Dict[str, Any]] = []
        if isinstance(payload, dict):
            users = payload.get("users") or []
        elif isinstance(payload, list):
            users = payload

        wanted = email.strip().lower()
        for account in users:
            if str(account.get("email") or "").strip().lower() == wanted and account.get("id"):
                return str(account["id"])
        return None

    def provision_account(self, email: str) -> str:
        payload = self.request(
            "POST",
            "/auth/v1/admin/users",
            json_body={"email": email, "email_confirm": True},
        )
        account = payload.get("user", payload) if isinstance(payload, dict) else None
        if not isinstance(account, dict) or not account.get("id"):
            raise SupabaseError("Account creation returned no id", error_body=payload)
        logger.info("Provisioned external account", extra={"external_uuid": account["id"]})
        return str(account["id"])


class NullIdentityProvider:
    """Provider used when Supabase is not configured: finds nothing, provisions nothing."""

    def find_account_by_email(self, email: str) -> Optional[str]:
        return None

    def provision_account(self, email: str) -> str:
        raise SupabaseError("Identity provider is not configured")
