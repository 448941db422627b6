"""Shared HTTP plumbing for the Supabase auth-admin and PostgREST endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class SupabaseError(RuntimeError):
    """Raised when Supabase responds with an error or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        *,
        error_body: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_body = error_body


class SupabaseHttpClient:
    """Thin client for Supabase REST surfaces authenticated with the service-role key."""

    def __init__(
        self,
        *,
        base_url: str,
        service_key: str | SecretStr,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        secret_value = service_key.get_secret_value() if isinstance(service_key, SecretStr) else service_key
        if not base_url or not secret_value:
            raise ValueError("Supabase URL and service key must be provided")

        self._base_url = base_url.rstrip("/")
        self._service_key = secret_value
        self._timeout = timeout
        self._transport = transport

    def _default_headers(self) -> Dict[str, str]:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Accept": "application/json",
        }

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any | None = None,
        params: Dict[str, Any] | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Any:
        """Perform a request and return the parsed JSON payload (None for empty bodies)."""

        url = f"{self._base_url}{path}"
        with httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers=self._default_headers(),
        ) as client:
            try:
                response = client.request(method, url, json=json_body, params=params, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                try:
                    error_payload: Any = exc.response.json()
                except json.JSONDecodeError:
                    error_payload = exc.response.text
                logger.warning(
                    "Supabase API error %s for %s %s: %s",
                    status,
                    method,
                    path,
                    exc.response.text[:500],
                )
                raise SupabaseError(
                    f"Supabase responded with status {status}",
                    status_code=status,
                    error_body=error_payload,
                ) from exc
            except httpx.RequestError as exc:
                logger.warning("Supabase request failure for %s %s: %s", method, path, str(exc))
                raise SupabaseError("Failed to reach Supabase") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise SupabaseError("Received malformed JSON from Supabase") from exc
