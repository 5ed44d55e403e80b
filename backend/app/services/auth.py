"""Caller identity resolution against the managed auth service.

Clients
-------
- **SupabaseAuthClient** — verifies an access token with
  ``GET {SUPABASE_URL}/auth/v1/user`` via ``httpx``.
- **UnconfiguredAuthClient** — rejects every token; used when no auth
  service is configured so that mutating operations fail closed.

Callers never cache the resolved identity: every post action asks the client
again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from backend.app.core.logging import EVENT_AUTH_CHECK_FAILED, log_event
from backend.app.core.settings import Settings, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str | None = None


@runtime_checkable
class AuthClient(Protocol):
    """Minimal interface every auth backend must satisfy."""

    def get_user(self, access_token: str | None) -> AuthUser | None:
        """Return the user owning *access_token*, or ``None``."""
        ...


class UnconfiguredAuthClient:
    """Treats every caller as unauthenticated."""

    def get_user(self, access_token: str | None) -> AuthUser | None:
        return None


class SupabaseAuthClient:
    """Resolves users through the Supabase Auth REST API."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._timeout = timeout_seconds
        self._transport = transport

    def get_user(self, access_token: str | None) -> AuthUser | None:
        if not access_token:
            return None

        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {access_token}",
        }
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(f"{self._base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as exc:
            log_event(
                logger, "warning", EVENT_AUTH_CHECK_FAILED,
                reason="transport", error=type(exc).__name__,
            )
            return None

        if response.status_code != 200:
            log_event(
                logger, "info", EVENT_AUTH_CHECK_FAILED,
                reason="rejected", http_status=response.status_code,
            )
            return None

        try:
            body = response.json()
        except ValueError:
            log_event(logger, "warning", EVENT_AUTH_CHECK_FAILED, reason="invalid_body")
            return None

        user_id = body.get("id") if isinstance(body, dict) else None
        if not isinstance(user_id, str) or not user_id:
            log_event(logger, "warning", EVENT_AUTH_CHECK_FAILED, reason="missing_user_id")
            return None
        return AuthUser(id=user_id, email=body.get("email"))


def get_auth_client(cfg: Settings | None = None) -> AuthClient:
    """Return the configured auth client (Supabase when URL and key are set)."""
    cfg = cfg or settings
    if cfg.supabase_url and cfg.supabase_anon_key:
        return SupabaseAuthClient(
            cfg.supabase_url,
            cfg.supabase_anon_key,
            timeout_seconds=cfg.auth_timeout_seconds,
        )
    logger.warning("No auth service configured; all callers are unauthenticated")
    return UnconfiguredAuthClient()


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
