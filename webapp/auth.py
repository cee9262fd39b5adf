"""Caller identity lookup against Supabase auth."""

from __future__ import annotations

import logging
from typing import Any, Optional

from utils.exceptions import ConfigurationError, IdentityError


logger = logging.getLogger(__name__)


def bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    text = str(authorization or "").strip()
    scheme, _, token = text.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise IdentityError("missing bearer token")
    return token.strip()


class SupabaseIdentityResolver:
    """Resolves a session JWT to the Supabase user id."""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, *, client: Any = None) -> None:
        self._client = client
        self.url = str(url or "").strip()
        self.key = str(key or "").strip()
        if self._client is None and (not self.url or not self.key):
            raise ConfigurationError("identity lookup needs SUPABASE_URL and SUPABASE_ANON_KEY")

    def _get_client(self):
        if self._client is None:
            from supabase import create_client

            self._client = create_client(self.url, self.key)
        return self._client

    def resolve(self, token: str) -> str:
        try:
            response = self._get_client().auth.get_user(token)
        except Exception as exc:
            logger.warning(f"[auth] token rejected: {exc}")
            raise IdentityError("invalid session") from exc

        user = getattr(response, "user", None)
        user_id = str(getattr(user, "id", "") or "").strip()
        if not user_id:
            raise IdentityError("invalid session")
        return user_id
