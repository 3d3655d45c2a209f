from __future__ import annotations

import time
from typing import Any

import httpx
from jose import JWTError, jwk, jwt

JWKS_CACHE_SECONDS = 300
ASYMMETRIC_ALGORITHMS = ("RS256", "ES256")


class SupabaseJwtError(Exception):
    pass


class _JwksCache:
    """Signing keys of one JWKS endpoint, keyed by ``kid``."""

    def __init__(self) -> None:
        self.url: str | None = None
        self.keys: dict[str, dict[str, Any]] = {}
        self.expires_at = 0.0

    def clear(self) -> None:
        self.url = None
        self.keys = {}
        self.expires_at = 0.0

    def get(self, url: str, kid: str) -> dict[str, Any] | None:
        now = time.monotonic()
        if self.url != url or now >= self.expires_at:
            self._refresh(url, now)
        key_data = self.keys.get(kid)
        if key_data is None:
            # Supabase rotates keys; one forced refresh before giving up.
            self._refresh(url, now)
            key_data = self.keys.get(kid)
        return key_data

    def _refresh(self, url: str, now: float) -> None:
        try:
            resp = httpx.get(url, timeout=5)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SupabaseJwtError(f"Failed to fetch JWKS: {exc}") from exc
        if not isinstance(data, dict) or "keys" not in data:
            raise SupabaseJwtError("JWKS response missing keys")
        self.keys = {
            entry["kid"]: entry
            for entry in data.get("keys", [])
            if isinstance(entry, dict) and entry.get("kid")
        }
        self.url = url
        self.expires_at = now + JWKS_CACHE_SECONDS


jwks_cache = _JwksCache()


def verify_supabase_access_token(
    token: str,
    *,
    jwks_url: str,
    issuer: str | None = None,
    audience: str | None = None,
) -> dict[str, Any]:
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as exc:
        raise SupabaseJwtError("Invalid token header") from exc

    alg = header.get("alg")
    if alg not in ASYMMETRIC_ALGORITHMS:
        raise SupabaseJwtError(f"Unsupported JWT alg: {alg}")
    kid = header.get("kid")
    if not kid:
        raise SupabaseJwtError("JWT header missing kid")

    key_data = jwks_cache.get(jwks_url, kid)
    if not key_data:
        raise SupabaseJwtError("JWT kid not found in JWKS")

    key = jwk.construct(key_data, alg)
    try:
        return jwt.decode(
            token,
            key,
            algorithms=[alg],
            issuer=issuer,
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except JWTError as exc:
        raise SupabaseJwtError("JWT verification failed") from exc
