from datetime import datetime, timedelta, timezone

import pytest

from app import auth

from .utils import make_token

pytestmark = pytest.mark.anyio("asyncio")


def test_is_token_expired_handles_formats():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert auth.is_token_expired({}, now=now) is False
    assert auth.is_token_expired({"exp": (now - timedelta(seconds=1)).timestamp()}, now=now) is True
    assert auth.is_token_expired({"exp": (now + timedelta(hours=1)).isoformat()}, now=now) is False
    assert auth.is_token_expired({"exp": "not-a-date"}, now=now) is False


def test_decode_jwt_checks_audience():
    payload = auth.decode_jwt(make_token("user-1"))
    assert payload["sub"] == "user-1"
    with pytest.raises(auth.JWTError):
        auth.decode_jwt(make_token("user-1", aud="someone-else"))


async def test_expired_token_rejected(async_client, store):
    user_id = store.add_user()
    token = make_token(user_id, expires_in=-60)
    resp = await async_client.get("/api/me/entitlements", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


async def test_anon_role_token_rejected(async_client, store):
    user_id = store.add_user()
    token = make_token(user_id, role="anon")
    resp = await async_client.get("/api/me/entitlements", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_unknown_user_rejected(async_client, store):
    resp = await async_client.get(
        "/api/me/entitlements",
        headers={"Authorization": f"Bearer {make_token('00000000-0000-0000-0000-000000000000')}"},
    )
    assert resp.status_code == 401


async def test_invalid_token_treated_as_anonymous_on_public_routes(async_client, store, monkeypatch):
    monkeypatch.setattr(auth, "_supabase_jwks_url", lambda: None)
    unit = store.unit(store.level(store.dialect, 1), 1)
    resp = await async_client.get(
        f"/api/units/{unit['id']}", headers={"Authorization": "Bearer garbage"}
    )
    assert resp.status_code == 200
