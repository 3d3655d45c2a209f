from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError

from .config import settings
from .db import get_conn
from .logging_context import set_user_context
from .utils.supabase_jwt import SupabaseJwtError, verify_supabase_access_token

# Tokens are issued by Supabase Auth; the tokenUrl only feeds the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token")
oauth2_optional_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token", auto_error=False)


def decode_jwt(token: str) -> dict[str, Any]:
    """Verify an HS256 Supabase token with the project secret, expiry checked separately."""
    if not settings.supabase_jwt_secret:
        raise JWTError("JWT secret not configured")
    options: dict[str, Any] = {"verify_signature": True, "verify_exp": False}
    if not settings.jwt_audience:
        options["verify_aud"] = False
    return jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )


def _supabase_jwks_url() -> str | None:
    if settings.supabase_jwks_url:
        return str(settings.supabase_jwks_url)
    if settings.supabase_url is None:
        return None
    base = settings.supabase_url.unicode_string().rstrip("/")
    return f"{base}/auth/v1/.well-known/jwks.json"


def _supabase_jwt_issuer() -> str | None:
    if settings.supabase_jwt_issuer:
        return settings.supabase_jwt_issuer
    if settings.supabase_url is None:
        return None
    base = settings.supabase_url.unicode_string().rstrip("/")
    return f"{base}/auth/v1"


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return decode_jwt(token)
    except JWTError as exc:
        jwks_url = _supabase_jwks_url()
        if not jwks_url:
            raise exc
        try:
            return verify_supabase_access_token(
                token,
                jwks_url=jwks_url,
                issuer=_supabase_jwt_issuer(),
                audience=settings.jwt_audience,
            )
        except SupabaseJwtError as sup_exc:
            raise JWTError("Supabase JWT verification failed") from sup_exc


def is_token_expired(payload: dict[str, Any], *, now: datetime | None = None) -> bool:
    exp = payload.get("exp")
    if exp is None:
        return False

    if isinstance(exp, (int, float)):
        exp_dt = datetime.fromtimestamp(exp, tz=timezone.utc)
    elif isinstance(exp, datetime):
        exp_dt = exp if exp.tzinfo else exp.replace(tzinfo=timezone.utc)
    elif isinstance(exp, str):
        try:
            exp_dt = datetime.fromisoformat(exp)
        except ValueError:
            return False
        if exp_dt.tzinfo is None:
            exp_dt = exp_dt.replace(tzinfo=timezone.utc)
    else:
        return False

    now = now or datetime.now(timezone.utc)
    return exp_dt <= now


def _subject(token: str) -> str | None:
    """Return the user id of a valid, unexpired token, or None."""
    payload = decode_access_token(token)
    if is_token_expired(payload):
        return None
    if payload.get("role") == "anon":
        return None
    return payload.get("sub")


async def fetch_user(user_id: str) -> dict[str, Any] | None:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT u.id,
                   u.email,
                   EXISTS (
                       SELECT 1
                         FROM app.user_roles AS r
                        WHERE r.user_id = u.id
                          AND r.role = 'admin'
                   ) AS is_admin
              FROM auth.users AS u
             WHERE u.id = %s
             LIMIT 1
            """,
            (user_id,),
        )
        row = await cur.fetchone()
    if not row:
        return None
    data = dict(row)
    data["is_admin"] = bool(data.get("is_admin"))
    return data


async def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = _subject(token)
    except JWTError as exc:
        raise credentials_exception from exc
    if user_id is None:
        raise credentials_exception

    user = await fetch_user(user_id)
    if not user:
        raise credentials_exception
    set_user_context(str(user["id"]))
    return user


async def get_optional_user(
    token: Annotated[str | None, Depends(oauth2_optional_scheme)],
):
    if not token:
        return None
    try:
        user_id = _subject(token)
    except JWTError:
        return None
    if user_id is None:
        return None

    user = await fetch_user(user_id)
    if user:
        set_user_context(str(user["id"]))
    return user


CurrentUser = Annotated[dict, Depends(get_current_user)]
OptionalCurrentUser = Annotated[dict | None, Depends(get_optional_user)]
