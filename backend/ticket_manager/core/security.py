"""
Bearer token verification.

Two verification modes:
  - AUTH0_DOMAIN set: RS256 tokens checked against the tenant's JWKS
    (fetched once at startup), audience and issuer
  - otherwise: tokens signed with SECRET_KEY / ALGORITHM, used for local
    development, load tests and the test suite

Profile claims (email, name, roles) are namespaced with CLAIMS_NAMESPACE, the
way Auth0 custom claims must be.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import AuthenticationError, ExternalServiceError
from ticket_manager.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)

_jwks_keys: list[dict[str, Any]] = []


@dataclass
class Principal:
    """The authenticated caller as asserted by the token."""

    sub: str
    email: Optional[str] = None
    name: Optional[str] = None
    roles: list[str] = field(default_factory=list)


def _claim(name: str) -> str:
    return f"{settings.CLAIMS_NAMESPACE}{name}"


async def load_jwks(client: Optional[httpx.AsyncClient] = None) -> int:
    """Fetch the signing keys for AUTH0_DOMAIN. Returns the number of usable keys."""
    global _jwks_keys

    if not settings.AUTH0_DOMAIN:
        return 0

    url = f"https://{settings.AUTH0_DOMAIN}/.well-known/jwks.json"
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=10.0)
    try:
        response = await client.get(url)
        response.raise_for_status()
        keys = response.json().get("keys", [])
    except (httpx.HTTPError, ValueError) as e:
        logger.error("jwks_fetch_failed", url=url, error=str(e))
        raise ExternalServiceError("jwks", f"Could not fetch signing keys from {url}") from e
    finally:
        if owns_client:
            await client.aclose()

    _jwks_keys = [k for k in keys if k.get("kid") and k.get("n") and k.get("e")]
    logger.info("jwks_loaded", domain=settings.AUTH0_DOMAIN, keys=len(_jwks_keys))
    return len(_jwks_keys)


def create_access_token(
    sub: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    roles: Optional[list[str]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a shared-secret token carrying the same claims an Auth0 token would."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims: dict[str, Any] = {"sub": sub, "exp": expire, _claim("roles"): roles or []}
    if email:
        claims[_claim("email")] = email
    if name:
        claims[_claim("name")] = name
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Principal:
    try:
        if settings.AUTH0_DOMAIN:
            payload = _decode_with_jwks(token)
        else:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning("token_rejected", error=str(e))
        raise AuthenticationError(f"Token validation failed: {e}") from e

    sub = payload.get("sub")
    if not sub:
        raise AuthenticationError("Token missing subject")

    roles = payload.get(_claim("roles")) or []
    if isinstance(roles, str):
        roles = [roles]
    return Principal(
        sub=sub,
        email=payload.get(_claim("email")),
        name=payload.get(_claim("name")),
        roles=list(roles),
    )


def _decode_with_jwks(token: str) -> dict[str, Any]:
    kid = jwt.get_unverified_header(token).get("kid")
    if not kid:
        raise JWTError("Token missing kid")

    key = next((k for k in _jwks_keys if k["kid"] == kid), None)
    if key is None:
        raise JWTError("No matching JWK for kid")

    return jwt.decode(
        token,
        key,
        algorithms=["RS256"],
        audience=settings.AUTH0_AUDIENCE,
        issuer=f"https://{settings.AUTH0_DOMAIN}/",
    )


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """FastAPI dependency: 401 unless a valid bearer token is presented."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing Authorization header")
    return decode_token(credentials.credentials)
