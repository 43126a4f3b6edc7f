import logging
import os
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from src.errors import Unauthorized

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def _secret() -> str | None:
    return os.getenv("JWT_SECRET") or None


def _algo() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def _trust_user_header() -> bool:
    return (os.getenv("TRUST_USER_HEADER") or "true").strip().lower() in ("1", "true", "yes", "on")


def decode_token(token: str) -> dict:
    """Decode and verify a bearer token issued by the identity provider."""
    secret = _secret()
    if not secret:
        raise Unauthorized("Bearer tokens are not accepted by this service.")
    try:
        return jwt.decode(token, secret, algorithms=[_algo()])
    except JWTError:
        raise Unauthorized("Invalid or expired token.")


def resolve_user_id(authorization: str | None, x_user_id: str | None) -> str:
    """
    Resolve the acting owner from raw header values.

    - Prefer a JWT (Authorization: Bearer ...); its `sub` claim is the owner id.
    - Fall back to X-User-Id, set by a trusted gateway, unless TRUST_USER_HEADER is off.
    - Anything else is Unauthorized.
    """
    scheme, _, token = (authorization or "").strip().partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        sub = decode_token(token.strip()).get("sub")
        if not sub:
            raise Unauthorized("Invalid token.")
        return str(sub)

    if x_user_id and x_user_id.strip() and _trust_user_header():
        return x_user_id.strip()

    logger.debug("Rejecting request without resolvable identity")
    raise Unauthorized()


# PUBLIC_INTERFACE
def get_current_user_id(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str:
    """FastAPI dependency returning the owner id for the current request."""
    authorization = f"{creds.scheme} {creds.credentials}" if creds is not None else None
    return resolve_user_id(authorization, x_user_id)
