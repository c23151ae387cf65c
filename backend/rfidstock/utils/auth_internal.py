"""
Internal JWT (python-jose). Login flows issue tokens elsewhere; this service
verifies them and can mint access tokens for trusted collaborators and tests.
"""
from datetime import datetime, timezone, timedelta
from typing import Any, Optional
from uuid import uuid4

from jose import JWTError, jwt

from rfidstock.config import settings

# JWT claim names
CLAIM_SUB = "sub"
CLAIM_CLIENT_CODE = "client_code"
CLAIM_TYPE = "type"
CLAIM_EXP = "exp"
CLAIM_ISS = "iss"
CLAIM_JTI = "jti"

TYPE_ACCESS = "access"
ISSUER_INTERNAL = "rfidstock-internal"


def _internal_encode(
    payload: dict,
    expires_delta: timedelta,
    token_type: str = TYPE_ACCESS,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **payload,
        CLAIM_JTI: str(uuid4()),
        CLAIM_TYPE: token_type,
        CLAIM_ISS: ISSUER_INTERNAL,
        CLAIM_EXP: now + expires_delta,
    }
    return jwt.encode(
        payload,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def create_access_token(
    user_id: int,
    client_code: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Access token carrying the user id (sub) and the tenant's client code."""
    payload = {
        CLAIM_SUB: str(user_id),
        CLAIM_CLIENT_CODE: client_code,
    }
    delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _internal_encode(payload, delta, token_type=TYPE_ACCESS)


def decode_internal_token(token: str, expected_type: str = TYPE_ACCESS) -> Optional[dict[str, Any]]:
    """Decode and validate an internal JWT. Returns payload or None on bad signature, expiry or wrong type."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=ISSUER_INTERNAL,
        )
    except JWTError:
        return None
    if payload.get(CLAIM_TYPE) != expected_type or not payload.get(CLAIM_SUB):
        return None
    return payload
