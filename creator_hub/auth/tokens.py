"""
tokens.py
---------
Purpose:
    Read claims from Supabase access tokens on the client side.

Notes:
    - Signatures are verified server-side by Supabase; the client only needs
      the ``exp`` and ``sub`` claims to decide when to refresh.
    - Malformed tokens yield empty claims rather than raising.
"""

from datetime import UTC, datetime

import jwt

from creator_hub.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def read_claims(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False, "verify_aud": False},
            algorithms=["ES256", "HS256", "RS256"],
        )
    except jwt.InvalidTokenError as e:
        logger.warning("Unable to decode access token claims", error=str(e))
        return {}


def token_expires_at(token: str) -> datetime | None:
    exp = read_claims(token).get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(int(exp), tz=UTC)


def token_subject(token: str) -> str | None:
    return read_claims(token).get("sub")
