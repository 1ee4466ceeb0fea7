"""Pure functions for creating and decoding the API's bearer tokens.

Tokens are HS256 JWTs whose subject is the user id. No state is kept here;
the auth dependency and the login endpoint call these helpers.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

ISSUER = "lockbox"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded JWT payload. Immutable."""
    sub: str
    role: str
    exp: datetime


def create_token(
    subject: str,
    role: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Create a signed JWT for *subject* (a user id).

    Args:
        subject: User id carried in the ``sub`` claim.
        role: Role claim (``"admin"`` or ``"user"``).
        secret: HMAC signing key.
        algorithm: Only HS256 supported.
        expires_hours: Hours until expiry.

    Returns:
        Encoded JWT string.
    """
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued_at = int(time.time())
    claims = {
        "sub": subject,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + expires_hours * 3600,
        "iss": ISSUER,
    }

    segments = [
        _b64encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode()),
        _b64encode(json.dumps(claims).encode()),
    ]
    segments.append(_b64encode(_sign(b".".join(segments), secret)))
    return b".".join(segments).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Decode and validate a JWT.

    Returns ``None`` on any failure (bad signature, expired, foreign issuer,
    malformed) rather than raising; callers decide what absence means.
    """
    if algorithm != "HS256":
        return None
    try:
        parts = token.encode().split(b".")
        if len(parts) != 3:
            return None

        if not hmac.compare_digest(_sign(parts[0] + b"." + parts[1], secret), _b64decode(parts[2])):
            return None

        claims = json.loads(_b64decode(parts[1]))
        if claims.get("iss") != ISSUER:
            return None

        exp = claims.get("exp", 0)
        if time.time() > exp:
            return None

        return TokenPayload(
            sub=claims.get("sub", ""),
            role=claims.get("role", ""),
            exp=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
    except (json.JSONDecodeError, KeyError, ValueError, TypeError, IndexError):
        return None


def _sign(signing_input: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()


# --- base64url helpers (no padding, URL-safe) ---

def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    padding = 4 - len(data) % 4
    if padding != 4:
        data += b"=" * padding
    return base64.urlsafe_b64decode(data)
