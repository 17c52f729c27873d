"""
boardsync.api.security — Bearer Token Verification
===================================================

Credentials are issued by an upstream identity service; this module only
holds the shared HS256 secret and turns a bearer token into an identity.

Token claims::

    {"sub": "<user id>", "email": "...", "name": "...", "exp": ...}

``sub`` is a string (PyJWT rejects non-string subjects) and is parsed back
to an ``int`` here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from jwt.exceptions import InvalidTokenError

# Placeholders that ship in sample .env files for BoardSync and the
# identity service that signs its tokens.
_WEAK_SECRETS = frozenset({
    "boardsync-dev-secret-change-me",
    "change-me",
    "changeme",
    "jwt-secret",
    "secret",
})

# HS256 key material below 256 bits is rejected.
_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL = timedelta(hours=12)


def _load_jwt_secret() -> str:
    """Return the HS256 secret shared with the upstream token issuer.

    Read from the environment on every call.  Surrounding whitespace is
    ignored, so a blank value counts as unset.
    """
    secret = os.getenv("JWT_SECRET", "").strip()
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "BoardSync verifies bearer tokens with the identity service's "
            "HS256 secret; copy it into .env (see .env.example)."
        )
    if secret.lower() in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is a known weak default ({secret!r}). "
            "Use the signing secret configured on the identity service."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short for HS256 ({len(secret)} chars, "
            f"need at least {_MIN_SECRET_LENGTH})."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """Identity decoded from a verified bearer token."""

    id: int
    email: str
    name: str


class TokenError(Exception):
    """The token is missing, malformed, expired or carries a bad subject."""


def issue_token(
    user_id: int,
    email: str,
    name: str,
    ttl: timedelta = DEFAULT_TOKEN_TTL,
) -> str:
    """Sign a token for *user_id*.  Used by provisioning scripts and tests."""
    payload = {
        "sub": str(user_id),
        "email": email,
        "name": name,
        "exp": datetime.now(UTC) + ttl,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> CurrentUser:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError as exc:
        raise TokenError("Invalid token") from exc

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise TokenError("Invalid token subject") from exc

    return CurrentUser(
        id=user_id,
        email=str(payload.get("email", "")),
        name=str(payload.get("name", "")),
    )


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer …`` header value."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None
