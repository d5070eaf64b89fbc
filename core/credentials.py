# core/credentials.py

"""
Bearer credential parsing.

Tokens are dot-delimited ``header.payload.signature`` strings whose middle
segment is Base64url-encoded JSON carrying a ``role`` claim (a string, or a
list whose first element is used). By default the payload is decoded
structurally and NOT verified: the claim is a capability hint, not proof of
identity. Setting ``JWT_SECRET`` switches to signature verification through
python-jose; the claim shape stays the same either way.
"""

import base64
import binascii
import json
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from core.config import settings

BEARER_PREFIX = "bearer "


def strip_bearer(credential: str) -> str:
    token = credential.strip()
    if token[: len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        token = token[len(BEARER_PREFIX):].strip()
    return token


def _b64url_decode(segment: str) -> bytes:
    # Accepts both the url-safe and the standard alphabet, padded or not
    normalized = segment.replace("-", "+").replace("_", "/")
    padded = normalized + "=" * (-len(normalized) % 4)
    return base64.b64decode(padded.encode("ascii"), validate=True)


def decode_unverified(token: str) -> Optional[Dict[str, Any]]:
    """Structural decode of the payload segment. None when malformed."""
    parts = token.split(".")
    if len(parts) != 3 or not parts[1]:
        return None
    try:
        payload = json.loads(_b64url_decode(parts[1]))
    except (ValueError, binascii.Error, UnicodeError):
        return None
    return payload if isinstance(payload, dict) else None


def decode_verified(token: str, secret: str, algorithm: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"verify_aud": False},
        )
    except JWTError:
        return None
    return payload if isinstance(payload, dict) else None


def decode_claims(
    credential: Optional[str],
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Return the token's claims, or None when the credential is absent or
    malformed (or fails verification when a secret is configured).
    """
    if not credential:
        return None
    token = strip_bearer(credential)
    if not token:
        return None

    if secret is None:
        secret = settings.JWT_SECRET
    if secret:
        return decode_verified(token, secret, algorithm or settings.JWT_ALGORITHM)
    return decode_unverified(token)


def role_from_claims(claims: Optional[Dict[str, Any]]) -> Optional[str]:
    if not claims:
        return None
    role = claims.get("role")
    if isinstance(role, list):
        role = role[0] if role else None
    if not isinstance(role, str) or not role.strip():
        return None
    return role.strip()


def extract_role(credential: Optional[str], **kwargs) -> Optional[str]:
    return role_from_claims(decode_claims(credential, **kwargs))


def extract_subject(credential: Optional[str], **kwargs) -> Optional[str]:
    """Who is acting: ``sub``, then ``userId``, then ``email``."""
    claims = decode_claims(credential, **kwargs)
    if not claims:
        return None
    for key in ("sub", "userId", "email"):
        value = claims.get(key)
        if value:
            return str(value)
    return None
