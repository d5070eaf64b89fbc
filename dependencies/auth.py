from typing import Optional
from fastapi import Depends, Header, HTTPException, status

from core.credentials import extract_subject


# ============================================================
# RAW BEARER CREDENTIAL
# ============================================================
def get_bearer_credential(
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """
    The Authorization header as sent, or None.
    The "Bearer " prefix is optional; parsing strips it later.
    """
    if authorization is None or not authorization.strip():
        return None
    return authorization


# ============================================================
# CREDENTIAL REQUIRED (401 when absent)
# ============================================================
def require_credential(
    credential: Optional[str] = Depends(get_bearer_credential),
) -> str:
    if not credential:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credential


# ============================================================
# ACTING USER (for audit columns; no authorization decision)
# ============================================================
def get_credential_subject(
    credential: Optional[str] = Depends(get_bearer_credential),
) -> Optional[str]:
    return extract_subject(credential)
