from typing import Optional

from fastapi import Depends, HTTPException
from sqlmodel import Session

from core.config import settings
from core.credentials import decode_claims, role_from_claims, strip_bearer
from core.logging_config import logger
from core.permission_store import PermissionStore
from core.permissions import ACTION_COLUMNS, DEFAULT_POLICY, ResourcePolicy
from database import get_session
from dependencies.auth import get_bearer_credential


# -----------------------------------------------------
# Authorization gate
# -----------------------------------------------------
class AuthorizationGate:
    """
    Decides allow/deny for (credential, resource, action).

    Order of evaluation:
      1. no credential                         → deny
      2. sentinel token (when enabled)         → allow
      3. undecodable token / no role claim     → deny
      4. super role                            → allow
      5. role in the policy's bypass list      → allow
      6. unknown role                          → deny
      7. entry for the resource (or fallback)  → the action's flag
    Never raises; unexpected failures are logged and count as deny.
    """

    def __init__(
        self,
        store: PermissionStore,
        *,
        super_role: str = "superadmin",
        allow_sentinel: bool = False,
        sentinel_token: str = "mock-access-token",
        jwt_secret: Optional[str] = None,
        jwt_algorithm: str = "HS256",
    ):
        self.store = store
        self.super_role = super_role.lower()
        self.allow_sentinel = allow_sentinel
        self.sentinel_token = sentinel_token
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm

    @classmethod
    def from_settings(cls, store: PermissionStore) -> "AuthorizationGate":
        return cls(
            store,
            super_role=settings.SUPER_ROLE,
            allow_sentinel=settings.ALLOW_INSECURE_SENTINEL_TOKEN,
            sentinel_token=settings.SENTINEL_TOKEN,
            jwt_secret=settings.JWT_SECRET,
            jwt_algorithm=settings.JWT_ALGORITHM,
        )

    def authorize(
        self,
        credential: Optional[str],
        resource: str,
        action: str,
        policy: ResourcePolicy = DEFAULT_POLICY,
    ) -> bool:
        try:
            return self._authorize(credential, resource, action, policy)
        except Exception as e:
            logger.warning(f"Authorization check failed for {action} {resource}: {e}", exc_info=True)
            return False

    def _authorize(self, credential, resource, action, policy) -> bool:
        if not credential:
            return False

        token = strip_bearer(credential)
        if not token:
            return False

        if self.allow_sentinel and token == self.sentinel_token:
            return True

        claims = decode_claims(token, secret=self.jwt_secret or "", algorithm=self.jwt_algorithm)
        role_name = role_from_claims(claims)
        if not role_name:
            return False

        if role_name.lower() == self.super_role:
            return True

        if policy.bypasses(role_name):
            return True

        column = ACTION_COLUMNS.get(action)
        if column is None:
            return False

        role = self.store.get_role(role_name)
        if role is None:
            return False

        permission = self.store.get_permission(role.id, resource)
        if permission is None:
            for fallback in policy.fallback_resources:
                permission = self.store.get_permission(role.id, fallback)
                if permission is not None:
                    break
        if permission is None:
            return False

        return bool(getattr(permission, column))


def get_authorization_gate(session: Session = Depends(get_session)) -> AuthorizationGate:
    return AuthorizationGate.from_settings(PermissionStore(session))


# -----------------------------------------------------
# FastAPI dependency wrapper
# -----------------------------------------------------
def requires_permission(resource: str, action: str, policy: ResourcePolicy = DEFAULT_POLICY):
    """
    Usage:
        @router.post("", dependencies=[Depends(requires_permission("/checkpoints", "create"))])
    """

    def dependency(
        credential: Optional[str] = Depends(get_bearer_credential),
        gate: AuthorizationGate = Depends(get_authorization_gate),
    ) -> str:
        if not credential or not gate.authorize(credential, resource, action, policy):
            logger.debug(f"Denied {action} on {resource} (policy={policy.name})")
            raise HTTPException(status_code=403, detail="forbidden")
        return credential

    return dependency
