# routers/acl.py

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from database import get_session
from core.errors import handle_db_error
from core.permission_helpers import requires_permission
from core.permission_store import PermissionStore
from core.permissions import RESOURCE_ROLES
from models.role import AclSaveRequest, permission_to_api


router = APIRouter(
    prefix="/acl",
    tags=["Access Control"],
)


def get_permission_store(session: Session = Depends(get_session)) -> PermissionStore:
    return PermissionStore(session)


# ============================================================
# FETCH ACL FOR A ROLE
# ============================================================
@router.get(
    "",
    summary="Permissions of a role",
    description="""
    Returns `[{resource, can_create, can_read, can_update, can_delete}]`
    (flags as 0/1) for the role named in `role` (case-insensitive).
    Unknown roles yield an empty list. Not gated: the UI loads the signed-in
    user's ACL to build its navigation.
    """,
)
def get_acl(
    role: str = Query("", description="Role name"),
    store: PermissionStore = Depends(get_permission_store),
):
    if not role.strip():
        raise HTTPException(400, "missing_role")

    try:
        found = store.get_role(role)
        if found is None:
            return []
        return [permission_to_api(p) for p in store.list_permissions(found.id)]
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch permissions")


# ============================================================
# SAVE ACL FOR A ROLE (replace, never merge)
# ============================================================
@router.post(
    "",
    summary="Replace the permissions of a role",
    dependencies=[Depends(requires_permission(RESOURCE_ROLES, "update"))],
)
def save_acl(
    payload: AclSaveRequest,
    store: PermissionStore = Depends(get_permission_store),
):
    role_name = (payload.role or "").strip()
    if not role_name or not payload.permissions:
        raise HTTPException(400, "invalid_payload")

    try:
        role = store.get_or_create_role(role_name)
        store.replace_permissions(role.id, payload.permissions)
    except Exception as e:
        raise handle_db_error(e, "Failed to save permissions")

    return {"ok": True}
