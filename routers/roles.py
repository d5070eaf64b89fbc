# routers/roles.py

from fastapi import APIRouter, Depends, HTTPException

from core.errors import handle_db_error
from core.permission_helpers import requires_permission
from core.permission_store import PermissionStore
from core.permissions import RESOURCE_ROLES
from models.role import RoleCreate, RoleUpdate, permission_to_api, role_to_api
from routers.acl import get_permission_store


router = APIRouter(
    prefix="/roles",
    tags=["Roles"],
)


# -----------------------------------------------------
# LIST
# -----------------------------------------------------
@router.get("", summary="List roles")
def list_roles(store: PermissionStore = Depends(get_permission_store)):
    try:
        return [role_to_api(r) for r in store.list_roles()]
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch roles")


# -----------------------------------------------------
# CREATE (strict insert; duplicate names → 409)
# -----------------------------------------------------
@router.post(
    "",
    summary="Create role",
    dependencies=[Depends(requires_permission(RESOURCE_ROLES, "create"))],
)
def create_role(payload: RoleCreate, store: PermissionStore = Depends(get_permission_store)):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(400, "invalid_name")

    try:
        role = store.create_role(name, (payload.description or "").strip(), payload.start_page)
    except Exception as e:
        raise handle_db_error(e, "Failed to create role")

    return role_to_api(role)


# -----------------------------------------------------
# GET ONE (with permissions)
# -----------------------------------------------------
@router.get("/{role_id}", summary="Role with its permissions")
def get_role(role_id: str, store: PermissionStore = Depends(get_permission_store)):
    try:
        role = store.get_role_by_id(role_id)
        if role is None:
            raise HTTPException(404, "not_found")
        permissions = store.list_permissions(role.id)
    except HTTPException:
        raise
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch role")

    return {
        "role": role_to_api(role),
        "permissions": [permission_to_api(p) for p in permissions],
    }


# -----------------------------------------------------
# UPDATE (rename in place)
# -----------------------------------------------------
@router.put(
    "/{role_id}",
    summary="Update role",
    dependencies=[Depends(requires_permission(RESOURCE_ROLES, "update"))],
)
def update_role(role_id: str, payload: RoleUpdate, store: PermissionStore = Depends(get_permission_store)):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(400, "invalid_name")

    role = store.get_role_by_id(role_id)
    if role is None:
        raise HTTPException(404, "not_found")

    try:
        role = store.update_role(role, name, (payload.description or "").strip(), payload.start_page)
    except Exception as e:
        raise handle_db_error(e, "Failed to update role")

    return role_to_api(role)
