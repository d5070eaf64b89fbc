# models/role.py

from typing import List, Optional
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field


# -------------------------------------------------
# Tables
# -------------------------------------------------
class Role(SQLModel, table=True):
    __tablename__ = "roles"

    id: str = Field(primary_key=True)
    name: str
    # lower(name); carries the case-insensitive uniqueness
    normalized_name: str = Field(unique=True, index=True)
    description: Optional[str] = ""
    start_page: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RolePermission(SQLModel, table=True):
    __tablename__ = "role_permissions"

    role_id: str = Field(primary_key=True)
    resource: str = Field(primary_key=True)
    can_create: bool = False
    can_read: bool = False
    can_update: bool = False
    can_delete: bool = False


# -------------------------------------------------
# Payloads
# -------------------------------------------------
class PermissionEntry(BaseModel):
    """One row of an ACL save payload."""
    resource: Optional[str] = ""
    create: bool = False
    read: bool = False
    update: bool = False
    delete: bool = False


class AclSaveRequest(BaseModel):
    role: Optional[str] = None
    permissions: List[PermissionEntry] = []


class RoleCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    start_page: Optional[str] = PydanticField(None, alias="startPage")

    model_config = {"populate_by_name": True}


class RoleUpdate(RoleCreate):
    pass


def role_to_api(role: Role) -> dict:
    return {
        "id": role.id,
        "name": role.name,
        "description": role.description or "",
        "start_page": role.start_page,
    }


def permission_to_api(perm: RolePermission) -> dict:
    # 0/1 flags, the shape the admin UI reads
    return {
        "resource": perm.resource,
        "can_create": int(perm.can_create),
        "can_read": int(perm.can_read),
        "can_update": int(perm.can_update),
        "can_delete": int(perm.can_delete),
    }
