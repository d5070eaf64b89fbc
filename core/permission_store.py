# core/permission_store.py

"""
Durable role → per-resource CRUD flags.

``replace_permissions`` is the only way permissions change: it clears every
entry of the role and inserts the new set in one transaction.
"""

from typing import Callable, Iterable, List, Optional

from sqlmodel import Session, select

from core.logging_config import logger
from core.utils import new_id, to_iso, utc_now
from models.role import PermissionEntry, Role, RolePermission


def normalize_role_name(name: str) -> str:
    return name.strip().lower()


class PermissionStore:
    def __init__(
        self,
        session: Session,
        clock: Callable = utc_now,
        id_factory: Callable[[], str] = new_id,
    ):
        self.session = session
        self.clock = clock
        self.id_factory = id_factory

    # -------------------------------------------------
    # Roles
    # -------------------------------------------------
    def get_role(self, name: str) -> Optional[Role]:
        """Case-insensitive lookup by name."""
        if not name or not name.strip():
            return None
        statement = select(Role).where(Role.normalized_name == normalize_role_name(name))
        return self.session.exec(statement).first()

    def get_role_by_id(self, role_id: str) -> Optional[Role]:
        return self.session.get(Role, role_id)

    def list_roles(self) -> List[Role]:
        return list(self.session.exec(select(Role).order_by(Role.name)).all())

    def create_role(self, name: str, description: str = "", start_page: Optional[str] = None) -> Role:
        """
        Strict insert. A name that collides case-insensitively with an
        existing role raises IntegrityError from the unique key.
        """
        now = to_iso(self.clock())
        role = Role(
            id=self.id_factory(),
            name=name.strip(),
            normalized_name=normalize_role_name(name),
            description=description or "",
            start_page=start_page,
            created_at=now,
            updated_at=now,
        )
        self.session.add(role)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(role)
        return role

    def get_or_create_role(self, name: str) -> Role:
        role = self.get_role(name)
        if role is not None:
            return role
        logger.info(f"Creating role '{name.strip()}' on first use")
        return self.create_role(name, "")

    def update_role(
        self,
        role: Role,
        name: str,
        description: str = "",
        start_page: Optional[str] = None,
    ) -> Role:
        role.name = name.strip()
        role.normalized_name = normalize_role_name(name)
        role.description = description or ""
        if start_page is not None:
            role.start_page = start_page
        role.updated_at = to_iso(self.clock())
        self.session.add(role)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(role)
        return role

    # -------------------------------------------------
    # Permissions
    # -------------------------------------------------
    def list_permissions(self, role_id: str) -> List[RolePermission]:
        statement = (
            select(RolePermission)
            .where(RolePermission.role_id == role_id)
            .order_by(RolePermission.resource)
        )
        return list(self.session.exec(statement).all())

    def get_permission(self, role_id: str, resource: str) -> Optional[RolePermission]:
        return self.session.get(RolePermission, (role_id, resource))

    def replace_permissions(self, role_id: str, entries: Iterable[PermissionEntry]) -> List[RolePermission]:
        # Later entries for the same resource win; blank resources are skipped
        rows = {}
        for entry in entries:
            resource = entry.resource if isinstance(entry.resource, str) else ""
            if not resource:
                continue
            rows[resource] = RolePermission(
                role_id=role_id,
                resource=resource,
                can_create=bool(entry.create),
                can_read=bool(entry.read),
                can_update=bool(entry.update),
                can_delete=bool(entry.delete),
            )

        try:
            for existing in self.list_permissions(role_id):
                self.session.delete(existing)
            # Deletes must reach the store before re-inserting the same keys
            self.session.flush()
            for row in rows.values():
                self.session.add(row)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Replaced permissions for role {role_id}: {len(rows)} entries")
        return self.list_permissions(role_id)
