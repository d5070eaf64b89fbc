# ============================================
# CENTRALIZED RESOURCE → ACCESS POLICY TABLE
# ============================================
#
# Permissions themselves live in the role_permissions table and are edited
# through the ACL screen. This table only records the per-endpoint
# exceptions: role names that skip the lookup entirely, and alternative
# resource names accepted when the exact resource has no entry.

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

ACTION_COLUMNS = {
    "create": "can_create",
    "read": "can_read",
    "update": "can_update",
    "delete": "can_delete",
}


@dataclass(frozen=True)
class ResourcePolicy:
    name: str
    bypass_roles: FrozenSet[str] = field(default_factory=frozenset)
    fallback_resources: Tuple[str, ...] = ()

    def bypasses(self, role: str) -> bool:
        return role.lower() in self.bypass_roles


# =====================================================
# DEFAULT: exact resource match, super role only
# =====================================================
DEFAULT_POLICY = ResourcePolicy(name="default")


# =====================================================
# HOMESTAY CHECK-IN LISTING
# Guard and admin screens list guest check-ins; admins always see them,
# and an ACL entry on the legacy "homestay-checkins" resource counts
# as well.
# =====================================================
HOMESTAY_LIST_POLICY = ResourcePolicy(
    name="homestay_list",
    bypass_roles=frozenset({"admin"}),
    fallback_resources=("homestay-checkins",),
)


# =====================================================
# RESOURCE PATHS (UI route prefixes)
# =====================================================
RESOURCE_USERS = "/users"
RESOURCE_ROLES = "/roles"
RESOURCE_DIRECTORY = "/directory"
RESOURCE_CHECKPOINTS = "/checkpoints"
RESOURCE_CHECK_IN_LOGS = "/check-in-logs"
RESOURCE_SETTINGS = "/settings"
RESOURCE_BILLING = "/billing"
