# -------------------------
# Role / ACL Models
# -------------------------
from .role import (
    Role,
    RolePermission,
    PermissionEntry,
    AclSaveRequest,
    RoleCreate,
    RoleUpdate,
)

# -------------------------
# Checkpoint Models
# -------------------------
from .checkpoint import (
    Checkpoint,
    CheckpointCreate,
    CheckpointUpdate,
)

# -------------------------
# Check-in Models
# -------------------------
from .check_in import (
    CheckInLog,
    CheckInSettings,
    CheckInCursor,
    CheckInRequest,
    CheckInSettingsUpdate,
)

# -------------------------
# Homestay Models
# -------------------------
from .homestay import (
    HomestayCheckIn,
    HomestayCheckInCreate,
    HomestayCheckInUpdate,
)

# -------------------------
# Resident Models
# -------------------------
from .resident import (
    Resident,
    ResidentPayload,
    Owner,
    Vehicle,
)

# -------------------------
# Billing Models
# -------------------------
from .billing import (
    BillingSettings,
    BillingSettingsHistory,
    BillingSettingsUpdate,
)

# -------------------------
# Payment Models
# -------------------------
from .payment import (
    Payment,
    PaymentCreate,
    PaymentReview,
)


__all__ = [
    # Roles
    "Role",
    "RolePermission",
    "PermissionEntry",
    "AclSaveRequest",
    "RoleCreate",
    "RoleUpdate",

    # Checkpoints
    "Checkpoint",
    "CheckpointCreate",
    "CheckpointUpdate",

    # Check-in
    "CheckInLog",
    "CheckInSettings",
    "CheckInCursor",
    "CheckInRequest",
    "CheckInSettingsUpdate",

    # Homestay
    "HomestayCheckIn",
    "HomestayCheckInCreate",
    "HomestayCheckInUpdate",

    # Residents
    "Resident",
    "ResidentPayload",
    "Owner",
    "Vehicle",

    # Billing
    "BillingSettings",
    "BillingSettingsHistory",
    "BillingSettingsUpdate",

    # Payments
    "Payment",
    "PaymentCreate",
    "PaymentReview",
]
