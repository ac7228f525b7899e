"""The authenticated actor performing an operation."""

from dataclasses import dataclass

from stockroom.domain.auth.model.role import Role
from stockroom.domain.shared.authorization.matrix import PERMISSION_MATRIX
from stockroom.domain.shared.authorization.permission import Permission
from stockroom.domain.user.model.value import TenantId, UserId


@dataclass(frozen=True)
class Principal:
    """The already-authenticated identity of the current requester.

    Built by the caller from its session; this package never issues tokens.
    """

    user_id: UserId
    display_name: str
    role: Role | None
    tenant_id: TenantId
    email: str | None = None

    def has_permission(self, permission: Permission) -> bool:
        return PERMISSION_MATRIX.has_permission(self.role, permission)
