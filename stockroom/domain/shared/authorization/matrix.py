"""PermissionMatrix — static role to permission-set mapping.

This is the single source of truth for "which role may do what". Lookups accept
either a ``Role`` or the raw role name sent by the backend; raw names are
canonicalized first and unknown roles resolve to the empty set.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from stockroom.domain.auth.model.role import Role, canonical_role
from stockroom.domain.shared.authorization.permission import Permission
from stockroom.domain.shared.error import AuthorizationError, ConfigurationError

if TYPE_CHECKING:
    from stockroom.domain.auth.model.principal import Principal

logger = logging.getLogger(__name__)

_NO_PERMISSIONS: frozenset[Permission] = frozenset()


class PermissionMatrix:
    """Immutable mapping from every role to its allowed permissions."""

    def __init__(self, grants: Mapping[Role, Iterable[Permission]]) -> None:
        self._grants: dict[Role, frozenset[Permission]] = {
            role: frozenset(perms) for role, perms in grants.items()
        }

    def permissions_for(self, role: Role | str | None) -> frozenset[Permission]:
        """Return the permission set of a role (empty when the role is unknown)."""
        resolved = canonical_role(role)
        if resolved is None:
            return _NO_PERMISSIONS
        return self._grants.get(resolved, _NO_PERMISSIONS)

    def has_permission(self, role: Role | str | None, permission: Permission) -> bool:
        return permission in self.permissions_for(role)

    def has_all_permissions(
        self, role: Role | str | None, permissions: Iterable[Permission]
    ) -> bool:
        granted = self.permissions_for(role)
        return all(p in granted for p in permissions)

    def has_any_permission(
        self, role: Role | str | None, permissions: Iterable[Permission]
    ) -> bool:
        granted = self.permissions_for(role)
        return any(p in granted for p in permissions)

    def guard(self, principal: "Principal | None", permission: Permission) -> None:
        """Raise AuthorizationError unless the principal's role grants ``permission``."""
        if principal is None:
            raise AuthorizationError("Authentication required", code="missing_token")

        if self.has_permission(principal.role, permission):
            logger.debug(
                "Authorization allowed: principal=%s permission=%s",
                principal.user_id,
                permission,
            )
            return

        logger.warning(
            "Authorization denied: principal=%s role=%s permission=%s",
            principal.user_id,
            principal.role,
            permission,
        )
        raise AuthorizationError(f"Access denied: {permission}", code="access_denied")

    def validate_coverage(self) -> None:
        """Startup check: every role has an entry and only known permissions are granted."""
        missing = set(Role) - set(self._grants)
        if missing:
            raise ConfigurationError(f"Roles without a permission entry: {sorted(missing)}")

        known = set(Permission)
        for role, perms in self._grants.items():
            unknown = perms - known
            if unknown:
                raise ConfigurationError(f"Role {role} grants unknown permissions: {unknown}")


PERMISSION_MATRIX = PermissionMatrix(
    {
        Role.ADMIN: set(Permission),
        Role.AREA_MANAGER: {
            Permission.DASHBOARD_VIEW,
            Permission.DASHBOARD_METRICS,
            Permission.USERS_VIEW,
            Permission.USERS_CREATE,
            Permission.USERS_EDIT,
            Permission.AREAS_VIEW,
            Permission.AREAS_EDIT,
            Permission.WAREHOUSES_VIEW,
            Permission.WAREHOUSES_CREATE,
            Permission.WAREHOUSES_EDIT,
            Permission.BOXES_VIEW,
            Permission.BOXES_CREATE,
            Permission.BOXES_EDIT,
            Permission.BOXES_EXPORT,
            Permission.PRODUCTS_VIEW,
            Permission.PRODUCTS_CREATE,
            Permission.PRODUCTS_EDIT,
            Permission.PRODUCTS_IMPORT,
            Permission.PROVIDERS_VIEW,
            Permission.PROVIDERS_CREATE,
            Permission.PROVIDERS_EDIT,
            Permission.PROJECTS_VIEW,
            Permission.PROJECTS_CREATE,
            Permission.PROJECTS_EDIT,
            Permission.PROJECTS_FINALIZE,
        },
        # Supervisors have no access to the users module
        Role.WAREHOUSE_SUPERVISOR: {
            Permission.DASHBOARD_VIEW,
            Permission.AREAS_VIEW,
            Permission.WAREHOUSES_VIEW,
            Permission.BOXES_VIEW,
            Permission.BOXES_CREATE,
            Permission.BOXES_EDIT,
            Permission.PRODUCTS_VIEW,
            Permission.PRODUCTS_CREATE,
            Permission.PRODUCTS_EDIT,
            Permission.PROVIDERS_VIEW,
            Permission.PROJECTS_VIEW,
        },
    }
)


def has_permission(role: Role | str | None, permission: Permission) -> bool:
    """Check whether a role grants a single permission."""
    return PERMISSION_MATRIX.has_permission(role, permission)


def has_all_permissions(role: Role | str | None, permissions: Iterable[Permission]) -> bool:
    """Check whether a role grants every listed permission (True for an empty list)."""
    return PERMISSION_MATRIX.has_all_permissions(role, permissions)


def has_any_permission(role: Role | str | None, permissions: Iterable[Permission]) -> bool:
    """Check whether a role grants at least one listed permission (False for an empty list)."""
    return PERMISSION_MATRIX.has_any_permission(role, permissions)


def get_role_permissions(role: Role | str | None) -> frozenset[Permission]:
    return PERMISSION_MATRIX.permissions_for(role)
