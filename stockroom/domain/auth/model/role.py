"""Roles and their canonical names."""

from enum import StrEnum


class Role(StrEnum):
    """Canonical user roles.

    The backend reports roles under several spellings; use ``canonical_role``
    to resolve any of them before comparing.
    """

    ADMIN = "ADMIN"
    AREA_MANAGER = "AREA_MANAGER"
    WAREHOUSE_SUPERVISOR = "WAREHOUSE_SUPERVISOR"

    @property
    def manages_areas(self) -> bool:
        """Whether users with this role can be assigned as area managers."""
        return self is Role.AREA_MANAGER

    @property
    def supervises_warehouses(self) -> bool:
        """Whether users with this role can be assigned as warehouse supervisors."""
        return self is Role.WAREHOUSE_SUPERVISOR


ROLE_ALIASES: dict[str, Role] = {
    "ADMIN": Role.ADMIN,
    "ADMINISTRADOR": Role.ADMIN,
    "ADMINISTRATOR": Role.ADMIN,
    "AREA_MANAGER": Role.AREA_MANAGER,
    "MANAGER": Role.AREA_MANAGER,
    "JEFE": Role.AREA_MANAGER,
    "JEFE_AREA": Role.AREA_MANAGER,
    "WAREHOUSE_SUPERVISOR": Role.WAREHOUSE_SUPERVISOR,
    "SUPERVISOR": Role.WAREHOUSE_SUPERVISOR,
    "BODEGUERO": Role.WAREHOUSE_SUPERVISOR,
}


def canonical_role(raw: "Role | str | None") -> Role | None:
    """Resolve a role name as sent by the backend to a ``Role``.

    Matching ignores case, surrounding whitespace and ``-``/space separators.
    Returns None for unknown or empty input; callers decide whether that is a
    denial or a validation failure.
    """
    if raw is None:
        return None
    if isinstance(raw, Role):
        return raw
    key = raw.strip().upper().replace("-", "_").replace(" ", "_")
    return ROLE_ALIASES.get(key)
