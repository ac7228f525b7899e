"""Value objects for the user/assignment domain."""

from enum import StrEnum

from stockroom.domain.shared.model.value import Identifier


class UserId(Identifier):
    """Identifier of a User."""


class TenantId(Identifier):
    """Identifier of the tenant a record belongs to."""


class AreaId(Identifier):
    """Identifier of an organizational Area."""


class WarehouseId(Identifier):
    """Identifier of a Warehouse."""


class AssignmentId(Identifier):
    """Identifier of an Assignment link."""


class HistoryEntryId(Identifier):
    """Identifier of an audit history entry."""


class UserStatus(StrEnum):
    """Enablement state of a user account."""

    ENABLED = "ENABLED"
    DISABLED = "DISABLED"

    @classmethod
    def parse(cls, raw: "UserStatus | str") -> "UserStatus":
        """Resolve backend spellings (HABILITADO, ACTIVO, ...) to a UserStatus.

        Raises ValueError for anything unrecognized.
        """
        if isinstance(raw, UserStatus):
            return raw
        try:
            return _STATUS_ALIASES[raw.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown user status: {raw!r}") from None


_STATUS_ALIASES: dict[str, UserStatus] = {
    "ENABLED": UserStatus.ENABLED,
    "ACTIVE": UserStatus.ENABLED,
    "HABILITADO": UserStatus.ENABLED,
    "ACTIVO": UserStatus.ENABLED,
    "DISABLED": UserStatus.DISABLED,
    "INACTIVE": UserStatus.DISABLED,
    "DESHABILITADO": UserStatus.DISABLED,
    "INACTIVO": UserStatus.DISABLED,
}
