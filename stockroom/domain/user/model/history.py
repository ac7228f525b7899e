"""Immutable audit records for assignment changes and user enablement."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel

from stockroom.domain.shared.model.value import ValueObject
from stockroom.domain.user.model.value import (
    AreaId,
    HistoryEntryId,
    TenantId,
    UserId,
    UserStatus,
    WarehouseId,
)


class HistoryEntityType(StrEnum):
    AREA = "AREA"
    WAREHOUSE = "WAREHOUSE"


class AssignmentAction(StrEnum):
    ASSIGNED = "ASSIGNED"
    REMOVED = "REMOVED"


class EnablementAction(StrEnum):
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"

    @classmethod
    def for_status(cls, status: UserStatus) -> "EnablementAction":
        return cls.ENABLED if status is UserStatus.ENABLED else cls.DISABLED


class AssignmentHistoryEntry(ValueObject):
    """One ASSIGNED/REMOVED change of a user's area or warehouse.

    Created only by the HistoryRecorder; never updated or deleted.
    """

    id: HistoryEntryId
    user_id: UserId
    entity_id: str
    entity_name: str | None = None  # display name, resolved by the backend
    entity_type: HistoryEntityType
    action: AssignmentAction
    performed_by: UserId
    performed_by_name: str
    performed_by_email: str | None = None
    timestamp: datetime
    tenant_id: TenantId


class UserEnablementHistoryEntry(ValueObject):
    """One ENABLED/DISABLED transition of a user account."""

    id: HistoryEntryId
    user_id: UserId
    action: EnablementAction
    performed_by_id: UserId
    reason: str | None = None
    occurred_at: datetime
    tenant_id: TenantId


class AssignmentSnapshot(ValueObject):
    """The relationship sets of a user at one point in time."""

    areas: frozenset[AreaId] = frozenset()
    warehouses: frozenset[WarehouseId] = frozenset()


class EnablementHistoryFilters(BaseModel):
    user_id: UserId | None = None
    performed_by_id: UserId | None = None
    action: EnablementAction | None = None
    since: datetime | None = None
    until: datetime | None = None
    page: int = 1
    limit: int | None = None


class EnablementHistoryPage(BaseModel):
    data: list[UserEnablementHistoryEntry]
    page: int = 1
    limit: int | None = None
    total: int = 0
