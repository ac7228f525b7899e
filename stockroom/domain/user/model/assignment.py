"""Assignment entity: a directed link between a user, an area and/or a warehouse."""

from datetime import UTC, datetime
from enum import StrEnum

from stockroom.domain.shared.model.entity import Entity
from stockroom.domain.user.model.value import AreaId, AssignmentId, UserId, WarehouseId


class AssignmentKind(StrEnum):
    AREA_MANAGER = "AREA_MANAGER"  # user manages an area
    WAREHOUSE_SUPERVISOR = "WAREHOUSE_SUPERVISOR"  # user supervises a warehouse
    AREA_WAREHOUSE = "AREA_WAREHOUSE"  # warehouse belongs to an area


class Assignment(Entity):
    """One link of a given kind.

    Only one assignment of a kind between the same two endpoints may be active
    at a time; the repository enforces this, not the reconciler.
    """

    id: AssignmentId
    kind: AssignmentKind
    user_id: UserId | None = None
    area_id: AreaId | None = None
    warehouse_id: WarehouseId | None = None
    assigned_at: datetime
    revoked_at: datetime | None = None
    is_active: bool = True

    @classmethod
    def create(
        cls,
        kind: AssignmentKind,
        *,
        user_id: UserId | None = None,
        area_id: AreaId | None = None,
        warehouse_id: WarehouseId | None = None,
    ) -> "Assignment":
        return cls(
            id=AssignmentId.generate(),
            kind=kind,
            user_id=user_id,
            area_id=area_id,
            warehouse_id=warehouse_id,
            assigned_at=datetime.now(UTC),
        )

    @property
    def endpoints(self) -> tuple[AssignmentKind, str | None, str | None, str | None]:
        """Key identifying the linked pair, used to detect duplicates."""
        return (
            self.kind,
            str(self.user_id) if self.user_id else None,
            str(self.area_id) if self.area_id else None,
            str(self.warehouse_id) if self.warehouse_id else None,
        )

    def revoke(self) -> None:
        self.is_active = False
        self.revoked_at = datetime.now(UTC)
