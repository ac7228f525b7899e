"""Repository ports for users, assignments and audit history."""

from abc import abstractmethod
from typing import Any, Protocol

from stockroom.domain.shared.port import Port
from stockroom.domain.user.model.assignment import Assignment
from stockroom.domain.user.model.history import (
    AssignmentHistoryEntry,
    EnablementHistoryFilters,
    EnablementHistoryPage,
    UserEnablementHistoryEntry,
)
from stockroom.domain.user.model.user import NewUser, User
from stockroom.domain.user.model.value import (
    AreaId,
    AssignmentId,
    TenantId,
    UserId,
    WarehouseId,
)


class UserRepository(Port, Protocol):
    """Repository for the User projection (scalar fields only)."""

    @abstractmethod
    async def get(self, user_id: UserId, tenant_id: TenantId) -> User | None:
        """Get a user by ID, or None if absent."""
        ...

    @abstractmethod
    async def list_by_tenant(self, tenant_id: TenantId) -> list[User]:
        """List all users of a tenant."""
        ...

    @abstractmethod
    async def create(self, new_user: NewUser) -> User:
        """Create a user without relationships."""
        ...

    @abstractmethod
    async def update(self, user_id: UserId, tenant_id: TenantId, fields: dict[str, Any]) -> User:
        """Persist scalar fields. Relationship fields are never sent through here."""
        ...


class AssignmentRepository(Port, Protocol):
    """Persists and removes manager-area, supervisor-warehouse and area-warehouse links.

    Every method is an independent, fallible remote call. Assigning an
    already-active link raises ConflictError or is a no-op.
    """

    @abstractmethod
    async def assign_manager_to_area(self, area_id: AreaId, user_id: UserId) -> None: ...

    @abstractmethod
    async def remove_manager_from_area(self, area_id: AreaId, user_id: UserId) -> None: ...

    @abstractmethod
    async def assign_supervisor_to_warehouse(
        self, warehouse_id: WarehouseId, user_id: UserId
    ) -> None: ...

    @abstractmethod
    async def remove_supervisor_from_warehouse(
        self, warehouse_id: WarehouseId, user_id: UserId
    ) -> None: ...

    @abstractmethod
    async def assign_warehouse_to_area(self, area_id: AreaId, warehouse_id: WarehouseId) -> None: ...

    @abstractmethod
    async def remove_warehouse_from_area(
        self, area_id: AreaId, warehouse_id: WarehouseId
    ) -> None: ...

    @abstractmethod
    async def remove_assignment(self, assignment_id: AssignmentId) -> None:
        """Revoke one assignment by its ID."""
        ...

    @abstractmethod
    async def find_by_user(self, user_id: UserId) -> list[Assignment]:
        """Get all assignments (active and revoked) of a user."""
        ...


class AssignmentHistoryRepository(Port, Protocol):
    """Append-only store of AssignmentHistoryEntry records."""

    @abstractmethod
    async def create(self, entry: AssignmentHistoryEntry) -> AssignmentHistoryEntry:
        """Persist an entry. The store may return it with a server-assigned ID."""
        ...

    @abstractmethod
    async def find_by_user(
        self, user_id: UserId, tenant_id: TenantId
    ) -> list[AssignmentHistoryEntry]: ...

    @abstractmethod
    async def find_recent(
        self, tenant_id: TenantId, limit: int = 50
    ) -> list[AssignmentHistoryEntry]: ...


class UserEnablementHistoryRepository(Port, Protocol):
    """Append-only store of UserEnablementHistoryEntry records."""

    @abstractmethod
    async def create(self, entry: UserEnablementHistoryEntry) -> UserEnablementHistoryEntry: ...

    @abstractmethod
    async def find_by_user(
        self, user_id: UserId, page: int = 1, limit: int | None = None
    ) -> EnablementHistoryPage: ...

    @abstractmethod
    async def find_all(self, filters: EnablementHistoryFilters) -> EnablementHistoryPage: ...
