"""In-memory adapters for the user/assignment/history ports.

Used by tests and by local runs with ``api.use_memory`` enabled. Like the
backend, the user projection derives ``areas``/``warehouses`` from the active
assignments, and a duplicate active assignment is rejected with ConflictError.
"""

import logging
from typing import Any

from stockroom.domain.shared.error import ConflictError, NotFoundError
from stockroom.domain.user.model.assignment import Assignment, AssignmentKind
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
from stockroom.domain.user.port.repository import (
    AssignmentHistoryRepository,
    AssignmentRepository,
    UserEnablementHistoryRepository,
    UserRepository,
)
from stockroom.infrastructure.memory.store import InMemoryStore

logger = logging.getLogger(__name__)


class InMemoryUserRepository(UserRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get(self, user_id: UserId, tenant_id: TenantId) -> User | None:
        user = self._store.users.get((tenant_id, user_id))
        return None if user is None else self._with_assignments(user)

    async def list_by_tenant(self, tenant_id: TenantId) -> list[User]:
        return [
            self._with_assignments(u)
            for (tenant, _), u in self._store.users.items()
            if tenant == tenant_id
        ]

    async def create(self, new_user: NewUser) -> User:
        user = User(
            id=UserId.generate(),
            **new_user.model_dump(exclude={"areas", "warehouses"}),
        )
        self._store.users[(user.tenant_id, user.id)] = user
        return user

    async def update(self, user_id: UserId, tenant_id: TenantId, fields: dict[str, Any]) -> User:
        current = self._store.users.get((tenant_id, user_id))
        if current is None:
            raise NotFoundError(f"User not found: {user_id}", code="user_not_found")
        updated = User.model_validate({**current.model_dump(), **fields})
        self._store.users[(tenant_id, user_id)] = updated
        return self._with_assignments(updated)

    def _with_assignments(self, user: User) -> User:
        active = [a for a in self._store.active_assignments() if a.user_id == user.id]
        return user.with_relationships(
            frozenset(a.area_id for a in active if a.kind is AssignmentKind.AREA_MANAGER),
            frozenset(
                a.warehouse_id for a in active if a.kind is AssignmentKind.WAREHOUSE_SUPERVISOR
            ),
        )


class InMemoryAssignmentRepository(AssignmentRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def assign_manager_to_area(self, area_id: AreaId, user_id: UserId) -> None:
        self._add(Assignment.create(AssignmentKind.AREA_MANAGER, user_id=user_id, area_id=area_id))

    async def remove_manager_from_area(self, area_id: AreaId, user_id: UserId) -> None:
        self._revoke(AssignmentKind.AREA_MANAGER, user_id=user_id, area_id=area_id)

    async def assign_supervisor_to_warehouse(
        self, warehouse_id: WarehouseId, user_id: UserId
    ) -> None:
        self._add(
            Assignment.create(
                AssignmentKind.WAREHOUSE_SUPERVISOR, user_id=user_id, warehouse_id=warehouse_id
            )
        )

    async def remove_supervisor_from_warehouse(
        self, warehouse_id: WarehouseId, user_id: UserId
    ) -> None:
        self._revoke(AssignmentKind.WAREHOUSE_SUPERVISOR, user_id=user_id, warehouse_id=warehouse_id)

    async def assign_warehouse_to_area(self, area_id: AreaId, warehouse_id: WarehouseId) -> None:
        self._add(
            Assignment.create(
                AssignmentKind.AREA_WAREHOUSE, area_id=area_id, warehouse_id=warehouse_id
            )
        )

    async def remove_warehouse_from_area(
        self, area_id: AreaId, warehouse_id: WarehouseId
    ) -> None:
        self._revoke(AssignmentKind.AREA_WAREHOUSE, area_id=area_id, warehouse_id=warehouse_id)

    async def remove_assignment(self, assignment_id: AssignmentId) -> None:
        for assignment in self._store.active_assignments():
            if assignment.id == assignment_id:
                assignment.revoke()
                return
        raise NotFoundError(f"Assignment not found: {assignment_id}", code="assignment_not_found")

    async def find_by_user(self, user_id: UserId) -> list[Assignment]:
        return [a.model_copy() for a in self._store.assignments if a.user_id == user_id]

    def _add(self, assignment: Assignment) -> None:
        if any(a.endpoints == assignment.endpoints for a in self._store.active_assignments()):
            raise ConflictError(
                f"Active {assignment.kind} assignment already exists", code="duplicate_assignment"
            )
        self._store.assignments.append(assignment)
        logger.debug("Assignment created: %s", assignment.endpoints)

    def _revoke(self, kind: AssignmentKind, **endpoints: Any) -> None:
        probe = Assignment.create(kind, **endpoints)
        for assignment in self._store.active_assignments():
            if assignment.endpoints == probe.endpoints:
                assignment.revoke()
                return
        raise NotFoundError(f"No active {kind} assignment", code="assignment_not_found")


class InMemoryAssignmentHistoryRepository(AssignmentHistoryRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def create(self, entry: AssignmentHistoryEntry) -> AssignmentHistoryEntry:
        self._store.assignment_history.append(entry)
        return entry

    async def find_by_user(
        self, user_id: UserId, tenant_id: TenantId
    ) -> list[AssignmentHistoryEntry]:
        return [
            e
            for e in self._store.assignment_history
            if e.user_id == user_id and e.tenant_id == tenant_id
        ]

    async def find_recent(
        self, tenant_id: TenantId, limit: int = 50
    ) -> list[AssignmentHistoryEntry]:
        entries = [e for e in self._store.assignment_history if e.tenant_id == tenant_id]
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)[:limit]


def _paginate(
    entries: list[UserEnablementHistoryEntry], page: int, limit: int | None
) -> EnablementHistoryPage:
    ordered = sorted(entries, key=lambda e: e.occurred_at, reverse=True)
    if limit is None:
        data = ordered
    else:
        start = (max(page, 1) - 1) * limit
        data = ordered[start : start + limit]
    return EnablementHistoryPage(data=data, page=page, limit=limit, total=len(ordered))


class InMemoryUserEnablementHistoryRepository(UserEnablementHistoryRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def create(self, entry: UserEnablementHistoryEntry) -> UserEnablementHistoryEntry:
        self._store.enablement_history.append(entry)
        return entry

    async def find_by_user(
        self, user_id: UserId, page: int = 1, limit: int | None = None
    ) -> EnablementHistoryPage:
        entries = [e for e in self._store.enablement_history if e.user_id == user_id]
        return _paginate(entries, page, limit)

    async def find_all(self, filters: EnablementHistoryFilters) -> EnablementHistoryPage:
        entries = [
            e
            for e in self._store.enablement_history
            if (filters.user_id is None or e.user_id == filters.user_id)
            and (filters.performed_by_id is None or e.performed_by_id == filters.performed_by_id)
            and (filters.action is None or e.action is filters.action)
            and (filters.since is None or e.occurred_at >= filters.since)
            and (filters.until is None or e.occurred_at <= filters.until)
        ]
        return _paginate(entries, filters.page, filters.limit)
