"""Backend API adapters for the user/assignment/history ports."""

import logging
from typing import Any

from stockroom.domain.shared.error import NotFoundError
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
from stockroom.domain.user.port.repository import (
    AssignmentHistoryRepository,
    AssignmentRepository,
    UserEnablementHistoryRepository,
    UserRepository,
)
from stockroom.infrastructure.http.client import ApiClient, unwrap
from stockroom.infrastructure.http.mapper import (
    assignment_from_api,
    assignment_history_from_api,
    assignment_history_to_api,
    enablement_entry_from_api,
    enablement_entry_to_api,
    enablement_page_from_api,
    isoformat,
    new_user_to_api,
    user_fields_to_api,
    user_from_api,
)

logger = logging.getLogger(__name__)


class HttpUserRepository(UserRepository):
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get(self, user_id: UserId, tenant_id: TenantId) -> User | None:
        try:
            data = await self._client.get(f"/users/{user_id}")
        except NotFoundError:
            return None
        return user_from_api(unwrap(data), tenant_id)

    async def list_by_tenant(self, tenant_id: TenantId) -> list[User]:
        body = unwrap(await self._client.get("/users"))
        if isinstance(body, dict):
            body = body.get("users") or body.get("data") or []
        return [user_from_api(u, tenant_id) for u in body]

    async def create(self, new_user: NewUser) -> User:
        data = await self._client.post("/users", json=new_user_to_api(new_user))
        user = user_from_api(unwrap(data), new_user.tenant_id)
        logger.info("Backend user created: user_id=%s", user.id)
        return user

    async def update(self, user_id: UserId, tenant_id: TenantId, fields: dict[str, Any]) -> User:
        data = await self._client.put(f"/users/{user_id}", json=user_fields_to_api(fields))
        return user_from_api(unwrap(data), tenant_id)


class HttpAssignmentRepository(AssignmentRepository):
    """Every call maps onto one backend request; removals are keyed by the linked pair."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def assign_manager_to_area(self, area_id: AreaId, user_id: UserId) -> None:
        await self._client.post(f"/areas/{area_id}/managers", json={"managerId": str(user_id)})

    async def remove_manager_from_area(self, area_id: AreaId, user_id: UserId) -> None:
        await self._client.delete(f"/areas/{area_id}/managers/{user_id}")

    async def assign_supervisor_to_warehouse(
        self, warehouse_id: WarehouseId, user_id: UserId
    ) -> None:
        await self._client.post(
            f"/warehouses/{warehouse_id}/supervisors", json={"supervisorId": str(user_id)}
        )

    async def remove_supervisor_from_warehouse(
        self, warehouse_id: WarehouseId, user_id: UserId
    ) -> None:
        await self._client.delete(f"/warehouses/{warehouse_id}/supervisors/{user_id}")

    async def assign_warehouse_to_area(self, area_id: AreaId, warehouse_id: WarehouseId) -> None:
        await self._client.post(
            f"/areas/{area_id}/warehouses", json={"warehouseId": str(warehouse_id)}
        )

    async def remove_warehouse_from_area(
        self, area_id: AreaId, warehouse_id: WarehouseId
    ) -> None:
        await self._client.delete(f"/areas/{area_id}/warehouses/{warehouse_id}")

    async def remove_assignment(self, assignment_id: AssignmentId) -> None:
        await self._client.delete(f"/assignments/{assignment_id}")

    async def find_by_user(self, user_id: UserId) -> list[Assignment]:
        body = unwrap(await self._client.get("/assignments", userId=str(user_id)))
        # older backends ignore the filter
        return [
            assignment_from_api(a) for a in body or [] if str(a.get("userId")) == str(user_id)
        ]


class HttpAssignmentHistoryRepository(AssignmentHistoryRepository):
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create(self, entry: AssignmentHistoryEntry) -> AssignmentHistoryEntry:
        data = await self._client.post("/assignment-history", json=assignment_history_to_api(entry))
        return assignment_history_from_api(unwrap(data), fallback=entry)

    async def find_by_user(
        self, user_id: UserId, tenant_id: TenantId
    ) -> list[AssignmentHistoryEntry]:
        body = unwrap(
            await self._client.get(f"/assignment-history/user/{user_id}", tenantId=str(tenant_id))
        )
        return [assignment_history_from_api(e) for e in body or []]

    async def find_recent(
        self, tenant_id: TenantId, limit: int = 50
    ) -> list[AssignmentHistoryEntry]:
        body = unwrap(
            await self._client.get(
                "/assignment-history/recent", tenantId=str(tenant_id), limit=limit
            )
        )
        return [assignment_history_from_api(e) for e in body or []]


class HttpUserEnablementHistoryRepository(UserEnablementHistoryRepository):
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create(self, entry: UserEnablementHistoryEntry) -> UserEnablementHistoryEntry:
        data = await self._client.post(
            f"/users/{entry.user_id}/enablement-history", json=enablement_entry_to_api(entry)
        )
        return enablement_entry_from_api(unwrap(data), fallback=entry)

    async def find_by_user(
        self, user_id: UserId, page: int = 1, limit: int | None = None
    ) -> EnablementHistoryPage:
        body = await self._client.get(
            f"/users/{user_id}/enablement-history", page=page, limit=limit
        )
        return enablement_page_from_api(body)

    async def find_all(self, filters: EnablementHistoryFilters) -> EnablementHistoryPage:
        body = await self._client.get(
            "/enablement-history",
            userId=str(filters.user_id) if filters.user_id else None,
            performedById=str(filters.performed_by_id) if filters.performed_by_id else None,
            action=filters.action,
            **{"from": isoformat(filters.since), "to": isoformat(filters.until)},
            page=filters.page,
            limit=filters.limit,
        )
        return enablement_page_from_api(body)
