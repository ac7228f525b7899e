"""camelCase backend payloads <-> domain models."""

from datetime import UTC, datetime
from typing import Any

from stockroom.domain.auth.model.role import Role
from stockroom.domain.user.model.assignment import Assignment, AssignmentKind
from stockroom.domain.user.model.history import (
    AssignmentHistoryEntry,
    EnablementHistoryPage,
    UserEnablementHistoryEntry,
)
from stockroom.domain.user.model.user import NewUser, User
from stockroom.domain.user.model.value import (
    AreaId,
    AssignmentId,
    HistoryEntryId,
    TenantId,
    UserId,
    UserStatus,
    WarehouseId,
)

# domain field -> backend field for scalar user updates
_USER_FIELDS = {
    "name": "firstName",
    "last_name": "lastName",
    "email": "email",
    "rut": "rut",
    "phone": "phone",
    "role": "role",
    "status": "status",
    "reason": "reason",
}


def _ids(raw: Any, key: str) -> list[str]:
    """Relationship lists come as bare IDs or as objects carrying an ID."""
    ids = []
    for item in raw or []:
        if isinstance(item, dict):
            ids.append(str(item.get(key) or item["id"]))
        else:
            ids.append(str(item))
    return ids


def _role_name(data: dict[str, Any]) -> str:
    role = data.get("role")
    if isinstance(role, dict):
        return role.get("name", "")
    return role or data.get("roleName", "")


def _status(data: dict[str, Any]) -> UserStatus:
    if "status" in data and data["status"] is not None:
        return UserStatus.parse(data["status"])
    if "isActive" in data:
        return UserStatus.ENABLED if data["isActive"] else UserStatus.DISABLED
    return UserStatus.ENABLED


def user_from_api(data: dict[str, Any], tenant_id: TenantId | None = None) -> User:
    return User(
        id=UserId(str(data["id"])),
        tenant_id=TenantId(str(data.get("tenantId") or tenant_id)),
        name=data.get("firstName") or data.get("name", ""),
        last_name=data.get("lastName") or "",
        email=data.get("email") or "",
        rut=data.get("rut") or "",
        phone=data.get("phone") or "",
        role=_role_name(data) or Role.WAREHOUSE_SUPERVISOR,
        status=_status(data),
        areas=frozenset(AreaId(i) for i in _ids(data.get("areas"), "areaId")),
        warehouses=frozenset(WarehouseId(i) for i in _ids(data.get("warehouses"), "warehouseId")),
        reason=data.get("reason"),
    )


def user_fields_to_api(fields: dict[str, Any]) -> dict[str, Any]:
    """Scalar fields only; areas and warehouses never travel with a user update."""
    payload: dict[str, Any] = {}
    for name, value in fields.items():
        if name not in _USER_FIELDS:
            continue
        if name in ("rut", "phone"):
            value = value or None
        payload[_USER_FIELDS[name]] = str(value) if name in ("role", "status") else value
    return payload


def new_user_to_api(new_user: NewUser) -> dict[str, Any]:
    return {
        "email": new_user.email,
        "firstName": new_user.name,
        "lastName": new_user.last_name,
        "rut": new_user.rut or None,
        "phone": new_user.phone or None,
        "role": str(new_user.role),
        "tenantId": str(new_user.tenant_id),
    }


def _kind(data: dict[str, Any]) -> AssignmentKind:
    if data.get("type") or data.get("kind"):
        return AssignmentKind(data.get("type") or data.get("kind"))
    if data.get("userId") and data.get("areaId"):
        return AssignmentKind.AREA_MANAGER
    if data.get("userId"):
        return AssignmentKind.WAREHOUSE_SUPERVISOR
    return AssignmentKind.AREA_WAREHOUSE


def assignment_from_api(data: dict[str, Any]) -> Assignment:
    return Assignment(
        id=AssignmentId(str(data["id"])),
        kind=_kind(data),
        user_id=UserId(str(data["userId"])) if data.get("userId") else None,
        area_id=AreaId(str(data["areaId"])) if data.get("areaId") else None,
        warehouse_id=WarehouseId(str(data["warehouseId"])) if data.get("warehouseId") else None,
        assigned_at=data.get("assignedAt") or data.get("createdAt") or datetime.now(UTC),
        revoked_at=data.get("revokedAt"),
        is_active=data.get("isActive", True),
    )


def assignment_history_to_api(entry: AssignmentHistoryEntry) -> dict[str, Any]:
    return {
        "id": str(entry.id),
        "userId": str(entry.user_id),
        "entityId": entry.entity_id,
        "entityName": entry.entity_name,
        "entityType": str(entry.entity_type),
        "action": str(entry.action),
        "performedBy": str(entry.performed_by),
        "performedByName": entry.performed_by_name,
        "performedByEmail": entry.performed_by_email,
        "timestamp": entry.timestamp.isoformat(),
        "tenantId": str(entry.tenant_id),
    }


def assignment_history_from_api(
    data: dict[str, Any], fallback: AssignmentHistoryEntry | None = None
) -> AssignmentHistoryEntry:
    if fallback is not None:
        data = {**assignment_history_to_api(fallback), **(data or {})}
    return AssignmentHistoryEntry(
        id=HistoryEntryId(str(data["id"])),
        user_id=UserId(str(data["userId"])),
        entity_id=str(data["entityId"]),
        entity_name=data.get("entityName") or None,
        entity_type=data["entityType"],
        action=data["action"],
        performed_by=UserId(str(data["performedBy"])),
        performed_by_name=data.get("performedByName") or "",
        performed_by_email=data.get("performedByEmail") or None,
        timestamp=data["timestamp"],
        tenant_id=TenantId(str(data["tenantId"])),
    )


def enablement_entry_to_api(entry: UserEnablementHistoryEntry) -> dict[str, Any]:
    return {
        "id": str(entry.id),
        "userId": str(entry.user_id),
        "action": str(entry.action),
        "performedById": str(entry.performed_by_id),
        "reason": entry.reason,
        "occurredAt": entry.occurred_at.isoformat(),
        "tenantId": str(entry.tenant_id),
    }


def enablement_entry_from_api(
    data: dict[str, Any], fallback: UserEnablementHistoryEntry | None = None
) -> UserEnablementHistoryEntry:
    if fallback is not None:
        data = {**enablement_entry_to_api(fallback), **(data or {})}
    return UserEnablementHistoryEntry(
        id=HistoryEntryId(str(data["id"])),
        user_id=UserId(str(data["userId"])),
        action=data["action"],
        performed_by_id=UserId(str(data["performedById"])),
        reason=data.get("reason") or None,
        occurred_at=data["occurredAt"],
        tenant_id=TenantId(str(data.get("tenantId") or "")),
    )


def enablement_page_from_api(body: Any) -> EnablementHistoryPage:
    if isinstance(body, list):
        body = {"data": body, "total": len(body)}
    return EnablementHistoryPage(
        data=[enablement_entry_from_api(item) for item in body.get("data") or []],
        page=body.get("page") or 1,
        limit=body.get("limit"),
        total=body.get("total") or 0,
    )


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
