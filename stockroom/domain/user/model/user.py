"""User aggregate — the console's read/write projection of a backend user."""

from typing import Any

from pydantic import BaseModel, field_validator

from stockroom.domain.auth.model.role import Role, canonical_role
from stockroom.domain.shared.model.aggregate import Aggregate
from stockroom.domain.user.model.value import AreaId, TenantId, UserId, UserStatus, WarehouseId


def _coerce_role(value: Any) -> Any:
    if value is None or isinstance(value, Role):
        return value
    role = canonical_role(value)
    if role is None:
        raise ValueError(f"Unknown role: {value!r}")
    return role


def _coerce_status(value: Any) -> Any:
    if value is None or isinstance(value, UserStatus):
        return value
    return UserStatus.parse(value)


class User(Aggregate):
    """A console user.

    The backend owns the record; this projection carries the scalar profile
    fields plus the relationship sets the reconciler keeps in sync with the
    active AREA_MANAGER / WAREHOUSE_SUPERVISOR assignments.
    """

    id: UserId
    tenant_id: TenantId
    name: str
    last_name: str = ""
    email: str = ""
    rut: str = ""
    phone: str = ""
    role: Role
    status: UserStatus = UserStatus.ENABLED
    areas: frozenset[AreaId] = frozenset()
    warehouses: frozenset[WarehouseId] = frozenset()
    reason: str | None = None  # reason of the last status change

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: Any) -> Any:
        return _coerce_role(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return _coerce_status(v)

    @property
    def is_enabled(self) -> bool:
        return self.status is UserStatus.ENABLED

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()

    def with_relationships(
        self, areas: frozenset[AreaId], warehouses: frozenset[WarehouseId]
    ) -> "User":
        """Return a copy carrying the given relationship sets."""
        return self.model_copy(update={"areas": frozenset(areas), "warehouses": frozenset(warehouses)})


class NewUser(BaseModel):
    """Payload for creating a user together with its initial assignments."""

    tenant_id: TenantId
    name: str
    last_name: str = ""
    email: str
    rut: str = ""
    phone: str = ""
    role: Role
    areas: frozenset[AreaId] = frozenset()
    warehouses: frozenset[WarehouseId] = frozenset()

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: Any) -> Any:
        return _coerce_role(v)


class UserFieldUpdate(BaseModel):
    """Scalar profile fields of a user update. ``None`` means unchanged."""

    name: str | None = None
    last_name: str | None = None
    email: str | None = None
    rut: str | None = None
    phone: str | None = None
    role: Role | None = None
    status: UserStatus | None = None
    reason: str | None = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)

    def changes(self) -> dict[str, Any]:
        """Fields to persist, without the unchanged (None) ones."""
        return self.model_dump(exclude_none=True)


class RelationshipUpdate(BaseModel):
    """Relationship fields of a user update. ``None`` means unchanged."""

    areas: frozenset[AreaId] | None = None
    warehouses: frozenset[WarehouseId] | None = None


class UserUpdate(BaseModel):
    """A partial user update as submitted by the console.

    ``role`` and ``status`` are kept as raw strings here so that an unknown
    spelling surfaces as a domain ValidationError from the service rather than
    as a parse error of the payload.
    """

    name: str | None = None
    last_name: str | None = None
    email: str | None = None
    rut: str | None = None
    phone: str | None = None
    role: str | None = None
    status: str | None = None
    reason: str | None = None
    areas: frozenset[AreaId] | None = None
    warehouses: frozenset[WarehouseId] | None = None

    def split(self) -> tuple[dict[str, Any], RelationshipUpdate]:
        """Partition into raw scalar fields and relationship fields."""
        scalars = self.model_dump(exclude_none=True, exclude={"areas", "warehouses"})
        return scalars, RelationshipUpdate(areas=self.areas, warehouses=self.warehouses)
