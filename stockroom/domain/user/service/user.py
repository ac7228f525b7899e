"""User service — orchestrates profile updates, assignment reconciliation and audit."""

import logging
from typing import Any

from pydantic import BaseModel

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.auth.model.role import canonical_role
from stockroom.domain.shared.error import (
    HistoryRecordingError,
    InvalidStateError,
    NotFoundError,
    PartialFailureError,
    StockroomError,
    ValidationError,
)
from stockroom.domain.shared.service import Service
from stockroom.domain.user.model.assignment import AssignmentKind
from stockroom.domain.user.model.history import (
    AssignmentHistoryEntry,
    AssignmentSnapshot,
    UserEnablementHistoryEntry,
)
from stockroom.domain.user.model.reconciliation import ReconciliationReport, ReconciliationStatus
from stockroom.domain.user.model.user import NewUser, User, UserFieldUpdate, UserUpdate
from stockroom.domain.user.model.value import AreaId, TenantId, UserId, UserStatus, WarehouseId
from stockroom.domain.user.port.repository import UserRepository
from stockroom.domain.user.service.history import HistoryRecorder, validate_status_reason
from stockroom.domain.user.service.reconciler import AssignmentReconciler

logger = logging.getLogger(__name__)


class UserUpdateResult(BaseModel):
    """Outcome of an orchestrated user operation.

    ``user`` carries the persisted scalar fields and the relationship sets
    that are actually in effect; on full success these equal the requested
    sets. ``status`` tells fully applied from partially applied.
    """

    user: User
    report: ReconciliationReport
    enablement_entry: UserEnablementHistoryEntry | None = None
    history: list[AssignmentHistoryEntry] = []
    history_errors: list[str] = []

    @property
    def status(self) -> ReconciliationStatus:
        status = self.report.status
        if self.history_errors and status in (ReconciliationStatus.NOOP, ReconciliationStatus.APPLIED):
            return ReconciliationStatus.PARTIAL
        return status

    @property
    def is_fully_applied(self) -> bool:
        return self.status in (ReconciliationStatus.NOOP, ReconciliationStatus.APPLIED)

    def raise_for_status(self) -> None:
        """Raise PartialFailureError unless the result is fully applied.

        Unapplied relationship changes and unrecorded history entries both
        count.
        """
        if not self.is_fully_applied:
            raise PartialFailureError(self.report, self.history_errors)


def _snapshot(areas: frozenset[AreaId], warehouses: frozenset[WarehouseId]) -> AssignmentSnapshot:
    return AssignmentSnapshot(areas=areas, warehouses=warehouses)


class UserService(Service):
    """Keeps user data fields and relationship fields strictly separate.

    Scalar fields go through the user repository; areas and warehouses only
    ever change through the reconciler, and every accepted change is recorded
    by the history recorder.
    """

    _user_repo: UserRepository
    _reconciler: AssignmentReconciler
    _recorder: HistoryRecorder

    async def get_user(self, user_id: UserId, tenant_id: TenantId) -> User:
        user = await self._user_repo.get(user_id, tenant_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}", code="user_not_found")
        return user

    async def update_user_with_assignments(
        self,
        user_id: UserId,
        tenant_id: TenantId,
        updates: UserUpdate,
        performed_by: Principal,
    ) -> UserUpdateResult:
        """Apply a partial user update including its area/warehouse sets.

        Validation happens before any mutation. Relationship changes are
        reconciled against the *new* role and status.

        Raises:
            NotFoundError: If the user does not exist.
            ValidationError: Unknown role, disabling without a reason, or new
                links for a user that ends up DISABLED.
        """
        existing = await self.get_user(user_id, tenant_id)
        raw_fields, relationships = updates.split()
        fields = self._parse_fields(raw_fields)

        new_role = fields.role or existing.role
        new_status = fields.status or existing.status
        status_changed = new_status is not existing.status
        if status_changed:
            fields.reason = validate_status_reason(new_status, fields.reason)

        desired_areas = (
            existing.areas if relationships.areas is None else frozenset(relationships.areas)
        )
        desired_warehouses = (
            existing.warehouses
            if relationships.warehouses is None
            else frozenset(relationships.warehouses)
        )
        if new_status is UserStatus.DISABLED and (
            desired_areas - existing.areas or desired_warehouses - existing.warehouses
        ):
            raise ValidationError(
                "A disabled user cannot be assigned to new areas or warehouses",
                field="status",
                code="disabled_target",
            )

        persisted = existing
        if not fields.is_empty():
            persisted = await self._user_repo.update(user_id, tenant_id, fields.changes())
            logger.info("User fields updated: user_id=%s, fields=%s", user_id, sorted(fields.changes()))

        history_errors: list[str] = []
        enablement_entry = None
        if status_changed:
            try:
                enablement_entry = await self._recorder.record_enablement_change(
                    user_id, tenant_id, new_status, performed_by, fields.reason
                )
            except StockroomError as e:
                logger.error("Could not record status change for user_id=%s: %s", user_id, e)
                history_errors.append(e.message)

        report = await self._reconciler.reconcile(
            user_id,
            new_role,
            existing.areas,
            desired_areas,
            existing.warehouses,
            desired_warehouses,
            status=new_status,
        )

        return await self._finish(
            persisted,
            before=_snapshot(existing.areas, existing.warehouses),
            report=report,
            performed_by=performed_by,
            enablement_entry=enablement_entry,
            history_errors=history_errors,
        )

    async def create_user_with_assignments(
        self, new_user: NewUser, performed_by: Principal
    ) -> UserUpdateResult:
        """Create a user, then link it to its initial areas/warehouses."""
        created = await self._user_repo.create(new_user)
        logger.info("User created: user_id=%s, role=%s", created.id, created.role)

        report = await self._reconciler.reconcile(
            created.id,
            created.role,
            frozenset(),
            new_user.areas,
            frozenset(),
            new_user.warehouses,
            status=created.status,
        )
        return await self._finish(
            created,
            before=_snapshot(frozenset(), frozenset()),
            report=report,
            performed_by=performed_by,
        )

    async def change_status(
        self,
        user_id: UserId,
        tenant_id: TenantId,
        status: UserStatus | str,
        performed_by: Principal,
        reason: str | None = None,
        revoke_assignments: bool = False,
    ) -> UserUpdateResult:
        """Enable or disable a user.

        Each transition produces exactly one enablement history entry. With
        ``revoke_assignments`` a disabled user's links are removed as well.

        Raises:
            InvalidStateError: If the user already has the requested status.
        """
        new_status = self._parse_status(status)
        existing = await self.get_user(user_id, tenant_id)
        if existing.status is new_status:
            raise InvalidStateError(
                f"User {user_id} is already {new_status}", code="status_unchanged"
            )

        update = UserUpdate(status=new_status, reason=reason)
        if revoke_assignments and new_status is UserStatus.DISABLED:
            update.areas = frozenset()
            update.warehouses = frozenset()
        return await self.update_user_with_assignments(user_id, tenant_id, update, performed_by)

    async def list_assignment_candidates(
        self, tenant_id: TenantId, kind: AssignmentKind
    ) -> list[User]:
        """Enabled users whose role can hold a link of ``kind``."""
        if kind is AssignmentKind.AREA_MANAGER:
            can_hold = lambda u: u.role.manages_areas  # noqa: E731
        elif kind is AssignmentKind.WAREHOUSE_SUPERVISOR:
            can_hold = lambda u: u.role.supervises_warehouses  # noqa: E731
        else:
            raise ValidationError(f"No user candidates for {kind} links", field="kind")

        users = await self._user_repo.list_by_tenant(tenant_id)
        return [u for u in users if u.is_enabled and can_hold(u)]

    async def _finish(
        self,
        persisted: User,
        *,
        before: AssignmentSnapshot,
        report: ReconciliationReport,
        performed_by: Principal,
        enablement_entry: UserEnablementHistoryEntry | None = None,
        history_errors: list[str] | None = None,
    ) -> UserUpdateResult:
        history_errors = list(history_errors or [])
        after = _snapshot(
            report.resulting_set(AssignmentKind.AREA_MANAGER, before.areas, AreaId),
            report.resulting_set(AssignmentKind.WAREHOUSE_SUPERVISOR, before.warehouses, WarehouseId),
        )

        try:
            history = await self._recorder.record_assignment_diff(
                persisted.id, persisted.tenant_id, before, after, performed_by
            )
        except HistoryRecordingError as e:
            history = e.recorded
            history_errors += [
                f"{entry.action} {entry.entity_type} {entry.entity_id}: {error.message}"
                for entry, error in e.failures
            ]

        result = UserUpdateResult(
            user=persisted.with_relationships(after.areas, after.warehouses),
            report=report,
            enablement_entry=enablement_entry,
            history=history,
            history_errors=history_errors,
        )
        if not result.is_fully_applied:
            logger.warning(
                "User update partially applied: user_id=%s, failed=%d, skipped=%d, history_errors=%d",
                persisted.id,
                len(report.failed),
                len(report.skipped),
                len(history_errors),
            )
        return result

    def _parse_fields(self, raw: dict[str, Any]) -> UserFieldUpdate:
        fields = dict(raw)
        if "role" in fields:
            role = canonical_role(fields["role"])
            if role is None:
                raise ValidationError(
                    f"Unknown role: {fields['role']!r}", field="role", code="unknown_role"
                )
            fields["role"] = role
        if "status" in fields:
            fields["status"] = self._parse_status(fields["status"])
        return UserFieldUpdate(**fields)

    @staticmethod
    def _parse_status(raw: UserStatus | str) -> UserStatus:
        try:
            return UserStatus.parse(raw)
        except ValueError as e:
            raise ValidationError(str(e), field="status", code="unknown_status") from e
