"""Assignment reconciler — moves a user's links from a previous to a desired state."""

import asyncio
import logging
from collections.abc import AsyncIterator, Hashable, Iterable
from contextlib import asynccontextmanager

from stockroom.domain.auth.model.role import Role, canonical_role
from stockroom.domain.shared.diff import SetDiff, diff_sets
from stockroom.domain.shared.error import (
    ConflictError,
    NotFoundError,
    StockroomError,
    ValidationError,
)
from stockroom.domain.shared.service import Service
from stockroom.domain.user.model.assignment import AssignmentKind
from stockroom.domain.user.model.reconciliation import (
    AssignmentOperation,
    OperationAction,
    OperationOutcome,
    OutcomeStatus,
    ReconciliationReport,
)
from stockroom.domain.user.model.value import AreaId, UserId, UserStatus, WarehouseId
from stockroom.domain.user.port.repository import AssignmentRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


class AssignmentLocks:
    """Per-link asyncio locks.

    Two operations on the same (subject, entity, kind) never run at the same
    time; operations on different links are not blocked. Locks are dropped
    once no task holds or waits on them.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._holders: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


def _operations(
    action: OperationAction, kind: AssignmentKind, subject_id: str, ids: Iterable[object]
) -> list[AssignmentOperation]:
    return [
        AssignmentOperation(action=action, kind=kind, subject_id=subject_id, entity_id=str(i))
        for i in sorted(ids, key=str)
    ]


def plan_user_operations(
    user_id: UserId,
    role: Role | None,
    areas: SetDiff[AreaId],
    warehouses: SetDiff[WarehouseId],
) -> tuple[list[AssignmentOperation], list[AssignmentOperation]]:
    """Split the diffs into operations to issue and additions to skip.

    Removals are always issued, even when ``role`` no longer has the matching
    capability, so a role change can clear a stale relationship set.
    Additions are issued only when the role can hold the link.
    """
    subject = str(user_id)
    issue: list[AssignmentOperation] = []
    skip: list[AssignmentOperation] = []

    issue += _operations(OperationAction.REMOVE, AssignmentKind.AREA_MANAGER, subject, areas.to_remove)
    issue += _operations(
        OperationAction.REMOVE, AssignmentKind.WAREHOUSE_SUPERVISOR, subject, warehouses.to_remove
    )

    area_adds = _operations(OperationAction.ASSIGN, AssignmentKind.AREA_MANAGER, subject, areas.to_add)
    warehouse_adds = _operations(
        OperationAction.ASSIGN, AssignmentKind.WAREHOUSE_SUPERVISOR, subject, warehouses.to_add
    )
    (issue if role is not None and role.manages_areas else skip).extend(area_adds)
    (issue if role is not None and role.supervises_warehouses else skip).extend(warehouse_adds)

    return issue, skip


class AssignmentReconciler(Service):
    """Computes the minimal add/remove set for a user's links and applies it.

    Each operation is attempted independently: a failure on one link is
    recorded in the report and never prevents the others from being tried.
    """

    _assignment_repo: AssignmentRepository
    _locks: AssignmentLocks
    _max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    async def reconcile(
        self,
        user_id: UserId,
        role: Role | str | None,
        previous_areas: Iterable[AreaId],
        desired_areas: Iterable[AreaId],
        previous_warehouses: Iterable[WarehouseId],
        desired_warehouses: Iterable[WarehouseId],
        *,
        status: UserStatus = UserStatus.ENABLED,
    ) -> ReconciliationReport:
        """Reconcile a user's manager-area and supervisor-warehouse links.

        Args:
            user_id: The user whose links change.
            role: The user's role *after* the update; raw backend names accepted.
            previous_areas / desired_areas: Area sets before and after.
            previous_warehouses / desired_warehouses: Warehouse sets before and after.
            status: The user's status after the update.

        Returns:
            An itemized report of every planned operation.

        Raises:
            ValidationError: If a DISABLED user would receive a new link.
                Nothing is issued in that case.
        """
        areas = diff_sets(previous_areas, desired_areas)
        warehouses = diff_sets(previous_warehouses, desired_warehouses)

        if UserStatus.parse(status) is UserStatus.DISABLED and (areas.to_add or warehouses.to_add):
            raise ValidationError(
                f"Disabled user {user_id} cannot be assigned as manager or supervisor",
                field="status",
                code="disabled_target",
            )

        issue, skip = plan_user_operations(user_id, canonical_role(role), areas, warehouses)
        for op in skip:
            logger.info("Skipping %s for user_id=%s: role %s lacks the capability", op, user_id, role)

        outcomes = await self._apply(issue)
        outcomes += [
            OperationOutcome(
                operation=op,
                status=OutcomeStatus.SKIPPED,
                error=f"role {role} cannot hold {op.kind} links",
                error_code="role_lacks_capability",
            )
            for op in skip
        ]

        report = ReconciliationReport(subject_id=str(user_id), outcomes=tuple(outcomes))
        self._log_report(report)
        return report

    async def reconcile_area_warehouses(
        self,
        area_id: AreaId,
        previous_warehouses: Iterable[WarehouseId],
        desired_warehouses: Iterable[WarehouseId],
    ) -> ReconciliationReport:
        """Reconcile the warehouses linked to an area (AREA_WAREHOUSE links)."""
        diff = diff_sets(previous_warehouses, desired_warehouses)
        subject = str(area_id)
        issue = _operations(
            OperationAction.REMOVE, AssignmentKind.AREA_WAREHOUSE, subject, diff.to_remove
        ) + _operations(OperationAction.ASSIGN, AssignmentKind.AREA_WAREHOUSE, subject, diff.to_add)

        report = ReconciliationReport(subject_id=subject, outcomes=tuple(await self._apply(issue)))
        self._log_report(report)
        return report

    async def _apply(self, operations: list[AssignmentOperation]) -> list[OperationOutcome]:
        if not operations:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(op: AssignmentOperation) -> OperationOutcome:
            async with self._locks.hold(op.lock_key), semaphore:
                return await self._execute(op)

        return list(await asyncio.gather(*(run(op) for op in operations)))

    async def _execute(self, op: AssignmentOperation) -> OperationOutcome:
        try:
            await self._dispatch(op)
        except ConflictError:
            logger.debug("Link already active, nothing to do: %s (subject=%s)", op, op.subject_id)
            return OperationOutcome(operation=op, status=OutcomeStatus.ALREADY_APPLIED)
        except NotFoundError as e:
            if op.action is not OperationAction.REMOVE:
                return self._failed(op, e)
            logger.debug("Link already inactive, nothing to do: %s (subject=%s)", op, op.subject_id)
            return OperationOutcome(operation=op, status=OutcomeStatus.ALREADY_APPLIED)
        except StockroomError as e:
            return self._failed(op, e)
        return OperationOutcome(operation=op, status=OutcomeStatus.APPLIED)

    @staticmethod
    def _failed(op: AssignmentOperation, error: StockroomError) -> OperationOutcome:
        logger.warning("Assignment operation failed: %s (subject=%s): %s", op, op.subject_id, error)
        return OperationOutcome(
            operation=op,
            status=OutcomeStatus.FAILED,
            error=error.message,
            error_code=error.code,
        )

    async def _dispatch(self, op: AssignmentOperation) -> None:
        repo = self._assignment_repo
        assign = op.action is OperationAction.ASSIGN

        if op.kind is AssignmentKind.AREA_MANAGER:
            area, user = AreaId(op.entity_id), UserId(op.subject_id)
            if assign:
                await repo.assign_manager_to_area(area, user)
            else:
                await repo.remove_manager_from_area(area, user)
        elif op.kind is AssignmentKind.WAREHOUSE_SUPERVISOR:
            warehouse, user = WarehouseId(op.entity_id), UserId(op.subject_id)
            if assign:
                await repo.assign_supervisor_to_warehouse(warehouse, user)
            else:
                await repo.remove_supervisor_from_warehouse(warehouse, user)
        else:
            area, warehouse = AreaId(op.subject_id), WarehouseId(op.entity_id)
            if assign:
                await repo.assign_warehouse_to_area(area, warehouse)
            else:
                await repo.remove_warehouse_from_area(area, warehouse)

    @staticmethod
    def _log_report(report: ReconciliationReport) -> None:
        if not report.outcomes:
            logger.debug("Reconciliation no-op: subject=%s", report.subject_id)
            return
        logger.info(
            "Reconciled subject=%s status=%s applied=%d failed=%d skipped=%d",
            report.subject_id,
            report.status,
            len(report.applied),
            len(report.failed),
            len(report.skipped),
        )
