"""ReconcileAreaWarehouses command and handler."""

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.shared.authorization.permission import Permission
from stockroom.domain.shared.authorization.policy import requires_permission
from stockroom.domain.shared.command import Command, CommandHandler, Result
from stockroom.domain.user.model.reconciliation import OperationOutcome, ReconciliationStatus
from stockroom.domain.user.model.value import AreaId, WarehouseId
from stockroom.domain.user.service.reconciler import AssignmentReconciler


class ReconcileAreaWarehouses(Command):
    area_id: str
    previous_warehouses: list[str]
    warehouses: list[str]


class AreaWarehousesReconciled(Result):
    area_id: str
    status: ReconciliationStatus
    outcomes: list[OperationOutcome]


class ReconcileAreaWarehousesHandler(
    CommandHandler[ReconcileAreaWarehouses, AreaWarehousesReconciled]
):
    __auth__ = requires_permission(Permission.AREAS_EDIT)
    reconciler: AssignmentReconciler
    _principal: Principal | None = None

    async def run(self, cmd: ReconcileAreaWarehouses) -> AreaWarehousesReconciled:
        report = await self.reconciler.reconcile_area_warehouses(
            AreaId(cmd.area_id),
            [WarehouseId(w) for w in cmd.previous_warehouses],
            [WarehouseId(w) for w in cmd.warehouses],
        )
        return AreaWarehousesReconciled(
            area_id=cmd.area_id, status=report.status, outcomes=list(report.outcomes)
        )
