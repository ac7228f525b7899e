"""UpdateUser command and handler."""

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.shared.authorization.permission import Permission
from stockroom.domain.shared.authorization.policy import requires_permission
from stockroom.domain.shared.command import Command, CommandHandler, Result
from stockroom.domain.user.model.reconciliation import OperationOutcome, ReconciliationStatus
from stockroom.domain.user.model.user import User, UserUpdate
from stockroom.domain.user.model.value import AreaId, UserId, WarehouseId
from stockroom.domain.user.service.user import UserService, UserUpdateResult


class UpdateUser(Command):
    """Partial update of a user, including its area/warehouse sets.

    ``areas``/``warehouses`` left as None keep the current links.
    """

    user_id: str
    name: str | None = None
    last_name: str | None = None
    email: str | None = None
    rut: str | None = None
    phone: str | None = None
    role: str | None = None
    status: str | None = None
    reason: str | None = None
    areas: list[str] | None = None
    warehouses: list[str] | None = None


class UserUpdated(Result):
    user: User
    status: ReconciliationStatus
    outcomes: list[OperationOutcome]
    history_errors: list[str] = []

    @classmethod
    def from_result(cls, result: UserUpdateResult) -> "UserUpdated":
        return cls(
            user=result.user,
            status=result.status,
            outcomes=list(result.report.outcomes),
            history_errors=result.history_errors,
        )


class UpdateUserHandler(CommandHandler[UpdateUser, UserUpdated]):
    __auth__ = requires_permission(Permission.USERS_EDIT)
    user_service: UserService
    _principal: Principal | None = None

    async def run(self, cmd: UpdateUser) -> UserUpdated:
        assert self._principal is not None  # Guaranteed by __auth__ gate

        update = UserUpdate(
            **cmd.model_dump(exclude={"user_id", "areas", "warehouses"}),
            areas=None if cmd.areas is None else frozenset(AreaId(a) for a in cmd.areas),
            warehouses=(
                None
                if cmd.warehouses is None
                else frozenset(WarehouseId(w) for w in cmd.warehouses)
            ),
        )
        result = await self.user_service.update_user_with_assignments(
            UserId(cmd.user_id),
            self._principal.tenant_id,
            update,
            self._principal,
        )
        return UserUpdated.from_result(result)
