"""CreateUser command and handler."""

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.shared.authorization.permission import Permission
from stockroom.domain.shared.authorization.policy import requires_permission
from stockroom.domain.shared.command import Command, CommandHandler
from stockroom.domain.user.command.update_user import UserUpdated
from stockroom.domain.user.model.user import NewUser
from stockroom.domain.user.model.value import AreaId, WarehouseId
from stockroom.domain.user.service.user import UserService


class CreateUser(Command):
    name: str
    last_name: str = ""
    email: str
    rut: str = ""
    phone: str = ""
    role: str
    areas: list[str] = []
    warehouses: list[str] = []


class CreateUserHandler(CommandHandler[CreateUser, UserUpdated]):
    __auth__ = requires_permission(Permission.USERS_CREATE)
    user_service: UserService
    _principal: Principal | None = None

    async def run(self, cmd: CreateUser) -> UserUpdated:
        assert self._principal is not None  # Guaranteed by __auth__ gate

        new_user = NewUser(
            tenant_id=self._principal.tenant_id,
            name=cmd.name,
            last_name=cmd.last_name,
            email=cmd.email,
            rut=cmd.rut,
            phone=cmd.phone,
            role=cmd.role,
            areas=frozenset(AreaId(a) for a in cmd.areas),
            warehouses=frozenset(WarehouseId(w) for w in cmd.warehouses),
        )
        result = await self.user_service.create_user_with_assignments(new_user, self._principal)
        return UserUpdated.from_result(result)
