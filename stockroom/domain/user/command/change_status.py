"""ChangeUserStatus command and handler."""

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.shared.authorization.permission import Permission
from stockroom.domain.shared.authorization.policy import requires_permission
from stockroom.domain.shared.command import Command, CommandHandler
from stockroom.domain.user.command.update_user import UserUpdated
from stockroom.domain.user.model.value import UserId
from stockroom.domain.user.service.user import UserService


class ChangeUserStatus(Command):
    """Enable or disable a user. Disabling requires a reason."""

    user_id: str
    status: str
    reason: str | None = None
    revoke_assignments: bool = False


class ChangeUserStatusHandler(CommandHandler[ChangeUserStatus, UserUpdated]):
    __auth__ = requires_permission(Permission.USERS_EDIT)
    user_service: UserService
    _principal: Principal | None = None

    async def run(self, cmd: ChangeUserStatus) -> UserUpdated:
        assert self._principal is not None  # Guaranteed by __auth__ gate

        result = await self.user_service.change_status(
            UserId(cmd.user_id),
            self._principal.tenant_id,
            cmd.status,
            self._principal,
            reason=cmd.reason,
            revoke_assignments=cmd.revoke_assignments,
        )
        return UserUpdated.from_result(result)
