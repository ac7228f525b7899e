"""Assignment history queries."""

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.shared.authorization.permission import Permission
from stockroom.domain.shared.authorization.policy import requires_permission
from stockroom.domain.shared.query import Query, QueryHandler, Result
from stockroom.domain.user.model.history import AssignmentHistoryEntry
from stockroom.domain.user.model.value import UserId
from stockroom.domain.user.service.history import HistoryRecorder


class GetAssignmentHistory(Query):
    user_id: str


class GetRecentAssignmentHistory(Query):
    limit: int = 50


class AssignmentHistory(Result):
    entries: list[AssignmentHistoryEntry]


class GetAssignmentHistoryHandler(QueryHandler[GetAssignmentHistory, AssignmentHistory]):
    __auth__ = requires_permission(Permission.USERS_VIEW)
    history_recorder: HistoryRecorder
    _principal: Principal | None = None

    async def run(self, cmd: GetAssignmentHistory) -> AssignmentHistory:
        assert self._principal is not None  # Guaranteed by __auth__ gate

        entries = await self.history_recorder.assignment_history(
            UserId(cmd.user_id), self._principal.tenant_id
        )
        return AssignmentHistory(entries=entries)


class GetRecentAssignmentHistoryHandler(
    QueryHandler[GetRecentAssignmentHistory, AssignmentHistory]
):
    __auth__ = requires_permission(Permission.USERS_VIEW)
    history_recorder: HistoryRecorder
    _principal: Principal | None = None

    async def run(self, cmd: GetRecentAssignmentHistory) -> AssignmentHistory:
        assert self._principal is not None  # Guaranteed by __auth__ gate

        entries = await self.history_recorder.recent_assignment_history(
            self._principal.tenant_id, cmd.limit
        )
        return AssignmentHistory(entries=entries)
