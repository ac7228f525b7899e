"""GetEnablementHistory query and handler."""

from datetime import datetime

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.shared.authorization.permission import Permission
from stockroom.domain.shared.authorization.policy import requires_permission
from stockroom.domain.shared.query import Query, QueryHandler, Result
from stockroom.domain.user.model.history import (
    EnablementAction,
    EnablementHistoryFilters,
    UserEnablementHistoryEntry,
)
from stockroom.domain.user.service.history import HistoryRecorder


class GetEnablementHistory(Query):
    user_id: str | None = None
    performed_by_id: str | None = None
    action: EnablementAction | None = None
    since: datetime | None = None
    until: datetime | None = None
    page: int = 1
    limit: int | None = None


class EnablementHistory(Result):
    data: list[UserEnablementHistoryEntry]
    page: int
    limit: int | None
    total: int


class GetEnablementHistoryHandler(QueryHandler[GetEnablementHistory, EnablementHistory]):
    __auth__ = requires_permission(Permission.USERS_VIEW)
    history_recorder: HistoryRecorder
    _principal: Principal | None = None

    async def run(self, cmd: GetEnablementHistory) -> EnablementHistory:
        filters = EnablementHistoryFilters.model_validate(cmd.model_dump())
        page = await self.history_recorder.enablement_history(filters)
        return EnablementHistory(
            data=page.data, page=page.page, limit=page.limit, total=page.total
        )
