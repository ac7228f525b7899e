"""ListAssignmentCandidates query and handler."""

from pydantic import BaseModel

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.shared.authorization.permission import Permission
from stockroom.domain.shared.authorization.policy import requires_permission
from stockroom.domain.shared.query import Query, QueryHandler, Result
from stockroom.domain.user.model.assignment import AssignmentKind
from stockroom.domain.user.service.user import UserService


class ListAssignmentCandidates(Query):
    """Users that may be picked as area manager or warehouse supervisor."""

    kind: AssignmentKind


class CandidateDTO(BaseModel):
    id: str
    full_name: str
    email: str
    role: str


class AssignmentCandidates(Result):
    items: list[CandidateDTO]


class ListAssignmentCandidatesHandler(
    QueryHandler[ListAssignmentCandidates, AssignmentCandidates]
):
    __auth__ = requires_permission(Permission.USERS_VIEW)
    user_service: UserService
    _principal: Principal | None = None

    async def run(self, cmd: ListAssignmentCandidates) -> AssignmentCandidates:
        assert self._principal is not None  # Guaranteed by __auth__ gate

        users = await self.user_service.list_assignment_candidates(
            self._principal.tenant_id, cmd.kind
        )
        return AssignmentCandidates(
            items=[
                CandidateDTO(id=str(u.id), full_name=u.full_name, email=u.email, role=str(u.role))
                for u in users
            ]
        )
