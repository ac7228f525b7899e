from dishka import provide

from stockroom.domain.user.port.repository import (
    AssignmentHistoryRepository,
    AssignmentRepository,
    UserEnablementHistoryRepository,
    UserRepository,
)
from stockroom.infrastructure.memory.repository import (
    InMemoryAssignmentHistoryRepository,
    InMemoryAssignmentRepository,
    InMemoryUserEnablementHistoryRepository,
    InMemoryUserRepository,
)
from stockroom.infrastructure.memory.store import InMemoryStore
from stockroom.util.di.base import Provider
from stockroom.util.di.scope import Scope


class MemoryInfraProvider(Provider):
    """In-memory repositories. State lives for the container's lifetime."""

    @provide(scope=Scope.APP)
    def get_store(self) -> InMemoryStore:
        return InMemoryStore()

    user_repo = provide(InMemoryUserRepository, scope=Scope.UOW, provides=UserRepository)
    assignment_repo = provide(
        InMemoryAssignmentRepository, scope=Scope.UOW, provides=AssignmentRepository
    )
    assignment_history_repo = provide(
        InMemoryAssignmentHistoryRepository,
        scope=Scope.UOW,
        provides=AssignmentHistoryRepository,
    )
    enablement_history_repo = provide(
        InMemoryUserEnablementHistoryRepository,
        scope=Scope.UOW,
        provides=UserEnablementHistoryRepository,
    )
