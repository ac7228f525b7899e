"""Process-local state shared by the in-memory repositories."""

from dataclasses import dataclass, field

from stockroom.domain.user.model.assignment import Assignment
from stockroom.domain.user.model.history import AssignmentHistoryEntry, UserEnablementHistoryEntry
from stockroom.domain.user.model.user import User
from stockroom.domain.user.model.value import TenantId, UserId


@dataclass
class InMemoryStore:
    users: dict[tuple[TenantId, UserId], User] = field(default_factory=dict)
    assignments: list[Assignment] = field(default_factory=list)
    assignment_history: list[AssignmentHistoryEntry] = field(default_factory=list)
    enablement_history: list[UserEnablementHistoryEntry] = field(default_factory=list)

    def active_assignments(self) -> list[Assignment]:
        return [a for a in self.assignments if a.is_active]
