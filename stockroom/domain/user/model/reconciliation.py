"""Operations issued by the reconciler and the itemized report of their outcome."""

from collections.abc import Callable, Iterable
from enum import StrEnum
from typing import TypeVar

from stockroom.domain.shared.error import PartialFailureError
from stockroom.domain.shared.model.value import ValueObject
from stockroom.domain.user.model.assignment import AssignmentKind
from stockroom.domain.user.model.history import AssignmentAction, HistoryEntityType

K = TypeVar("K")


class OperationAction(StrEnum):
    ASSIGN = "ASSIGN"
    REMOVE = "REMOVE"


class OutcomeStatus(StrEnum):
    APPLIED = "APPLIED"
    ALREADY_APPLIED = "ALREADY_APPLIED"  # link already in the desired state (duplicate add, missing removal)
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"  # not issued, e.g. role lacks the capability


class ReconciliationStatus(StrEnum):
    NOOP = "NOOP"
    APPLIED = "APPLIED"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class AssignmentOperation(ValueObject):
    """A single add or remove of one link.

    ``subject_id`` is the user for AREA_MANAGER / WAREHOUSE_SUPERVISOR links
    and the area for AREA_WAREHOUSE links.
    """

    action: OperationAction
    kind: AssignmentKind
    subject_id: str
    entity_id: str

    @property
    def lock_key(self) -> tuple[str, str, AssignmentKind]:
        return (self.subject_id, self.entity_id, self.kind)

    @property
    def entity_type(self) -> HistoryEntityType:
        if self.kind is AssignmentKind.AREA_MANAGER:
            return HistoryEntityType.AREA
        return HistoryEntityType.WAREHOUSE

    @property
    def history_action(self) -> AssignmentAction:
        if self.action is OperationAction.ASSIGN:
            return AssignmentAction.ASSIGNED
        return AssignmentAction.REMOVED

    def __str__(self) -> str:
        return f"{self.action.lower()} {self.kind} {self.entity_id}"


class OperationOutcome(ValueObject):
    operation: AssignmentOperation
    status: OutcomeStatus
    error: str | None = None
    error_code: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in (OutcomeStatus.APPLIED, OutcomeStatus.ALREADY_APPLIED)


class ReconciliationReport(ValueObject):
    """Itemized result of one reconciliation run."""

    subject_id: str
    outcomes: tuple[OperationOutcome, ...] = ()

    @property
    def applied(self) -> list[OperationOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[OperationOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]

    @property
    def skipped(self) -> list[OperationOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.SKIPPED]

    @property
    def issued(self) -> list[OperationOutcome]:
        """Outcomes of operations actually sent to the repository."""
        return [o for o in self.outcomes if o.status is not OutcomeStatus.SKIPPED]

    @property
    def status(self) -> ReconciliationStatus:
        if not self.outcomes:
            return ReconciliationStatus.NOOP
        not_applied = len(self.outcomes) - len(self.applied)
        if not_applied == 0:
            return ReconciliationStatus.APPLIED
        if self.applied:
            return ReconciliationStatus.PARTIAL
        return ReconciliationStatus.FAILED

    @property
    def is_complete(self) -> bool:
        return self.status in (ReconciliationStatus.NOOP, ReconciliationStatus.APPLIED)

    def resulting_set(
        self,
        kind: AssignmentKind,
        previous: Iterable[K],
        factory: Callable[[str], K],
    ) -> frozenset[K]:
        """Apply the succeeded operations of ``kind`` to ``previous``."""
        result = set(previous)
        for outcome in self.applied:
            op = outcome.operation
            if op.kind is not kind:
                continue
            if op.action is OperationAction.ASSIGN:
                result.add(factory(op.entity_id))
            else:
                result.discard(factory(op.entity_id))
        return frozenset(result)

    def merge(self, other: "ReconciliationReport") -> "ReconciliationReport":
        return ReconciliationReport(
            subject_id=self.subject_id, outcomes=self.outcomes + other.outcomes
        )

    def raise_for_failures(self) -> None:
        """Raise PartialFailureError if any change was not applied."""
        if self.failed or self.skipped:
            raise PartialFailureError(self)
