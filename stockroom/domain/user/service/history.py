"""History recorder — the only writer of assignment and enablement audit entries."""

import asyncio
import logging
from datetime import UTC, datetime

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.shared.diff import diff_sets
from stockroom.domain.shared.error import HistoryRecordingError, StockroomError, ValidationError
from stockroom.domain.shared.service import Service
from stockroom.domain.user.model.history import (
    AssignmentAction,
    AssignmentHistoryEntry,
    AssignmentSnapshot,
    EnablementAction,
    EnablementHistoryFilters,
    EnablementHistoryPage,
    HistoryEntityType,
    UserEnablementHistoryEntry,
)
from stockroom.domain.user.model.value import HistoryEntryId, TenantId, UserId, UserStatus
from stockroom.domain.user.port.repository import (
    AssignmentHistoryRepository,
    UserEnablementHistoryRepository,
)

logger = logging.getLogger(__name__)


class HistoryRecorder(Service):
    """Emits immutable history entries.

    Entries are only ever created; corrections are new entries.
    """

    _assignment_history_repo: AssignmentHistoryRepository
    _enablement_history_repo: UserEnablementHistoryRepository

    async def record_assignment_diff(
        self,
        user_id: UserId,
        tenant_id: TenantId,
        before: AssignmentSnapshot,
        after: AssignmentSnapshot,
        performed_by: Principal,
    ) -> list[AssignmentHistoryEntry]:
        """Create one entry per area/warehouse added or removed between two snapshots.

        All entries of one call share a single timestamp.

        Raises:
            HistoryRecordingError: If any entry could not be stored. Entries
                that were stored are available on the error.
        """
        timestamp = datetime.now(UTC)
        entries: list[AssignmentHistoryEntry] = []

        for entity_type, previous, current in (
            (HistoryEntityType.AREA, before.areas, after.areas),
            (HistoryEntityType.WAREHOUSE, before.warehouses, after.warehouses),
        ):
            diff = diff_sets(previous, current)
            for action, ids in (
                (AssignmentAction.ASSIGNED, diff.to_add),
                (AssignmentAction.REMOVED, diff.to_remove),
            ):
                entries += [
                    AssignmentHistoryEntry(
                        id=HistoryEntryId.generate(),
                        user_id=user_id,
                        entity_id=str(entity_id),
                        entity_type=entity_type,
                        action=action,
                        performed_by=performed_by.user_id,
                        performed_by_name=performed_by.display_name,
                        performed_by_email=performed_by.email,
                        timestamp=timestamp,
                        tenant_id=tenant_id,
                    )
                    for entity_id in sorted(ids, key=str)
                ]

        if not entries:
            return []

        results = await asyncio.gather(
            *(self._assignment_history_repo.create(e) for e in entries),
            return_exceptions=True,
        )

        recorded: list[AssignmentHistoryEntry] = []
        failures: list[tuple[AssignmentHistoryEntry, StockroomError]] = []
        for entry, result in zip(entries, results):
            if isinstance(result, StockroomError):
                failures.append((entry, result))
            elif isinstance(result, BaseException):
                raise result
            else:
                recorded.append(result)

        logger.info(
            "Assignment history recorded: user_id=%s, entries=%d, failed=%d",
            user_id,
            len(recorded),
            len(failures),
        )

        if failures:
            for entry, error in failures:
                logger.error(
                    "Could not record %s %s %s for user_id=%s: %s",
                    entry.action,
                    entry.entity_type,
                    entry.entity_id,
                    user_id,
                    error,
                )
            raise HistoryRecordingError(recorded=recorded, failures=failures)

        return recorded

    async def record_enablement_change(
        self,
        user_id: UserId,
        tenant_id: TenantId,
        new_status: UserStatus,
        performed_by: Principal,
        reason: str | None = None,
    ) -> UserEnablementHistoryEntry:
        """Create the history entry for a status transition.

        Raises:
            ValidationError: If disabling without a non-blank reason.
        """
        reason = validate_status_reason(new_status, reason)

        entry = UserEnablementHistoryEntry(
            id=HistoryEntryId.generate(),
            user_id=user_id,
            action=EnablementAction.for_status(new_status),
            performed_by_id=performed_by.user_id,
            reason=reason,
            occurred_at=datetime.now(UTC),
            tenant_id=tenant_id,
        )
        stored = await self._enablement_history_repo.create(entry)
        logger.info(
            "User %s: user_id=%s, performed_by=%s",
            stored.action.lower(),
            user_id,
            performed_by.user_id,
        )
        return stored

    async def assignment_history(
        self, user_id: UserId, tenant_id: TenantId
    ) -> list[AssignmentHistoryEntry]:
        """A user's assignment history, newest first."""
        entries = await self._assignment_history_repo.find_by_user(user_id, tenant_id)
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)

    async def recent_assignment_history(
        self, tenant_id: TenantId, limit: int = 50
    ) -> list[AssignmentHistoryEntry]:
        return await self._assignment_history_repo.find_recent(tenant_id, limit)

    async def enablement_history(self, filters: EnablementHistoryFilters) -> EnablementHistoryPage:
        only_user = filters.model_dump(
            exclude_none=True, exclude={"user_id", "page", "limit"}
        ) == {}
        if filters.user_id is not None and only_user:
            return await self._enablement_history_repo.find_by_user(
                filters.user_id, filters.page, filters.limit
            )
        return await self._enablement_history_repo.find_all(filters)


def validate_status_reason(new_status: UserStatus, reason: str | None) -> str | None:
    """Return the stripped reason, requiring one when disabling."""
    cleaned = reason.strip() if reason else None
    if new_status is UserStatus.DISABLED and not cleaned:
        raise ValidationError(
            "A reason is required to disable a user", field="reason", code="reason_required"
        )
    return cleaned or None
