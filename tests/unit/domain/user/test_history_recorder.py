"""Tests for HistoryRecorder."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.auth.model.role import Role
from stockroom.domain.shared.error import HistoryRecordingError, TransportError, ValidationError
from stockroom.domain.user.model.history import (
    AssignmentAction,
    AssignmentHistoryEntry,
    AssignmentSnapshot,
    EnablementAction,
    EnablementHistoryFilters,
    HistoryEntityType,
)
from stockroom.domain.user.model.value import (
    AreaId,
    HistoryEntryId,
    UserId,
    UserStatus,
    WarehouseId,
)
from stockroom.domain.user.service.history import HistoryRecorder, validate_status_reason
from stockroom.infrastructure.memory.repository import (
    InMemoryAssignmentHistoryRepository,
    InMemoryUserEnablementHistoryRepository,
)
from stockroom.infrastructure.memory.store import InMemoryStore

USER = UserId("u-1")


def snapshot(areas=(), warehouses=()) -> AssignmentSnapshot:
    return AssignmentSnapshot(
        areas=frozenset(AreaId(a) for a in areas),
        warehouses=frozenset(WarehouseId(w) for w in warehouses),
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def recorder(store) -> HistoryRecorder:
    return HistoryRecorder(
        _assignment_history_repo=InMemoryAssignmentHistoryRepository(store),
        _enablement_history_repo=InMemoryUserEnablementHistoryRepository(store),
    )


class TestRecordAssignmentDiff:
    @pytest.mark.asyncio
    async def test_one_entry_per_change(self, recorder, store, admin, tenant_id):
        entries = await recorder.record_assignment_diff(
            USER, tenant_id, snapshot(areas=["A1", "A2"]), snapshot(areas=["A2", "A3"]), admin
        )

        assert {(e.action, e.entity_id) for e in entries} == {
            (AssignmentAction.REMOVED, "A1"),
            (AssignmentAction.ASSIGNED, "A3"),
        }
        assert all(e.entity_type is HistoryEntityType.AREA for e in entries)
        assert store.assignment_history == entries

    @pytest.mark.asyncio
    async def test_entries_share_one_timestamp_and_carry_the_actor(
        self, recorder, admin, tenant_id
    ):
        entries = await recorder.record_assignment_diff(
            USER, tenant_id, snapshot(), snapshot(areas=["A1"], warehouses=["W1", "W2"]), admin
        )

        assert len(entries) == 3
        assert len({e.timestamp for e in entries}) == 1
        assert {e.performed_by for e in entries} == {admin.user_id}
        assert {e.performed_by_name for e in entries} == {"Ada Admin"}
        assert len({e.id for e in entries}) == 3

    @pytest.mark.asyncio
    async def test_entries_carry_actor_email(self, recorder, tenant_id):
        actor = Principal(
            user_id=UserId("admin-1"),
            display_name="Ada Admin",
            role=Role.ADMIN,
            tenant_id=tenant_id,
            email="ada@example.com",
        )

        [entry] = await recorder.record_assignment_diff(
            USER, tenant_id, snapshot(), snapshot(areas=["A1"]), actor
        )

        assert entry.performed_by_email == "ada@example.com"
        assert entry.entity_name is None

    @pytest.mark.asyncio
    async def test_no_change_records_nothing(self, recorder, store, admin, tenant_id):
        entries = await recorder.record_assignment_diff(
            USER, tenant_id, snapshot(areas=["A1"]), snapshot(areas=["A1"]), admin
        )

        assert entries == []
        assert store.assignment_history == []

    @pytest.mark.asyncio
    async def test_storage_failure_is_reported_not_swallowed(self, admin, tenant_id):
        repo = AsyncMock()

        async def create(entry):
            if entry.entity_id == "W1":
                raise TransportError("backend down")
            return entry

        repo.create.side_effect = create
        recorder = HistoryRecorder(_assignment_history_repo=repo, _enablement_history_repo=AsyncMock())

        with pytest.raises(HistoryRecordingError) as exc:
            await recorder.record_assignment_diff(
                USER, tenant_id, snapshot(), snapshot(areas=["A1"], warehouses=["W1"]), admin
            )

        assert [e.entity_id for e in exc.value.recorded] == ["A1"]
        [(entry, error)] = exc.value.failures
        assert entry.entity_id == "W1"
        assert isinstance(error, TransportError)


class TestRecordEnablementChange:
    @pytest.mark.asyncio
    async def test_disabling_requires_reason(self, recorder, store, admin, tenant_id):
        with pytest.raises(ValidationError) as exc:
            await recorder.record_enablement_change(
                USER, tenant_id, UserStatus.DISABLED, admin, reason="   "
            )

        assert exc.value.field == "reason"
        assert store.enablement_history == []

    @pytest.mark.asyncio
    async def test_disabling_with_reason_creates_one_entry(self, recorder, store, admin, tenant_id):
        entry = await recorder.record_enablement_change(
            USER, tenant_id, UserStatus.DISABLED, admin, reason="  left the company "
        )

        assert entry.action is EnablementAction.DISABLED
        assert entry.reason == "left the company"
        assert entry.performed_by_id == admin.user_id
        assert store.enablement_history == [entry]

    @pytest.mark.asyncio
    async def test_enabling_needs_no_reason(self, recorder, admin, tenant_id):
        entry = await recorder.record_enablement_change(USER, tenant_id, UserStatus.ENABLED, admin)

        assert entry.action is EnablementAction.ENABLED
        assert entry.reason is None


class TestReads:
    @pytest.mark.asyncio
    async def test_assignment_history_newest_first(self, recorder, store, admin, tenant_id):
        now = datetime.now(UTC)
        for action, age in ((AssignmentAction.ASSIGNED, 2), (AssignmentAction.REMOVED, 1)):
            store.assignment_history.append(
                AssignmentHistoryEntry(
                    id=HistoryEntryId.generate(),
                    user_id=USER,
                    entity_id="A1",
                    entity_type=HistoryEntityType.AREA,
                    action=action,
                    performed_by=admin.user_id,
                    performed_by_name=admin.display_name,
                    timestamp=now - timedelta(minutes=age),
                    tenant_id=tenant_id,
                )
            )

        history = await recorder.assignment_history(USER, tenant_id)

        assert [e.action for e in history] == [AssignmentAction.REMOVED, AssignmentAction.ASSIGNED]

    @pytest.mark.asyncio
    async def test_recent_history_is_limited(self, recorder, admin, tenant_id):
        await recorder.record_assignment_diff(
            USER, tenant_id, snapshot(), snapshot(areas=["A1", "A2", "A3"]), admin
        )

        assert len(await recorder.recent_assignment_history(tenant_id, limit=2)) == 2

    @pytest.mark.asyncio
    async def test_enablement_history_filters(self, recorder, admin, tenant_id):
        other = UserId("u-2")
        await recorder.record_enablement_change(USER, tenant_id, UserStatus.DISABLED, admin, "r")
        await recorder.record_enablement_change(USER, tenant_id, UserStatus.ENABLED, admin)
        await recorder.record_enablement_change(other, tenant_id, UserStatus.DISABLED, admin, "r")

        by_user = await recorder.enablement_history(EnablementHistoryFilters(user_id=USER))
        disabled = await recorder.enablement_history(
            EnablementHistoryFilters(action=EnablementAction.DISABLED)
        )
        future = await recorder.enablement_history(
            EnablementHistoryFilters(since=datetime.now(UTC) + timedelta(days=1))
        )

        assert by_user.total == 2
        assert {e.user_id for e in disabled.data} == {USER, other}
        assert future.total == 0

    @pytest.mark.asyncio
    async def test_enablement_history_pagination(self, recorder, admin, tenant_id):
        for _ in range(3):
            await recorder.record_enablement_change(USER, tenant_id, UserStatus.ENABLED, admin)

        page = await recorder.enablement_history(
            EnablementHistoryFilters(user_id=USER, page=2, limit=2)
        )

        assert page.total == 3
        assert len(page.data) == 1
        assert page.page == 2


class TestValidateStatusReason:
    def test_strips_reason(self):
        assert validate_status_reason(UserStatus.DISABLED, " x ") == "x"

    def test_blank_reason_on_enable_becomes_none(self):
        assert validate_status_reason(UserStatus.ENABLED, "  ") is None
