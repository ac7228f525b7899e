"""Tests for AssignmentReconciler."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from stockroom.domain.auth.model.role import Role
from stockroom.domain.shared.error import (
    ConflictError,
    NotFoundError,
    PartialFailureError,
    TransportError,
    ValidationError,
)
from stockroom.domain.user.model.assignment import AssignmentKind
from stockroom.domain.user.model.reconciliation import (
    OperationAction,
    OutcomeStatus,
    ReconciliationStatus,
)
from stockroom.domain.user.model.value import AreaId, UserId, UserStatus, WarehouseId
from stockroom.domain.user.port.repository import AssignmentRepository
from stockroom.domain.user.service.reconciler import AssignmentLocks, AssignmentReconciler
from stockroom.infrastructure.memory.repository import InMemoryAssignmentRepository
from stockroom.infrastructure.memory.store import InMemoryStore

USER = UserId("u-1")


def areas(*names: str) -> frozenset[AreaId]:
    return frozenset(AreaId(n) for n in names)


def warehouses(*names: str) -> frozenset[WarehouseId]:
    return frozenset(WarehouseId(n) for n in names)


def make_repo() -> AsyncMock:
    return AsyncMock(spec=AssignmentRepository)


def make_reconciler(repo, max_concurrency: int = 8) -> AssignmentReconciler:
    return AssignmentReconciler(
        _assignment_repo=repo, _locks=AssignmentLocks(), _max_concurrency=max_concurrency
    )


class TestReconcileAreas:
    @pytest.mark.asyncio
    async def test_issues_minimal_add_and_remove(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(
            USER, Role.AREA_MANAGER, areas("A1", "A2"), areas("A2", "A3"), [], []
        )

        repo.remove_manager_from_area.assert_awaited_once_with(AreaId("A1"), USER)
        repo.assign_manager_to_area.assert_awaited_once_with(AreaId("A3"), USER)
        assert report.status is ReconciliationStatus.APPLIED
        assert len(report.outcomes) == 2

    @pytest.mark.asyncio
    async def test_operation_count_equals_diff_size(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)
        previous = areas("A1", "A2", "A3", "A4")
        desired = areas("A3", "A4", "A5", "A6", "A7")

        report = await reconciler.reconcile(USER, Role.AREA_MANAGER, previous, desired, [], [])

        assert repo.assign_manager_to_area.await_count == 3
        assert repo.remove_manager_from_area.await_count == 2
        touched = {o.operation.entity_id for o in report.outcomes}
        assert not touched & {"A3", "A4"}

    @pytest.mark.asyncio
    async def test_no_change_issues_nothing(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(
            USER, Role.AREA_MANAGER, areas("A1"), areas("A1"), warehouses(), warehouses()
        )

        assert report.status is ReconciliationStatus.NOOP
        assert repo.method_calls == []

    @pytest.mark.asyncio
    async def test_accepts_raw_role_names(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)

        await reconciler.reconcile(USER, "jefe", [], areas("A1"), [], [])

        repo.assign_manager_to_area.assert_awaited_once_with(AreaId("A1"), USER)


class TestCapabilities:
    @pytest.mark.asyncio
    async def test_additions_without_capability_are_skipped(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(
            USER, Role.WAREHOUSE_SUPERVISOR, [], areas("A1"), [], warehouses("W1")
        )

        repo.assign_manager_to_area.assert_not_awaited()
        repo.assign_supervisor_to_warehouse.assert_awaited_once_with(WarehouseId("W1"), USER)
        [skipped] = report.skipped
        assert skipped.operation.entity_id == "A1"
        assert skipped.error_code == "role_lacks_capability"
        assert report.status is ReconciliationStatus.PARTIAL

    @pytest.mark.asyncio
    async def test_role_change_clears_stale_links_and_assigns_new_ones(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(
            USER,
            Role.WAREHOUSE_SUPERVISOR,
            areas("A1", "A2"),
            areas(),
            warehouses(),
            warehouses("W1"),
        )

        removed = {c.args[0] for c in repo.remove_manager_from_area.await_args_list}
        assert removed == areas("A1", "A2")
        repo.assign_supervisor_to_warehouse.assert_awaited_once_with(WarehouseId("W1"), USER)
        assert report.status is ReconciliationStatus.APPLIED

    @pytest.mark.asyncio
    async def test_admin_gets_no_new_links(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(
            USER, Role.ADMIN, [], areas("A1"), [], warehouses("W1")
        )

        assert repo.method_calls == []
        assert len(report.skipped) == 2
        assert report.status is ReconciliationStatus.FAILED


class TestDisabledUsers:
    @pytest.mark.asyncio
    async def test_additions_for_disabled_user_are_rejected_before_any_call(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)

        with pytest.raises(ValidationError) as exc:
            await reconciler.reconcile(
                USER,
                Role.AREA_MANAGER,
                areas("A1"),
                areas("A2"),
                [],
                [],
                status=UserStatus.DISABLED,
            )

        assert exc.value.code == "disabled_target"
        assert repo.method_calls == []

    @pytest.mark.asyncio
    async def test_removals_for_disabled_user_are_allowed(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(
            USER, Role.AREA_MANAGER, areas("A1"), areas(), [], [], status="DESHABILITADO"
        )

        repo.remove_manager_from_area.assert_awaited_once_with(AreaId("A1"), USER)
        assert report.status is ReconciliationStatus.APPLIED


class TestFailures:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_others(self):
        repo = make_repo()

        async def assign(area_id, user_id):
            if area_id == AreaId("A2"):
                raise TransportError("timed out")

        repo.assign_manager_to_area.side_effect = assign
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(
            USER, Role.AREA_MANAGER, [], areas("A1", "A2", "A3"), [], []
        )

        assert repo.assign_manager_to_area.await_count == 3
        [failed] = report.failed
        assert failed.operation.entity_id == "A2"
        assert failed.error_code == "transport_error"
        assert report.status is ReconciliationStatus.PARTIAL
        assert not report.is_complete

    @pytest.mark.asyncio
    async def test_all_failed(self):
        repo = make_repo()
        repo.remove_manager_from_area.side_effect = TransportError("backend down")
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(USER, Role.AREA_MANAGER, areas("A1"), [], [], [])

        assert report.status is ReconciliationStatus.FAILED
        with pytest.raises(PartialFailureError) as exc:
            report.raise_for_failures()
        assert exc.value.report is report
        assert "remove AREA_MANAGER A1" in exc.value.message

    @pytest.mark.asyncio
    async def test_duplicate_active_assignment_counts_as_applied(self):
        repo = make_repo()
        repo.assign_manager_to_area.side_effect = ConflictError("exists")
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(USER, Role.AREA_MANAGER, [], areas("A1"), [], [])

        [outcome] = report.outcomes
        assert outcome.status is OutcomeStatus.ALREADY_APPLIED
        assert report.status is ReconciliationStatus.APPLIED
        report.raise_for_failures()

    @pytest.mark.asyncio
    async def test_removing_inactive_link_counts_as_applied(self):
        repo = InMemoryAssignmentRepository(InMemoryStore())
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(USER, Role.AREA_MANAGER, areas("A1"), [], [], [])

        [outcome] = report.outcomes
        assert outcome.status is OutcomeStatus.ALREADY_APPLIED
        assert report.status is ReconciliationStatus.APPLIED
        reached = report.resulting_set(AssignmentKind.AREA_MANAGER, areas("A1"), AreaId)
        assert reached == frozenset()

        second = await reconciler.reconcile(USER, Role.AREA_MANAGER, reached, [], [], [])
        assert second.outcomes == ()

    @pytest.mark.asyncio
    async def test_not_found_on_assign_still_fails(self):
        repo = make_repo()
        repo.assign_supervisor_to_warehouse.side_effect = NotFoundError("no such warehouse")
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile(
            USER, Role.WAREHOUSE_SUPERVISOR, [], [], [], warehouses("W9")
        )

        [failed] = report.failed
        assert failed.operation.action is OperationAction.ASSIGN
        assert report.status is ReconciliationStatus.FAILED

    @pytest.mark.asyncio
    async def test_unexpected_exceptions_propagate(self):
        repo = make_repo()
        repo.assign_manager_to_area.side_effect = RuntimeError("bug")
        reconciler = make_reconciler(repo)

        with pytest.raises(RuntimeError):
            await reconciler.reconcile(USER, Role.AREA_MANAGER, [], areas("A1"), [], [])


class TestResultingSet:
    @pytest.mark.asyncio
    async def test_effective_set_reflects_only_applied_operations(self):
        repo = make_repo()

        async def assign(area_id, user_id):
            if area_id == AreaId("A3"):
                raise TransportError("boom")

        repo.assign_manager_to_area.side_effect = assign
        reconciler = make_reconciler(repo)
        previous = areas("A1", "A2")

        report = await reconciler.reconcile(
            USER, Role.AREA_MANAGER, previous, areas("A2", "A3", "A4"), [], []
        )

        effective = report.resulting_set(AssignmentKind.AREA_MANAGER, previous, AreaId)
        assert effective == areas("A2", "A4")


class TestIdempotence:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "previous, desired",
        [
            ((), ("A1",)),
            (("A1", "A2"), ("A2", "A3")),
            (("A1", "A2", "A3"), ()),
            (("A1",), ("A1",)),
            (("A1", "A2"), ("A3", "A4", "A5")),
        ],
    )
    async def test_second_run_from_resulting_state_issues_nothing(self, previous, desired):
        store = InMemoryStore()
        repo = InMemoryAssignmentRepository(store)
        reconciler = make_reconciler(repo)
        for name in previous:
            await repo.assign_manager_to_area(AreaId(name), USER)

        first = await reconciler.reconcile(
            USER, Role.AREA_MANAGER, areas(*previous), areas(*desired), [], []
        )
        reached = first.resulting_set(AssignmentKind.AREA_MANAGER, areas(*previous), AreaId)
        second = await reconciler.reconcile(
            USER, Role.AREA_MANAGER, reached, areas(*desired), [], []
        )

        assert reached == areas(*desired)
        assert second.outcomes == ()

    @pytest.mark.asyncio
    async def test_round_trip_through_repository(self):
        store = InMemoryStore()
        repo = InMemoryAssignmentRepository(store)
        reconciler = make_reconciler(repo)
        await repo.assign_manager_to_area(AreaId("A1"), USER)
        await repo.assign_manager_to_area(AreaId("A2"), USER)

        await reconciler.reconcile(
            USER, Role.AREA_MANAGER, areas("A1", "A2"), areas("A2", "A3"), [], []
        )

        active = {
            a.area_id
            for a in await repo.find_by_user(USER)
            if a.is_active and a.kind is AssignmentKind.AREA_MANAGER
        }
        assert active == areas("A2", "A3")


class TestAreaWarehouses:
    @pytest.mark.asyncio
    async def test_reconciles_area_warehouse_links(self):
        repo = make_repo()
        reconciler = make_reconciler(repo)

        report = await reconciler.reconcile_area_warehouses(
            AreaId("A1"), warehouses("W1", "W2"), warehouses("W2", "W3")
        )

        repo.remove_warehouse_from_area.assert_awaited_once_with(AreaId("A1"), WarehouseId("W1"))
        repo.assign_warehouse_to_area.assert_awaited_once_with(AreaId("A1"), WarehouseId("W3"))
        assert {o.operation.kind for o in report.outcomes} == {AssignmentKind.AREA_WAREHOUSE}


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        repo = make_repo()
        running = 0
        peak = 0

        async def assign(area_id, user_id):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        repo.assign_manager_to_area.side_effect = assign
        reconciler = make_reconciler(repo, max_concurrency=2)

        await reconciler.reconcile(
            USER, Role.AREA_MANAGER, [], areas(*(f"A{i}" for i in range(6))), [], []
        )

        assert peak == 2

    @pytest.mark.asyncio
    async def test_same_link_operations_are_serialized(self):
        repo = make_repo()
        running = 0
        peak = 0

        async def assign(area_id, user_id):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        repo.assign_manager_to_area.side_effect = assign
        locks = AssignmentLocks()
        first = AssignmentReconciler(_assignment_repo=repo, _locks=locks)
        second = AssignmentReconciler(_assignment_repo=repo, _locks=locks)

        await asyncio.gather(
            first.reconcile(USER, Role.AREA_MANAGER, [], areas("A1"), [], []),
            second.reconcile(USER, Role.AREA_MANAGER, [], areas("A1"), [], []),
        )

        assert peak == 1
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_waiting_on_busy_link_does_not_hold_a_slot(self):
        repo = make_repo()
        release = asyncio.Event()
        assigned: list[AreaId] = []

        async def assign(area_id, user_id):
            if area_id == AreaId("A1") and not release.is_set():
                await release.wait()
            assigned.append(area_id)

        repo.assign_manager_to_area.side_effect = assign
        locks = AssignmentLocks()
        holder = AssignmentReconciler(_assignment_repo=repo, _locks=locks, _max_concurrency=1)
        waiter = AssignmentReconciler(_assignment_repo=repo, _locks=locks, _max_concurrency=1)

        holding = asyncio.create_task(
            holder.reconcile(USER, Role.AREA_MANAGER, [], areas("A1"), [], [])
        )
        for _ in range(5):
            await asyncio.sleep(0)
        waiting = asyncio.create_task(
            waiter.reconcile(USER, Role.AREA_MANAGER, [], areas("A1", "A2"), [], [])
        )
        for _ in range(10):
            await asyncio.sleep(0)

        # A1 is blocked behind the holder, A2 still got the single slot
        assert assigned == [AreaId("A2")]

        release.set()
        await asyncio.gather(holding, waiting)
        assert sorted(assigned, key=str) == [AreaId("A1"), AreaId("A1"), AreaId("A2")]


class TestOperations:
    def test_operation_renders_readably(self):
        from stockroom.domain.user.model.reconciliation import AssignmentOperation

        op = AssignmentOperation(
            action=OperationAction.ASSIGN,
            kind=AssignmentKind.AREA_MANAGER,
            subject_id="u-1",
            entity_id="A1",
        )

        assert str(op) == "assign AREA_MANAGER A1"
        assert op.lock_key == ("u-1", "A1", AssignmentKind.AREA_MANAGER)
