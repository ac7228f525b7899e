"""Tests for user-domain models."""

import pydantic
import pytest

from stockroom.domain.auth.model.role import Role
from stockroom.domain.user.model.assignment import Assignment, AssignmentKind
from stockroom.domain.user.model.reconciliation import (
    AssignmentOperation,
    OperationAction,
    OperationOutcome,
    OutcomeStatus,
    ReconciliationReport,
    ReconciliationStatus,
)
from stockroom.domain.user.model.user import User, UserFieldUpdate, UserUpdate
from stockroom.domain.user.model.value import AreaId, TenantId, UserId, UserStatus


def make_user(**overrides) -> User:
    data = {
        "id": UserId("u-1"),
        "tenant_id": TenantId("t-1"),
        "name": "Rosa",
        "last_name": "Pérez",
        "role": Role.AREA_MANAGER,
    }
    data.update(overrides)
    return User(**data)


def outcome(status: OutcomeStatus, entity_id: str = "A1") -> OperationOutcome:
    op = AssignmentOperation(
        action=OperationAction.ASSIGN,
        kind=AssignmentKind.AREA_MANAGER,
        subject_id="u-1",
        entity_id=entity_id,
    )
    return OperationOutcome(operation=op, status=status)


class TestUserStatus:
    @pytest.mark.parametrize("raw", ["ENABLED", "habilitado", "Activo", " active "])
    def test_enabled_aliases(self, raw):
        assert UserStatus.parse(raw) is UserStatus.ENABLED

    @pytest.mark.parametrize("raw", ["DISABLED", "deshabilitado", "INACTIVO", "inactive"])
    def test_disabled_aliases(self, raw):
        assert UserStatus.parse(raw) is UserStatus.DISABLED

    def test_unknown_status(self):
        with pytest.raises(ValueError, match="Unknown user status"):
            UserStatus.parse("SUSPENDED")


class TestUser:
    def test_role_alias_is_canonicalized(self):
        assert make_user(role="JEFE").role is Role.AREA_MANAGER

    def test_unknown_role_is_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            make_user(role="INTERN")

    def test_is_enabled_derives_from_status(self):
        assert make_user().is_enabled
        assert not make_user(status="DESHABILITADO").is_enabled

    def test_full_name(self):
        assert make_user().full_name == "Rosa Pérez"
        assert make_user(last_name="").full_name == "Rosa"

    def test_with_relationships_returns_copy(self):
        user = make_user()

        linked = user.with_relationships(frozenset({AreaId("A1")}), frozenset())

        assert linked.areas == {AreaId("A1")}
        assert user.areas == frozenset()


class TestUserUpdate:
    def test_split_separates_scalars_from_relationships(self):
        update = UserUpdate(name="Rosa", role="jefe", areas=frozenset({AreaId("A1")}))

        scalars, relationships = update.split()

        assert scalars == {"name": "Rosa", "role": "jefe"}
        assert relationships.areas == {AreaId("A1")}
        assert relationships.warehouses is None

    def test_empty_list_differs_from_unchanged(self):
        _, relationships = UserUpdate(areas=frozenset()).split()

        assert relationships.areas == frozenset()
        assert relationships.warehouses is None

    def test_field_update_changes(self):
        assert UserFieldUpdate().is_empty()
        assert UserFieldUpdate(phone="123").changes() == {"phone": "123"}


class TestReconciliationReport:
    def test_status_from_outcomes(self):
        applied = outcome(OutcomeStatus.APPLIED, "A1")
        already = outcome(OutcomeStatus.ALREADY_APPLIED, "A2")
        failed = outcome(OutcomeStatus.FAILED, "A3")

        assert ReconciliationReport(subject_id="u").status is ReconciliationStatus.NOOP
        assert (
            ReconciliationReport(subject_id="u", outcomes=(applied, already)).status
            is ReconciliationStatus.APPLIED
        )
        assert (
            ReconciliationReport(subject_id="u", outcomes=(applied, failed)).status
            is ReconciliationStatus.PARTIAL
        )
        assert (
            ReconciliationReport(subject_id="u", outcomes=(failed,)).status
            is ReconciliationStatus.FAILED
        )

    def test_merge_concatenates_outcomes(self):
        first = ReconciliationReport(subject_id="u", outcomes=(outcome(OutcomeStatus.APPLIED),))
        second = ReconciliationReport(
            subject_id="u", outcomes=(outcome(OutcomeStatus.FAILED, "A2"),)
        )

        merged = first.merge(second)

        assert len(merged.outcomes) == 2
        assert merged.status is ReconciliationStatus.PARTIAL


class TestAssignment:
    def test_revoke(self):
        assignment = Assignment.create(
            AssignmentKind.AREA_MANAGER, user_id=UserId("u-1"), area_id=AreaId("A1")
        )

        assignment.revoke()

        assert not assignment.is_active
        assert assignment.revoked_at is not None

    def test_endpoints_identify_the_linked_pair(self):
        first = Assignment.create(
            AssignmentKind.AREA_MANAGER, user_id=UserId("u-1"), area_id=AreaId("A1")
        )
        second = Assignment.create(
            AssignmentKind.AREA_MANAGER, user_id=UserId("u-1"), area_id=AreaId("A1")
        )

        assert first.id != second.id
        assert first.endpoints == second.endpoints
