"""Global test fixtures."""

import os

import pytest

from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.auth.model.role import Role
from stockroom.domain.user.model.value import TenantId, UserId

# Keep a developer's config file or .env overrides out of the unit tests
os.environ.pop("STOCKROOM_CONFIG_FILE", None)
os.environ.pop("STOCKROOM_LOG_FILE", None)

TENANT = TenantId("tenant-1")


def make_principal(role: Role | None = Role.ADMIN, name: str = "Ada Admin") -> Principal:
    return Principal(
        user_id=UserId.generate(),
        display_name=name,
        role=role,
        tenant_id=TENANT,
    )


@pytest.fixture
def tenant_id() -> TenantId:
    return TENANT


@pytest.fixture
def admin() -> Principal:
    return make_principal(Role.ADMIN)


@pytest.fixture
def supervisor() -> Principal:
    return make_principal(Role.WAREHOUSE_SUPERVISOR, name="Sam Supervisor")


@pytest.fixture(name="make_principal")
def make_principal_fixture():
    return make_principal
