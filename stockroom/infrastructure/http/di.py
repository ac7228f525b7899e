"""DI provider for the backend API adapters."""

from collections.abc import AsyncIterable

import httpx
from dishka import provide

from stockroom.config import Config
from stockroom.domain.user.port.repository import (
    AssignmentHistoryRepository,
    AssignmentRepository,
    UserEnablementHistoryRepository,
    UserRepository,
)
from stockroom.infrastructure.http.client import ApiClient
from stockroom.infrastructure.http.repository import (
    HttpAssignmentHistoryRepository,
    HttpAssignmentRepository,
    HttpUserEnablementHistoryRepository,
    HttpUserRepository,
)
from stockroom.util.di.base import Provider
from stockroom.util.di.scope import Scope


def create_http_client(config: Config) -> httpx.AsyncClient:
    api = config.api
    headers = {"Accept": "application/json"}
    if api.token:
        headers["Authorization"] = f"Bearer {api.token}"
    return httpx.AsyncClient(
        base_url=api.base_url,
        headers=headers,
        timeout=httpx.Timeout(
            connect=api.timeout.connect,
            read=api.timeout.read,
            write=api.timeout.write,
            pool=api.timeout.pool,
        ),
    )


class HttpInfraProvider(Provider):
    """Backend API repositories over one shared httpx client."""

    @provide(scope=Scope.APP)
    async def get_http_client(self, config: Config) -> AsyncIterable[httpx.AsyncClient]:
        async with create_http_client(config) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_api_client(self, http: httpx.AsyncClient) -> ApiClient:
        return ApiClient(http)

    user_repo = provide(HttpUserRepository, scope=Scope.UOW, provides=UserRepository)
    assignment_repo = provide(
        HttpAssignmentRepository, scope=Scope.UOW, provides=AssignmentRepository
    )
    assignment_history_repo = provide(
        HttpAssignmentHistoryRepository,
        scope=Scope.UOW,
        provides=AssignmentHistoryRepository,
    )
    enablement_history_repo = provide(
        HttpUserEnablementHistoryRepository,
        scope=Scope.UOW,
        provides=UserEnablementHistoryRepository,
    )
