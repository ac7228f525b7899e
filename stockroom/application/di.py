from dishka import AsyncContainer, Provider, make_async_container

from stockroom.config import Config
from stockroom.domain.user.util.di import UserProvider
from stockroom.infrastructure.http.di import HttpInfraProvider
from stockroom.infrastructure.memory.di import MemoryInfraProvider
from stockroom.util.di.scope import Scope


def create_container(config: Config | None = None) -> AsyncContainer:
    """Assemble the application container.

    Enter the UOW scope with the requester's identity:
        async with container(context={Principal: principal}) as uow:
            handler = await uow.get(UpdateUserHandler)
    """
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()

    infra: Provider = MemoryInfraProvider() if config.api.use_memory else HttpInfraProvider()

    return make_async_container(
        infra,
        UserProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
