"""Command and CommandHandler base classes with authorization gate."""

import logging
from abc import ABCMeta, abstractmethod
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from functools import wraps
from typing import Any, Generic, TypeVar, dataclass_transform

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Command(BaseModel): ...


class Result(BaseModel): ...


C = TypeVar("C", bound=Command)
R = TypeVar("R", bound=Result)

# Unbound async handler method: (self, cmd) -> Coroutine -> Result
_HandlerMethod = Callable[..., Coroutine[Any, Any, Any]]


def wrap_run_with_auth(original_run: _HandlerMethod) -> _HandlerMethod:
    """Wrap a handler's run() method with __auth__ policy evaluation."""

    @wraps(original_run)
    async def auth_wrapped_run(self: Any, cmd: Any) -> Any:
        from stockroom.domain.shared.error import AuthorizationError, ConfigurationError

        auth_policy = getattr(type(self), "__auth__", None)
        if auth_policy is None:
            raise ConfigurationError(f"Handler {type(self).__name__} has no __auth__ declaration")

        principal = getattr(self, "_principal", None)
        if principal is None:
            raise AuthorizationError(
                "Authentication required",
                code="missing_token",
            )

        if not auth_policy.evaluate(principal):
            logger.warning(
                "Access denied: handler=%s, user_id=%s, role=%s",
                type(self).__name__,
                principal.user_id,
                principal.role,
            )
            raise AuthorizationError(
                f"Access denied: insufficient permissions for {type(self).__name__}",
                code="access_denied",
            )

        return await original_run(self, cmd)

    return auth_wrapped_run


@dataclass_transform()
class _CommandHandlerMeta(ABCMeta):
    """Metaclass that combines ABC with auto-dataclass and __auth__ gate for subclasses."""

    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]):
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(b, mcs) for b in bases):
            cls = dataclass(cls)

            original_run = cls.__dict__.get("run")
            if original_run is not None:
                cls.run = wrap_run_with_auth(original_run)

        return cls


class CommandHandler(Generic[C, R], metaclass=_CommandHandlerMeta):
    """Base class for command handlers. Subclasses are automatically dataclasses.

    Declare __auth__ to enforce permission-based access:
        class MyHandler(CommandHandler[MyCmd, MyResult]):
            __auth__ = requires_permission(Permission.USERS_EDIT)
            _principal: Principal | None = None
    """

    @abstractmethod
    async def run(self, cmd: C) -> R: ...
