"""Composable policy types for handler-level authorization gates."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from stockroom.domain.shared.authorization.permission import Permission

if TYPE_CHECKING:
    from stockroom.domain.auth.model.principal import Principal


class Policy(ABC):
    """Base class for composable authorization policies.

    Policies are evaluated at the handler level as a coarse pre-filter
    (permission check only, no resource loaded yet).
    """

    @abstractmethod
    def evaluate(self, principal: "Principal") -> bool:
        """Return True if principal satisfies this policy."""
        ...

    def __and__(self, other: Policy) -> AllOf:
        return AllOf(policies=(self, other))

    def __or__(self, other: Policy) -> AnyOf:
        return AnyOf(policies=(self, other))


@dataclass(frozen=True)
class RequiresPermission(Policy):
    """Policy that checks the principal's role grants a permission."""

    permission: Permission

    def evaluate(self, principal: "Principal") -> bool:
        return principal.has_permission(self.permission)


@dataclass(frozen=True)
class AllOf(Policy):
    """Policy that requires ALL sub-policies to pass."""

    policies: tuple[Policy, ...]

    def evaluate(self, principal: "Principal") -> bool:
        return all(p.evaluate(principal) for p in self.policies)


@dataclass(frozen=True)
class AnyOf(Policy):
    """Policy that requires at least ONE sub-policy to pass."""

    policies: tuple[Policy, ...]

    def evaluate(self, principal: "Principal") -> bool:
        return any(p.evaluate(principal) for p in self.policies)


def requires_permission(permission: Permission) -> RequiresPermission:
    """Factory: policy requiring the given permission."""
    return RequiresPermission(permission=permission)


def requires_all_permissions(*permissions: Permission) -> AllOf:
    """Factory: policy requiring every given permission."""
    return AllOf(policies=tuple(RequiresPermission(permission=p) for p in permissions))
