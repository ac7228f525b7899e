"""Set difference between a previous and a desired collection of identifiers."""

from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class SetDiff(Generic[K]):
    """Elements to add and to remove to move from one set to another.

    Both sides are frozensets, so the insertion order of the inputs never
    influences the result.
    """

    to_add: frozenset[K]
    to_remove: frozenset[K]

    def __bool__(self) -> bool:
        return bool(self.to_add or self.to_remove)

    def __len__(self) -> int:
        return len(self.to_add) + len(self.to_remove)


def diff_sets(previous: Iterable[K], desired: Iterable[K]) -> SetDiff[K]:
    """Compute ``desired - previous`` and ``previous - desired``.

    Elements present on both sides appear in neither result.
    """
    before = frozenset(previous)
    after = frozenset(desired)
    return SetDiff(to_add=after - before, to_remove=before - after)
