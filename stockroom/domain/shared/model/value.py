from typing import Generic, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, RootModel

T = TypeVar("T")


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)


class RootValueObject(RootModel[T], Generic[T]):
    model_config = ConfigDict(frozen=True)


class Identifier(RootModel[str]):
    """Opaque string identifier issued by the backend.

    Compared and hashed by value so it can live in sets and dict keys.
    """

    model_config = ConfigDict(frozen=True)

    @classmethod
    def generate(cls):
        return cls(str(uuid4()))

    def __str__(self) -> str:
        return self.root

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.root))

    def __lt__(self, other: "Identifier") -> bool:
        return self.root < other.root
