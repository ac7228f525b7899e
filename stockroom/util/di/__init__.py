from stockroom.util.di.base import Provider
from stockroom.util.di.scope import Scope

__all__ = ["Provider", "Scope"]
