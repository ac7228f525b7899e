from dishka import Provider as DishkaProvider

from stockroom.util.di.scope import Scope


class Provider(DishkaProvider):
    """Base for all Stockroom DI providers. Defaults to the UOW scope."""

    scope = Scope.UOW
