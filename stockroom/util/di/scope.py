"""Custom Dishka scopes for Stockroom."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """Stockroom dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (singletons: HTTP client, assignment locks)
    - UOW: Unit of Work (one console request, bound to one Principal)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
