from stockroom.domain.user.util.di.provider import UserProvider

__all__ = ["UserProvider"]
