from __future__ import annotations

from typing import Protocol

from ..core.exceptions import NotFoundError
from .repository import UserRepository


class RateProvider(Protocol):
    def get_hourly_rate(self, user_id: int) -> float:
        """Current hourly rate, 0 when none is set."""
        raise NotImplementedError


class UserRateProvider:
    """Reads the rate from the user account.

    Storage failures propagate as ``DependencyError`` so callers never persist a
    record priced with a guessed rate.
    """

    def __init__(self, users: UserRepository):
        self._users = users

    def get_hourly_rate(self, user_id: int) -> float:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return max(float(user.hourly_rate or 0), 0.0)
