from __future__ import annotations

from typing import Optional, Protocol

from .model import Employee


class UserRepository(Protocol):
    """Repository interface for user accounts.

    Note (DIP): services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[Employee]:
        raise NotImplementedError
