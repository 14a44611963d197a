from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Employee:
    """Read-only view of a user account; the account itself is managed elsewhere."""

    user_id: int
    full_name: str
    hourly_rate: float = 0.0
    is_active: bool = True
