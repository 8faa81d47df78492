"""
Per-session context shared by the mock generator and the state manager.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List

from shared.types import User, UserRole
from shared.utils import get_unique_id, utc_now

DEFAULT_USERS: List[User] = [
    User(
        id="user-1",
        name="Alex Johnson",
        email="alex@company.com",
        avatar="AJ",
        role=UserRole.USER,
    ),
    User(
        id="user-2",
        name="Sarah Wilson",
        email="sarah@company.com",
        avatar="SW",
        role=UserRole.ADMIN,
    ),
    User(
        id="user-3",
        name="Mike Chen",
        email="mike@company.com",
        avatar="MC",
        role=UserRole.SUPPORT,
    ),
]


@dataclass
class AppContext:
    """Current user, user pool, randomness and clock for one client session."""

    users: List[User] = field(default_factory=lambda: list(DEFAULT_USERS))
    current_user: User | None = None
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], datetime] = utc_now

    def __post_init__(self):
        if not self.users:
            raise ValueError("AppContext requires at least one user")
        if self.current_user is None:
            self.current_user = self.users[0]

    def now(self) -> datetime:
        return self.clock()

    def new_id(self) -> str:
        return get_unique_id(self.rng)
