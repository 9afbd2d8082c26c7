import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional


class UserRole(str, enum.Enum):
    USER = "USER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"

    @property
    def rank(self) -> int:
        return _ROLE_RANKS[self]

    def has_at_least(self, required: "UserRole") -> bool:
        return self.rank >= required.rank


_ROLE_RANKS = {
    UserRole.USER: 0,
    UserRole.MANAGER: 1,
    UserRole.ADMIN: 2,
}


@dataclass(frozen=True)
class UserAccount:
    id: Optional[int]
    email: str
    first_name: str
    last_name: str
    role: UserRole
    password_hash: str
    manager_id: Optional[int] = None
    active: bool = True
    department: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class UserPatch:
    """Optional-field patch; ``None`` means "leave unchanged"."""

    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    department: Optional[str] = None
    phone_number: Optional[str] = None
    active: Optional[bool] = None
    manager_id: Optional[int] = None


@dataclass(frozen=True)
class UserFilters:
    active: Optional[bool] = None
    role: Optional[UserRole] = None
    text: Optional[str] = None


ManagerIndex = Dict[int, Optional[int]]


def creates_cycle(index: ManagerIndex, user_id: int, manager_id: int) -> bool:
    """Return True if making ``manager_id`` the manager of ``user_id`` closes a loop."""
    seen = set()
    current: Optional[int] = manager_id
    while current is not None:
        if current == user_id:
            return True
        if current in seen:
            return True
        seen.add(current)
        current = index.get(current)
    return False
