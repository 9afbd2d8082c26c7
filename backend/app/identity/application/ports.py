from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Sequence

from app.identity.domain.models import ManagerIndex, UserAccount, UserFilters, UserRole


class UserRepository(Protocol):
    async def get_user(self, user_id: int) -> Optional[UserAccount]:
        ...

    async def get_user_by_email(self, email: str) -> Optional[UserAccount]:
        ...

    async def add_user(self, user: UserAccount) -> UserAccount:
        ...

    async def update_user(self, user: UserAccount) -> UserAccount:
        ...

    async def list_users(self, filters: UserFilters) -> Sequence[UserAccount]:
        ...

    async def list_team(self, manager_id: int) -> Sequence[UserAccount]:
        ...

    async def count_by_role(self, role: UserRole) -> int:
        ...

    async def get_manager_index(self) -> ManagerIndex:
        ...

    async def commit(self) -> None:
        ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, password_hash: str) -> bool:
        ...


class TokenCodec(Protocol):
    def encode(self, claims: Dict[str, Any], expires_at: datetime) -> str:
        ...

    def decode(self, token: str) -> Dict[str, Any]:
        """Return the claims, raising ``InvalidCredentials`` on a bad or expired token."""
        ...
