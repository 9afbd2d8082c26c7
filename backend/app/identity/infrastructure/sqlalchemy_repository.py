from typing import Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.identity.application.ports import UserRepository
from app.identity.domain.models import ManagerIndex, UserAccount, UserFilters, UserRole
from database import User


def to_user_account(user: User) -> UserAccount:
    return UserAccount(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=UserRole(user.role),
        password_hash=user.password_hash,
        manager_id=user.manager_id,
        active=user.active,
        department=user.department,
        phone_number=user.phone_number,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_user(self, user_id: int) -> Optional[UserAccount]:
        user = await self._session.get(User, user_id)
        if user is None:
            return None
        return to_user_account(user)

    async def get_user_by_email(self, email: str) -> Optional[UserAccount]:
        result = await self._session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            return None
        return to_user_account(user)

    async def add_user(self, user: UserAccount) -> UserAccount:
        new_user = User(
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            password_hash=user.password_hash,
            role=user.role.value,
            manager_id=user.manager_id,
            active=user.active,
            department=user.department,
            phone_number=user.phone_number,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        self._session.add(new_user)
        await self._session.flush()
        return to_user_account(new_user)

    async def update_user(self, user: UserAccount) -> UserAccount:
        existing = await self._session.get(User, user.id)
        existing.email = user.email
        existing.first_name = user.first_name
        existing.last_name = user.last_name
        existing.password_hash = user.password_hash
        existing.role = user.role.value
        existing.manager_id = user.manager_id
        existing.active = user.active
        existing.department = user.department
        existing.phone_number = user.phone_number
        existing.updated_at = user.updated_at
        await self._session.flush()
        return to_user_account(existing)

    async def list_users(self, filters: UserFilters) -> Sequence[UserAccount]:
        query = select(User)

        if filters.active is not None:
            query = query.where(User.active == filters.active)
        if filters.role is not None:
            query = query.where(User.role == filters.role.value)
        if filters.text:
            pattern = f"%{filters.text.lower()}%"
            query = query.where(
                or_(
                    func.lower(User.first_name).like(pattern),
                    func.lower(User.last_name).like(pattern),
                )
            )

        result = await self._session.execute(query.order_by(User.last_name, User.first_name))
        return [to_user_account(user) for user in result.scalars().all()]

    async def list_team(self, manager_id: int) -> Sequence[UserAccount]:
        result = await self._session.execute(
            select(User).where(User.manager_id == manager_id).order_by(User.last_name)
        )
        return [to_user_account(user) for user in result.scalars().all()]

    async def count_by_role(self, role: UserRole) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(User).where(User.role == role.value)
        )
        return result.scalar() or 0

    async def get_manager_index(self) -> ManagerIndex:
        result = await self._session.execute(select(User.id, User.manager_id))
        return {user_id: manager_id for user_id, manager_id in result.all()}

    async def commit(self) -> None:
        await self._session.commit()
