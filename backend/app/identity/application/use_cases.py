import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from app.common.errors import AccessDenied, NotFound, ValidationError
from app.identity.application.ports import PasswordHasher, UserRepository
from app.identity.domain.models import (
    UserAccount,
    UserFilters,
    UserPatch,
    UserRole,
    creates_cycle,
)
from app.identity.domain.passwords import PASSWORD_REQUIREMENTS, is_strong_password

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class RegisterUserCommand:
    email: str
    first_name: str
    last_name: str
    role: UserRole
    password: str
    manager_id: Optional[int] = None
    department: Optional[str] = None
    phone_number: Optional[str] = None


async def _require_user(repository: UserRepository, user_id: int) -> UserAccount:
    user = await repository.get_user(user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found", code="USER_NOT_FOUND")
    return user


async def _ensure_email_free(repository: UserRepository, email: str) -> None:
    if await repository.get_user_by_email(email) is not None:
        raise ValidationError("This email is already in use", code="EMAIL_ALREADY_EXISTS")


def _ensure_strong(password: str) -> None:
    if not is_strong_password(password):
        raise ValidationError(PASSWORD_REQUIREMENTS, code="WEAK_PASSWORD")


def _ensure_not_self_deactivation(
    user_id: int, active: Optional[bool], current_user: UserAccount
) -> None:
    if active is False and user_id == current_user.id:
        raise ValidationError("You cannot deactivate your own account", code="SELF_DEACTIVATION")


async def _check_manager(
    repository: UserRepository, user_id: Optional[int], manager_id: int
) -> None:
    if user_id is not None and manager_id == user_id:
        raise ValidationError("A user cannot be their own manager", code="MANAGER_CYCLE")
    manager = await repository.get_user(manager_id)
    if manager is None:
        raise NotFound(f"Manager {manager_id} not found", code="MANAGER_NOT_FOUND")
    if user_id is not None:
        index = await repository.get_manager_index()
        if creates_cycle(index, user_id, manager_id):
            raise ValidationError(
                "This assignment would create a management cycle", code="MANAGER_CYCLE"
            )


class RegisterUserUseCase:
    def __init__(self, repository: UserRepository, hasher: PasswordHasher, clock: Clock) -> None:
        self._repository = repository
        self._hasher = hasher
        self._clock = clock

    async def execute(self, command: RegisterUserCommand) -> UserAccount:
        logger.debug(f"Registering user {command.email}")
        await _ensure_email_free(self._repository, command.email)
        _ensure_strong(command.password)
        if command.manager_id is not None:
            await _check_manager(self._repository, None, command.manager_id)

        now = self._clock()
        user = UserAccount(
            id=None,
            email=command.email,
            first_name=command.first_name,
            last_name=command.last_name,
            role=command.role,
            password_hash=self._hasher.hash(command.password),
            manager_id=command.manager_id,
            active=True,
            department=command.department,
            phone_number=command.phone_number,
            created_at=now,
            updated_at=now,
        )
        created = await self._repository.add_user(user)
        await self._repository.commit()

        logger.info(f"User created: id={created.id}, email={created.email}")
        return created


class BootstrapFirstAdminUseCase:
    """Creates the first ADMIN account; refused once any admin exists."""

    def __init__(self, repository: UserRepository, hasher: PasswordHasher, clock: Clock) -> None:
        self._repository = repository
        self._register = RegisterUserUseCase(repository, hasher, clock)

    async def setup_required(self) -> bool:
        return await self._repository.count_by_role(UserRole.ADMIN) == 0

    async def execute(self, command: RegisterUserCommand) -> UserAccount:
        if not await self.setup_required():
            raise AccessDenied("The system has already been set up", code="SETUP_DONE")
        return await self._register.execute(replace(command, role=UserRole.ADMIN, manager_id=None))


class GetUserUseCase:
    def __init__(self, repository: UserRepository) -> None:
        self._repository = repository

    async def execute(self, user_id: int, current_user: UserAccount) -> UserAccount:
        if current_user.id != user_id and current_user.role != UserRole.ADMIN:
            raise AccessDenied("You can only view your own profile")
        return await _require_user(self._repository, user_id)


class ListUsersUseCase:
    def __init__(self, repository: UserRepository) -> None:
        self._repository = repository

    async def execute(self, filters: UserFilters) -> Sequence[UserAccount]:
        return await self._repository.list_users(filters)


class ListTeamMembersUseCase:
    def __init__(self, repository: UserRepository) -> None:
        self._repository = repository

    async def execute(self, manager_id: int, current_user: UserAccount) -> Sequence[UserAccount]:
        if current_user.id != manager_id and current_user.role != UserRole.ADMIN:
            raise AccessDenied("You can only list your own team")
        await _require_user(self._repository, manager_id)
        return await self._repository.list_team(manager_id)


class UpdateUserUseCase:
    def __init__(self, repository: UserRepository, clock: Clock) -> None:
        self._repository = repository
        self._clock = clock

    async def execute(
        self, user_id: int, patch: UserPatch, current_user: UserAccount
    ) -> UserAccount:
        logger.debug(f"Updating user {user_id}: {patch}")
        _ensure_not_self_deactivation(user_id, patch.active, current_user)
        user = await _require_user(self._repository, user_id)

        if patch.email is not None and patch.email != user.email:
            await _ensure_email_free(self._repository, patch.email)
        if patch.manager_id is not None and patch.manager_id != user.manager_id:
            await _check_manager(self._repository, user_id, patch.manager_id)

        changes = {
            name: value
            for name, value in vars(patch).items()
            if value is not None
        }
        updated = await self._repository.update_user(
            replace(user, updated_at=self._clock(), **changes)
        )
        await self._repository.commit()

        logger.info(f"User updated: id={user_id}")
        return updated


class AssignManagerUseCase:
    def __init__(self, repository: UserRepository, clock: Clock) -> None:
        self._repository = repository
        self._clock = clock

    async def execute(self, user_id: int, manager_id: Optional[int]) -> UserAccount:
        user = await _require_user(self._repository, user_id)
        if manager_id is not None:
            await _check_manager(self._repository, user_id, manager_id)

        updated = await self._repository.update_user(
            replace(user, manager_id=manager_id, updated_at=self._clock())
        )
        await self._repository.commit()

        logger.info(f"Manager of user {user_id} set to {manager_id}")
        return updated


class SetUserActiveUseCase:
    def __init__(self, repository: UserRepository, clock: Clock) -> None:
        self._repository = repository
        self._clock = clock

    async def execute(self, user_id: int, active: bool, current_user: UserAccount) -> UserAccount:
        _ensure_not_self_deactivation(user_id, active, current_user)
        user = await _require_user(self._repository, user_id)

        updated = await self._repository.update_user(
            replace(user, active=active, updated_at=self._clock())
        )
        await self._repository.commit()

        logger.info(f"User {'activated' if active else 'deactivated'}: id={user_id}")
        return updated


class ChangePasswordUseCase:
    def __init__(self, repository: UserRepository, hasher: PasswordHasher, clock: Clock) -> None:
        self._repository = repository
        self._hasher = hasher
        self._clock = clock

    async def execute(self, user_id: int, current_password: str, new_password: str) -> None:
        user = await _require_user(self._repository, user_id)
        if not self._hasher.verify(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect", code="INVALID_PASSWORD")
        _ensure_strong(new_password)

        await self._repository.update_user(
            replace(
                user,
                password_hash=self._hasher.hash(new_password),
                updated_at=self._clock(),
            )
        )
        await self._repository.commit()
        logger.info(f"Password changed for user {user_id}")
