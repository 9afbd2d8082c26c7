"""
User Directory Routes - accounts, roles and manager relationships
"""
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from app.identity.application.ports import PasswordHasher, UserRepository
from app.identity.application.use_cases import (
    AssignManagerUseCase,
    GetUserUseCase,
    ListTeamMembersUseCase,
    ListUsersUseCase,
    RegisterUserCommand,
    RegisterUserUseCase,
    SetUserActiveUseCase,
    UpdateUserUseCase,
)
from app.identity.domain.models import UserAccount, UserFilters, UserPatch, UserRole
from app.identity.presentation.response_mapper import user_to_response
from routes.auth_routes import get_current_user, require_role
from routes.dependencies import Clock, get_clock, get_password_hasher, get_user_repository

# Create router
users_router = APIRouter(prefix="/api/users", tags=["Users"])

admin_only = require_role(UserRole.ADMIN)


# ==================== PYDANTIC MODELS ====================

class UserCreate(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=2, max_length=100)
    last_name: str = Field(min_length=2, max_length=100)
    role: UserRole
    password: str = Field(min_length=8, max_length=255)
    manager_id: Optional[int] = None
    department: Optional[str] = Field(default=None, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=20)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    role: Optional[UserRole] = None
    department: Optional[str] = Field(default=None, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    active: Optional[bool] = None
    manager_id: Optional[int] = None


class ManagerAssignment(BaseModel):
    manager_id: Optional[int] = None


# ==================== USER ROUTES ====================

@users_router.get("")
async def list_users(
    active: Optional[bool] = None,
    role: Optional[UserRole] = None,
    q: Optional[str] = Query(default=None, max_length=100),
    current_user: UserAccount = Depends(admin_only),
    users: UserRepository = Depends(get_user_repository),
):
    """List users - admin only"""
    result = await ListUsersUseCase(users).execute(UserFilters(active=active, role=role, text=q))
    return [user_to_response(user) for user in result]


@users_router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: UserAccount = Depends(admin_only),
    users: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    clock: Clock = Depends(get_clock),
):
    """Register a new user - admin only"""
    use_case = RegisterUserUseCase(users, hasher, clock)
    created = await use_case.execute(RegisterUserCommand(**user_data.model_dump()))
    return user_to_response(created)


@users_router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: UserAccount = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    """Get a user - self or admin"""
    return user_to_response(await GetUserUseCase(users).execute(user_id, current_user))


@users_router.put("/{user_id}")
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: UserAccount = Depends(admin_only),
    users: UserRepository = Depends(get_user_repository),
    clock: Clock = Depends(get_clock),
):
    """Update a user - admin only"""
    use_case = UpdateUserUseCase(users, clock)
    updated = await use_case.execute(user_id, UserPatch(**user_data.model_dump()), current_user)
    return user_to_response(updated)


@users_router.put("/{user_id}/manager")
async def assign_manager(
    user_id: int,
    assignment: ManagerAssignment,
    current_user: UserAccount = Depends(admin_only),
    users: UserRepository = Depends(get_user_repository),
    clock: Clock = Depends(get_clock),
):
    """Set or clear a user's manager - admin only"""
    updated = await AssignManagerUseCase(users, clock).execute(user_id, assignment.manager_id)
    return user_to_response(updated)


@users_router.post("/{user_id}/activate")
async def activate_user(
    user_id: int,
    current_user: UserAccount = Depends(admin_only),
    users: UserRepository = Depends(get_user_repository),
    clock: Clock = Depends(get_clock),
):
    """Reactivate an account - admin only"""
    updated = await SetUserActiveUseCase(users, clock).execute(user_id, True, current_user)
    return user_to_response(updated)


@users_router.post("/{user_id}/deactivate")
async def deactivate_user(
    user_id: int,
    current_user: UserAccount = Depends(admin_only),
    users: UserRepository = Depends(get_user_repository),
    clock: Clock = Depends(get_clock),
):
    """Soft-deactivate an account - admin only"""
    updated = await SetUserActiveUseCase(users, clock).execute(user_id, False, current_user)
    return user_to_response(updated)


@users_router.get("/{user_id}/team")
async def get_team_members(
    user_id: int,
    current_user: UserAccount = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    """Direct reports of a manager - that manager or admin"""
    team = await ListTeamMembersUseCase(users).execute(user_id, current_user)
    return [user_to_response(user) for user in team]
