"""
Auth Routes - login, token refresh, current user and first-admin setup
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
import logging

from app.common.errors import AccessDenied, AccountLocked, InvalidCredentials
from app.identity.application.credentials import CredentialService
from app.identity.application.ports import PasswordHasher, UserRepository
from app.identity.application.use_cases import (
    BootstrapFirstAdminUseCase,
    ChangePasswordUseCase,
    RegisterUserCommand,
)
from app.identity.domain.models import UserAccount, UserRole
from app.identity.presentation.response_mapper import auth_result_to_response, user_to_response
from routes.dependencies import (
    Clock,
    get_clock,
    get_credential_service,
    get_password_hasher,
    get_user_repository,
)

logger = logging.getLogger(__name__)

# Missing credentials are reported through the error envelope, not FastAPI's default body
security = HTTPBearer(auto_error=False)

# Create router
auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])


# ==================== PYDANTIC MODELS ====================

class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=255)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=255)


class SetupFirstAdmin(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=2, max_length=100)
    last_name: str = Field(min_length=2, max_length=100)
    password: str = Field(min_length=8, max_length=255)


# ==================== HELPER FUNCTIONS ====================

def get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def _bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or not credentials.credentials:
        raise InvalidCredentials("Authentication required", code="MISSING_TOKEN")
    return credentials.credentials


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: CredentialService = Depends(get_credential_service),
    users: UserRepository = Depends(get_user_repository),
) -> UserAccount:
    """Resolve the caller from the bearer token"""
    claims = service.verify(_bearer_token(credentials))

    user = await users.get_user(claims.user_id)
    if user is None:
        raise InvalidCredentials("User not found", code="INVALID_TOKEN")
    if not user.active:
        raise AccountLocked("This account has been deactivated")

    return user


def require_role(required: UserRole):
    """Dependency factory: the caller's role must rank at least ``required``"""

    async def dependency(current_user: UserAccount = Depends(get_current_user)) -> UserAccount:
        if not current_user.role.has_at_least(required):
            raise AccessDenied(f"This action requires the {required.value} role")
        return current_user

    return dependency


# ==================== AUTH ROUTES ====================

@auth_router.post("/login")
async def login(
    credentials: UserLogin,
    request: Request,
    service: CredentialService = Depends(get_credential_service),
):
    """Login user"""
    client_ip = get_client_ip(request)
    logger.info(f"Login attempt for email: {credentials.email} from IP: {client_ip}")

    result = await service.authenticate(credentials.email, credentials.password)

    logger.info(f"Successful login for user: {credentials.email} from IP: {client_ip}")
    return auth_result_to_response(result)


@auth_router.post("/refresh")
async def refresh_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: CredentialService = Depends(get_credential_service),
):
    """Exchange a still-valid token for a new one"""
    result = await service.refresh(_bearer_token(credentials))
    return auth_result_to_response(result)


@auth_router.post("/logout")
async def logout(current_user: UserAccount = Depends(get_current_user)):
    """Logout is client side: the token is simply discarded"""
    logger.info(f"User {current_user.email} logged out")
    return {"message": "Logged out successfully"}


@auth_router.get("/me")
async def get_me(current_user: UserAccount = Depends(get_current_user)):
    """Get current user info"""
    return user_to_response(current_user)


@auth_router.post("/change-password")
async def change_password(
    password_data: ChangePasswordRequest,
    current_user: UserAccount = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    clock: Clock = Depends(get_clock),
):
    """Change current user's password"""
    use_case = ChangePasswordUseCase(users, hasher, clock)
    await use_case.execute(current_user.id, password_data.current_password, password_data.new_password)
    return {"message": "Password changed successfully"}


@auth_router.get("/setup/check")
async def check_setup_required(
    users: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    clock: Clock = Depends(get_clock),
):
    """Check if the system still needs its first admin"""
    use_case = BootstrapFirstAdminUseCase(users, hasher, clock)
    return {"setup_required": await use_case.setup_required()}


@auth_router.post("/setup/first-admin", status_code=status.HTTP_201_CREATED)
async def create_first_admin(
    admin_data: SetupFirstAdmin,
    users: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    clock: Clock = Depends(get_clock),
    service: CredentialService = Depends(get_credential_service),
):
    """Create first admin - only available if no admin exists"""
    use_case = BootstrapFirstAdminUseCase(users, hasher, clock)
    admin = await use_case.execute(
        RegisterUserCommand(
            email=admin_data.email,
            first_name=admin_data.first_name,
            last_name=admin_data.last_name,
            role=UserRole.ADMIN,
            password=admin_data.password,
        )
    )
    return auth_result_to_response(service.issue(admin))
