import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from app.common.errors import AccountLocked, InvalidCredentials
from app.identity.application.ports import PasswordHasher, TokenCodec, UserRepository
from app.identity.domain.models import UserAccount, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: UserRole
    email: str


@dataclass(frozen=True)
class AuthResult:
    token: str
    expires_at: datetime
    user: UserAccount


class CredentialService:
    """Verifies passwords and issues, validates and refreshes session tokens."""

    def __init__(
        self,
        repository: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenCodec,
        clock: Callable[[], datetime],
        token_lifetime: timedelta = timedelta(minutes=60),
    ) -> None:
        self._repository = repository
        self._hasher = hasher
        self._tokens = tokens
        self._clock = clock
        self._token_lifetime = token_lifetime

    async def authenticate(self, email: str, password: str) -> AuthResult:
        logger.debug(f"Authentication attempt for {email}")
        user = await self._repository.get_user_by_email(email)
        if user is None:
            logger.warning(f"Authentication failed - unknown email: {email}")
            raise InvalidCredentials("Invalid email or password")

        if not self._hasher.verify(password, user.password_hash):
            logger.warning(f"Authentication failed - wrong password for: {email}")
            raise InvalidCredentials("Invalid email or password")

        if not user.active:
            logger.warning(f"Authentication failed - inactive account: {email}")
            raise AccountLocked("This account has been deactivated")

        logger.info(f"Authentication successful for {email}")
        return self.issue(user)

    def verify(self, token: str) -> TokenClaims:
        claims = self._tokens.decode(token)
        try:
            return TokenClaims(
                user_id=int(claims["sub"]),
                role=UserRole(claims["role"]),
                email=claims.get("email", ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidCredentials("Invalid token", code="INVALID_TOKEN") from exc

    async def refresh(self, token: str) -> AuthResult:
        claims = self.verify(token)
        user = await self._repository.get_user(claims.user_id)
        if user is None or not user.active:
            raise InvalidCredentials("Invalid user", code="INVALID_TOKEN")
        return self.issue(user)

    def issue(self, user: UserAccount) -> AuthResult:
        expires_at = self._clock() + self._token_lifetime
        token = self._tokens.encode(
            {
                "sub": str(user.id),
                "email": user.email,
                "role": user.role.value,
                "firstName": user.first_name,
                "lastName": user.last_name,
            },
            expires_at,
        )
        return AuthResult(token=token, expires_at=expires_at, user=user)
