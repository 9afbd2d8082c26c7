"""
Dependency providers shared by the routers
Tests swap these out through app.dependency_overrides
"""
from datetime import datetime, timedelta, timezone
from typing import Callable

from fastapi import BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.identity.application.credentials import CredentialService
from app.identity.application.ports import PasswordHasher, TokenCodec, UserRepository
from app.identity.domain.models import UserAccount
from app.identity.infrastructure.security import JoseTokenCodec, PasslibPasswordHasher
from app.identity.infrastructure.settings import auth_settings
from app.identity.infrastructure.sqlalchemy_repository import SqlAlchemyUserRepository
from app.rdq.application.notifications import BackgroundNotificationSink
from app.rdq.application.ports import NotificationSink, RdqRepository
from app.rdq.domain.models import UserSummary
from app.rdq.infrastructure.logging_notifications import LoggingNotificationSink
from app.rdq.infrastructure.sqlalchemy_repository import SqlAlchemyRdqRepository
from database import get_postgres_session

Clock = Callable[[], datetime]

_password_hasher = PasslibPasswordHasher()
_notification_sink = LoggingNotificationSink()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    return utcnow


def get_user_repository(
    session: AsyncSession = Depends(get_postgres_session),
) -> UserRepository:
    return SqlAlchemyUserRepository(session)


def get_rdq_repository(
    session: AsyncSession = Depends(get_postgres_session),
) -> RdqRepository:
    return SqlAlchemyRdqRepository(session)


def get_notification_sink() -> NotificationSink:
    return _notification_sink


def get_background_notifier(
    background_tasks: BackgroundTasks,
    sink: NotificationSink = Depends(get_notification_sink),
) -> NotificationSink:
    """Delivery runs after the response; a slow sink never delays the caller"""
    return BackgroundNotificationSink(sink, background_tasks.add_task)


def get_password_hasher() -> PasswordHasher:
    return _password_hasher


def get_token_codec() -> TokenCodec:
    return JoseTokenCodec(
        secret_key=auth_settings.secret_key,
        algorithm=auth_settings.jwt_algorithm,
        issuer=auth_settings.jwt_issuer,
    )


def get_credential_service(
    users: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenCodec = Depends(get_token_codec),
    clock: Clock = Depends(get_clock),
) -> CredentialService:
    return CredentialService(
        repository=users,
        hasher=hasher,
        tokens=tokens,
        clock=clock,
        token_lifetime=timedelta(minutes=auth_settings.access_token_expire_minutes),
    )


def to_user_summary(user: UserAccount) -> UserSummary:
    return UserSummary(
        id=user.id,
        email=user.email,
        name=user.full_name,
        role=user.role,
        manager_id=user.manager_id,
        active=user.active,
    )
