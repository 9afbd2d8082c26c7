"""Stateless access predicates over (acting user, request)."""
from app.identity.domain.models import UserRole
from app.rdq.domain.models import Rdq, UserSummary


def is_owner(user: UserSummary, request: Rdq) -> bool:
    return request.owner.id == user.id


def is_direct_manager(user: UserSummary, request: Rdq) -> bool:
    # Single level only: the owner's manager, never the manager's manager.
    return request.owner.manager_id is not None and request.owner.manager_id == user.id


def is_admin(user: UserSummary) -> bool:
    return user.role == UserRole.ADMIN


def can_read(user: UserSummary, request: Rdq) -> bool:
    return is_owner(user, request) or is_direct_manager(user, request) or is_admin(user)


def can_decide(user: UserSummary, request: Rdq) -> bool:
    """Approve, reject or ask for more information."""
    return is_direct_manager(user, request) or is_admin(user)
