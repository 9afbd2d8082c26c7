import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Awaitable, Callable, Optional

from app.common.errors import AccessDenied, InvalidStatusTransition, NotFound, ValidationError
from app.common.pagination import Page, PageRequest
from app.identity.domain.models import UserRole
from app.rdq.application.notifications import dispatch_notification
from app.rdq.application.ports import NotificationSink, RdqRepository
from app.rdq.domain import validation
from app.rdq.domain.access import can_decide, can_read, is_admin, is_owner
from app.rdq.domain.models import (
    Rdq,
    RdqFilters,
    RdqPatch,
    RdqPriority,
    RdqStatus,
    RdqType,
    UserSummary,
)
from app.rdq.domain.workflow import RdqAction, next_status

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class CreateRdqCommand:
    title: str
    description: str
    type: RdqType
    priority: RdqPriority
    justification: Optional[str] = None
    requested_date: Optional[datetime] = None


@dataclass(frozen=True)
class SearchRdqQuery:
    owner_id: Optional[int] = None
    status: Optional[RdqStatus] = None
    type: Optional[RdqType] = None
    priority: Optional[RdqPriority] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    text: Optional[str] = None
    page: int = 0
    size: int = 20


async def _load_request(repository: RdqRepository, request_id: int) -> Rdq:
    request = await repository.get_request(request_id)
    if request is None:
        raise NotFound(f"RDQ {request_id} not found", code="RDQ_NOT_FOUND")
    return request


class CreateRdqUseCase:
    def __init__(
        self,
        repository: RdqRepository,
        notifier: NotificationSink,
        clock: Clock,
    ) -> None:
        self._repository = repository
        self._notifier = notifier
        self._clock = clock

    async def execute(self, command: CreateRdqCommand, owner_id: int) -> Rdq:
        logger.debug(f"Creating RDQ for user {owner_id}: {command.title}")
        now = self._clock()

        validation.validate_title(command.title)
        validation.validate_description(command.description)
        validation.validate_justification(command.justification)
        validation.validate_requested_date(command.requested_date, now)

        owner = await self._repository.get_user(owner_id)
        if owner is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")

        if "test" in command.title.lower() and command.type != RdqType.AUTRE:
            logger.warning(f"Suspicious RDQ creation attempt by user {owner_id}: {command.title}")

        requested_date = command.requested_date
        if requested_date is not None:
            requested_date = validation.as_utc(requested_date)

        request = Rdq(
            id=None,
            title=command.title,
            description=command.description,
            type=command.type,
            priority=command.priority,
            status=RdqStatus.DRAFT,
            owner=owner,
            justification=command.justification,
            requested_date=requested_date,
            created_at=now,
            updated_at=now,
            version=0,
        )
        created = await self._repository.add_request(request)
        await self._repository.commit()

        await dispatch_notification(self._notifier.rdq_created, created)

        logger.info(f"RDQ created successfully: id={created.id}, title={created.title}")
        return created


class GetRdqUseCase:
    def __init__(self, repository: RdqRepository) -> None:
        self._repository = repository

    async def execute(self, request_id: int, current_user: UserSummary) -> Rdq:
        logger.debug(f"Getting RDQ {request_id} for user {current_user.id}")
        request = await _load_request(self._repository, request_id)
        if not can_read(current_user, request):
            raise AccessDenied("You are not allowed to view this RDQ")
        return request


class UpdateRdqUseCase:
    def __init__(self, repository: RdqRepository, clock: Clock) -> None:
        self._repository = repository
        self._clock = clock

    async def execute(self, request_id: int, patch: RdqPatch, current_user: UserSummary) -> Rdq:
        logger.debug(f"Updating RDQ {request_id}: {patch}")
        request = await _load_request(self._repository, request_id)

        if not is_owner(current_user, request):
            raise AccessDenied("You can only modify your own RDQ")
        if not request.can_be_modified:
            raise AccessDenied(
                f"An RDQ in status {request.status.value} can no longer be modified"
            )

        now = self._clock()
        changes = patch.changes()
        if "title" in changes:
            validation.validate_title(patch.title)
        if "description" in changes:
            validation.validate_description(patch.description)
        if "justification" in changes:
            validation.validate_justification(patch.justification)
        if "requested_date" in changes:
            validation.validate_requested_date(patch.requested_date, now)
            changes["requested_date"] = validation.as_utc(patch.requested_date)

        updated = await self._repository.update_request(
            replace(request, updated_at=now, version=request.version + 1, **changes),
            expected_version=request.version,
        )
        await self._repository.commit()

        logger.info(f"RDQ updated successfully: id={request_id}")
        return updated


class _TransitionUseCase:
    """Shared load / authorize / transition / persist / notify sequence."""

    action: RdqAction
    comment_required = False

    def __init__(
        self,
        repository: RdqRepository,
        notifier: NotificationSink,
        clock: Clock,
    ) -> None:
        self._repository = repository
        self._notifier = notifier
        self._clock = clock

    def _authorize(self, request: Rdq, current_user: UserSummary) -> None:
        raise NotImplementedError

    def _notification(self) -> Callable[[Rdq], Awaitable[None]]:
        raise NotImplementedError

    def _apply(self, request: Rdq, status: RdqStatus, comment: Optional[str], now: datetime) -> Rdq:
        return replace(request, status=status, updated_at=now, version=request.version + 1)

    async def _transition(
        self,
        request_id: int,
        current_user: UserSummary,
        comment: Optional[str] = None,
    ) -> Rdq:
        logger.debug(f"{self.action.value} RDQ {request_id} by user {current_user.id}")
        validation.validate_comment(comment, required=self.comment_required)

        request = await _load_request(self._repository, request_id)
        self._authorize(request, current_user)
        status = next_status(request.status, self.action)

        updated = await self._repository.update_request(
            self._apply(request, status, comment, self._clock()),
            expected_version=request.version,
        )
        await self._repository.commit()

        await dispatch_notification(self._notification(), updated)

        logger.info(
            f"RDQ {self.action.value} successful: id={request_id}, "
            f"status={updated.status.value}, by={current_user.id}"
        )
        return updated


class _OwnerTransitionUseCase(_TransitionUseCase):
    def _authorize(self, request: Rdq, current_user: UserSummary) -> None:
        if not is_owner(current_user, request):
            raise AccessDenied("You can only modify your own RDQ")

    async def execute(self, request_id: int, current_user: UserSummary) -> Rdq:
        return await self._transition(request_id, current_user)


class _ManagerTransitionUseCase(_TransitionUseCase):
    def _authorize(self, request: Rdq, current_user: UserSummary) -> None:
        if not can_decide(current_user, request):
            raise AccessDenied("You are not the manager of this user")

    def _apply(self, request: Rdq, status: RdqStatus, comment: Optional[str], now: datetime) -> Rdq:
        return replace(
            super()._apply(request, status, comment, now),
            manager_comment=comment,
        )

    async def execute(
        self, request_id: int, current_user: UserSummary, comment: Optional[str] = None
    ) -> Rdq:
        return await self._transition(request_id, current_user, comment)


class SubmitRdqUseCase(_OwnerTransitionUseCase):
    action = RdqAction.SUBMIT

    def _notification(self):
        return self._notifier.rdq_submitted


class ResubmitRdqUseCase(_OwnerTransitionUseCase):
    action = RdqAction.RESUBMIT

    def _notification(self):
        return self._notifier.rdq_resubmitted


class ApproveRdqUseCase(_ManagerTransitionUseCase):
    action = RdqAction.APPROVE

    def _notification(self):
        return self._notifier.rdq_approved


class RejectRdqUseCase(_ManagerTransitionUseCase):
    action = RdqAction.REJECT
    comment_required = True

    def _notification(self):
        return self._notifier.rdq_rejected


class RequestMoreInfoUseCase(_ManagerTransitionUseCase):
    action = RdqAction.REQUEST_MORE_INFO
    comment_required = True

    def _notification(self):
        return self._notifier.rdq_pending_info


class DeleteRdqUseCase:
    def __init__(self, repository: RdqRepository) -> None:
        self._repository = repository

    async def execute(self, request_id: int, current_user: UserSummary) -> None:
        logger.debug(f"Deleting RDQ {request_id} by user {current_user.id}")
        request = await _load_request(self._repository, request_id)

        if not is_owner(current_user, request):
            raise AccessDenied("You can only delete your own RDQ")
        if request.status != RdqStatus.DRAFT:
            raise InvalidStatusTransition("Only draft RDQs can be deleted")

        await self._repository.delete_request(request_id, expected_version=request.version)
        await self._repository.commit()

        logger.info(f"RDQ deleted successfully: id={request_id}")


class SearchRdqUseCase:
    def __init__(self, repository: RdqRepository, max_size: int = MAX_PAGE_SIZE) -> None:
        self._repository = repository
        self._max_size = max_size

    async def execute(self, query: SearchRdqQuery, current_user: UserSummary) -> Page[Rdq]:
        logger.debug(
            f"Searching RDQ with criteria: owner={query.owner_id}, status={query.status}, "
            f"type={query.type}, by={current_user.id}"
        )
        if query.text is not None and len(query.text) > 100:
            raise ValidationError("Search term cannot exceed 100 characters", code="INVALID_SEARCH")

        owner_id, manager_id = await self._scope(query.owner_id, current_user)
        filters = RdqFilters(
            owner_id=owner_id,
            manager_id=manager_id,
            status=query.status,
            type=query.type,
            priority=query.priority,
            date_from=query.date_from,
            date_to=query.date_to,
            text=query.text.strip() if query.text else None,
        )
        page = PageRequest(page=query.page, size=query.size).clamp(self._max_size)
        return await self._repository.search_requests(filters, page)

    async def list_mine(self, query: SearchRdqQuery, current_user: UserSummary) -> Page[Rdq]:
        return await self.execute(replace(query, owner_id=current_user.id), current_user)

    async def _scope(self, owner_id: Optional[int], current_user: UserSummary):
        """Return the (owner_id, manager_id) filters the caller is allowed to use."""
        if is_admin(current_user):
            return owner_id, None
        if owner_id is None or owner_id == current_user.id:
            if owner_id is None and current_user.role == UserRole.MANAGER:
                return None, current_user.id
            return current_user.id, None
        if current_user.role == UserRole.MANAGER:
            owner = await self._repository.get_user(owner_id)
            if owner is not None and owner.manager_id == current_user.id:
                return owner_id, None
        raise AccessDenied("You are not allowed to search this user's RDQs")
