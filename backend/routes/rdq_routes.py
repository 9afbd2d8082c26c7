"""
RDQ Routes - request lifecycle, approval workflow and search
"""
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.identity.domain.models import UserAccount, UserRole
from app.rdq.application.ports import NotificationSink, RdqRepository
from app.rdq.application.use_cases import (
    ApproveRdqUseCase,
    CreateRdqCommand,
    CreateRdqUseCase,
    DeleteRdqUseCase,
    GetRdqUseCase,
    RejectRdqUseCase,
    RequestMoreInfoUseCase,
    ResubmitRdqUseCase,
    SearchRdqQuery,
    SearchRdqUseCase,
    SubmitRdqUseCase,
    UpdateRdqUseCase,
)
from app.rdq.domain.models import RdqPatch, RdqPriority, RdqStatus, RdqType
from app.rdq.presentation.response_mapper import page_to_response, rdq_to_response
from routes.auth_routes import require_role
from routes.dependencies import (
    Clock,
    get_clock,
    get_background_notifier,
    get_rdq_repository,
    to_user_summary,
)

# Create router
rdq_router = APIRouter(prefix="/api/rdq", tags=["RDQ"])

any_user = require_role(UserRole.USER)
manager_or_admin = require_role(UserRole.MANAGER)


# ==================== PYDANTIC MODELS ====================

class RdqCreate(BaseModel):
    title: str = Field(min_length=5, max_length=255)
    description: str = Field(min_length=20, max_length=2000)
    type: RdqType
    priority: RdqPriority
    justification: Optional[str] = Field(default=None, max_length=1000)
    requested_date: Optional[datetime] = None


class RdqUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=5, max_length=255)
    description: Optional[str] = Field(default=None, min_length=20, max_length=2000)
    type: Optional[RdqType] = None
    priority: Optional[RdqPriority] = None
    justification: Optional[str] = Field(default=None, max_length=1000)
    requested_date: Optional[datetime] = None


class ApprovalRequest(BaseModel):
    comment: Optional[str] = Field(default=None, max_length=1000)


class RejectionRequest(BaseModel):
    comment: str = Field(max_length=1000)

    @field_validator("comment")
    @classmethod
    def comment_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("A comment is required")
        return value


class MoreInfoRequest(RejectionRequest):
    pass


# ==================== HELPER FUNCTIONS ====================

def _search_query(
    owner_id: Optional[int],
    status_filter: Optional[RdqStatus],
    type_filter: Optional[RdqType],
    priority: Optional[RdqPriority],
    date_from: Optional[date],
    date_to: Optional[date],
    q: Optional[str],
    page: int,
    size: int,
) -> SearchRdqQuery:
    return SearchRdqQuery(
        owner_id=owner_id,
        status=status_filter,
        type=type_filter,
        priority=priority,
        date_from=date_from,
        date_to=date_to,
        text=q,
        page=page,
        size=size,
    )


# ==================== RDQ ROUTES ====================

@rdq_router.get("")
async def list_my_rdq(
    status_filter: Optional[RdqStatus] = Query(default=None, alias="status"),
    type_filter: Optional[RdqType] = Query(default=None, alias="type"),
    priority: Optional[RdqPriority] = None,
    date_from: Optional[date] = Query(default=None, alias="dateFrom"),
    date_to: Optional[date] = Query(default=None, alias="dateTo"),
    q: Optional[str] = None,
    page: int = Query(default=0, ge=0),
    size: int = Query(default=20, ge=1),
    current_user: UserAccount = Depends(any_user),
    repository: RdqRepository = Depends(get_rdq_repository),
):
    """The caller's own RDQs, newest first"""
    query = _search_query(
        None, status_filter, type_filter, priority, date_from, date_to, q, page, size
    )
    result = await SearchRdqUseCase(repository).list_mine(query, to_user_summary(current_user))
    return page_to_response(result)


@rdq_router.get("/search")
async def search_rdq(
    owner_id: Optional[int] = Query(default=None, alias="userId"),
    status_filter: Optional[RdqStatus] = Query(default=None, alias="status"),
    type_filter: Optional[RdqType] = Query(default=None, alias="type"),
    priority: Optional[RdqPriority] = None,
    date_from: Optional[date] = Query(default=None, alias="dateFrom"),
    date_to: Optional[date] = Query(default=None, alias="dateTo"),
    q: Optional[str] = None,
    page: int = Query(default=0, ge=0),
    size: int = Query(default=20, ge=1),
    current_user: UserAccount = Depends(any_user),
    repository: RdqRepository = Depends(get_rdq_repository),
):
    """Search RDQs within the caller's visibility"""
    query = _search_query(
        owner_id, status_filter, type_filter, priority, date_from, date_to, q, page, size
    )
    result = await SearchRdqUseCase(repository).execute(query, to_user_summary(current_user))
    return page_to_response(result)


@rdq_router.get("/{rdq_id}")
async def get_rdq(
    rdq_id: int,
    current_user: UserAccount = Depends(any_user),
    repository: RdqRepository = Depends(get_rdq_repository),
):
    """Get a single RDQ"""
    request = await GetRdqUseCase(repository).execute(rdq_id, to_user_summary(current_user))
    return rdq_to_response(request)


@rdq_router.post("", status_code=status.HTTP_201_CREATED)
async def create_rdq(
    rdq_data: RdqCreate,
    current_user: UserAccount = Depends(any_user),
    repository: RdqRepository = Depends(get_rdq_repository),
    notifier: NotificationSink = Depends(get_background_notifier),
    clock: Clock = Depends(get_clock),
):
    """Create a draft RDQ"""
    use_case = CreateRdqUseCase(repository, notifier, clock)
    created = await use_case.execute(CreateRdqCommand(**rdq_data.model_dump()), current_user.id)
    return rdq_to_response(created)


@rdq_router.put("/{rdq_id}")
async def update_rdq(
    rdq_id: int,
    rdq_data: RdqUpdate,
    current_user: UserAccount = Depends(any_user),
    repository: RdqRepository = Depends(get_rdq_repository),
    clock: Clock = Depends(get_clock),
):
    """Update a draft or pending-info RDQ"""
    use_case = UpdateRdqUseCase(repository, clock)
    updated = await use_case.execute(
        rdq_id, RdqPatch(**rdq_data.model_dump()), to_user_summary(current_user)
    )
    return rdq_to_response(updated)


@rdq_router.post("/{rdq_id}/submit")
async def submit_rdq(
    rdq_id: int,
    current_user: UserAccount = Depends(any_user),
    repository: RdqRepository = Depends(get_rdq_repository),
    notifier: NotificationSink = Depends(get_background_notifier),
    clock: Clock = Depends(get_clock),
):
    use_case = SubmitRdqUseCase(repository, notifier, clock)
    return rdq_to_response(await use_case.execute(rdq_id, to_user_summary(current_user)))


@rdq_router.post("/{rdq_id}/resubmit")
async def resubmit_rdq(
    rdq_id: int,
    current_user: UserAccount = Depends(any_user),
    repository: RdqRepository = Depends(get_rdq_repository),
    notifier: NotificationSink = Depends(get_background_notifier),
    clock: Clock = Depends(get_clock),
):
    use_case = ResubmitRdqUseCase(repository, notifier, clock)
    return rdq_to_response(await use_case.execute(rdq_id, to_user_summary(current_user)))


@rdq_router.post("/{rdq_id}/approve")
async def approve_rdq(
    rdq_id: int,
    approval: Optional[ApprovalRequest] = None,
    current_user: UserAccount = Depends(manager_or_admin),
    repository: RdqRepository = Depends(get_rdq_repository),
    notifier: NotificationSink = Depends(get_background_notifier),
    clock: Clock = Depends(get_clock),
):
    """Approve a submitted RDQ - direct manager or admin"""
    use_case = ApproveRdqUseCase(repository, notifier, clock)
    comment = approval.comment if approval else None
    approved = await use_case.execute(rdq_id, to_user_summary(current_user), comment)
    return rdq_to_response(approved)


@rdq_router.post("/{rdq_id}/reject")
async def reject_rdq(
    rdq_id: int,
    rejection: RejectionRequest,
    current_user: UserAccount = Depends(manager_or_admin),
    repository: RdqRepository = Depends(get_rdq_repository),
    notifier: NotificationSink = Depends(get_background_notifier),
    clock: Clock = Depends(get_clock),
):
    """Reject a submitted RDQ - a comment is mandatory"""
    use_case = RejectRdqUseCase(repository, notifier, clock)
    rejected = await use_case.execute(rdq_id, to_user_summary(current_user), rejection.comment)
    return rdq_to_response(rejected)


@rdq_router.post("/{rdq_id}/request-info")
async def request_more_info(
    rdq_id: int,
    info_request: MoreInfoRequest,
    current_user: UserAccount = Depends(manager_or_admin),
    repository: RdqRepository = Depends(get_rdq_repository),
    notifier: NotificationSink = Depends(get_background_notifier),
    clock: Clock = Depends(get_clock),
):
    """Send a submitted RDQ back to its owner for more information"""
    use_case = RequestMoreInfoUseCase(repository, notifier, clock)
    pending = await use_case.execute(rdq_id, to_user_summary(current_user), info_request.comment)
    return rdq_to_response(pending)


@rdq_router.delete("/{rdq_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rdq(
    rdq_id: int,
    current_user: UserAccount = Depends(any_user),
    repository: RdqRepository = Depends(get_rdq_repository),
):
    """Delete a draft RDQ"""
    await DeleteRdqUseCase(repository).execute(rdq_id, to_user_summary(current_user))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
