from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from sqlalchemy import delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.common.errors import Conflict
from app.common.pagination import Page, PageRequest
from app.identity.domain.models import UserRole
from app.rdq.application.ports import RdqRepository
from app.rdq.domain.models import (
    Rdq,
    RdqFilters,
    RdqPriority,
    RdqStatus,
    RdqType,
    UserSummary,
)
from database import Rdq as RdqModel, User


def to_user_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        email=user.email,
        name=f"{user.first_name} {user.last_name}",
        role=UserRole(user.role),
        manager_id=user.manager_id,
        active=user.active,
    )


def to_rdq(model: RdqModel) -> Rdq:
    return Rdq(
        id=model.id,
        title=model.title,
        description=model.description,
        type=RdqType(model.type),
        priority=RdqPriority(model.priority),
        status=RdqStatus(model.status),
        owner=to_user_summary(model.owner),
        justification=model.justification,
        manager_comment=model.manager_comment,
        requested_date=model.requested_date,
        created_at=model.created_at,
        updated_at=model.updated_at,
        version=model.version,
    )


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class SqlAlchemyRdqRepository(RdqRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_user(self, user_id: int) -> Optional[UserSummary]:
        user = await self._session.get(User, user_id)
        if user is None:
            return None
        return to_user_summary(user)

    async def get_request(self, request_id: int) -> Optional[Rdq]:
        result = await self._session.execute(
            select(RdqModel)
            .options(selectinload(RdqModel.owner))
            .where(RdqModel.id == request_id)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return to_rdq(model)

    async def add_request(self, request: Rdq) -> Rdq:
        new_request = RdqModel(
            title=request.title,
            description=request.description,
            type=request.type.value,
            priority=request.priority.value,
            status=request.status.value,
            justification=request.justification,
            manager_comment=request.manager_comment,
            requested_date=request.requested_date,
            user_id=request.owner.id,
            version=request.version,
            created_at=request.created_at,
            updated_at=request.updated_at,
        )
        self._session.add(new_request)
        await self._session.flush()
        return replace(request, id=new_request.id)

    async def update_request(self, request: Rdq, expected_version: int) -> Rdq:
        result = await self._session.execute(
            update(RdqModel)
            .where(RdqModel.id == request.id, RdqModel.version == expected_version)
            .values(
                title=request.title,
                description=request.description,
                type=request.type.value,
                priority=request.priority.value,
                status=request.status.value,
                justification=request.justification,
                manager_comment=request.manager_comment,
                requested_date=request.requested_date,
                updated_at=request.updated_at,
                version=request.version,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise Conflict(f"RDQ {request.id} was modified concurrently, reload and retry")
        return request

    async def delete_request(self, request_id: int, expected_version: int) -> None:
        result = await self._session.execute(
            delete(RdqModel)
            .where(RdqModel.id == request_id, RdqModel.version == expected_version)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise Conflict(f"RDQ {request_id} was modified concurrently, reload and retry")

    async def search_requests(self, filters: RdqFilters, page: PageRequest) -> Page[Rdq]:
        conditions = self._conditions(filters)

        count_result = await self._session.execute(
            select(func.count()).select_from(RdqModel).where(*conditions)
        )
        total = count_result.scalar() or 0

        query = (
            select(RdqModel)
            .options(selectinload(RdqModel.owner))
            .where(*conditions)
            .order_by(desc(RdqModel.created_at), desc(RdqModel.id))
            .limit(page.size)
            .offset(page.offset)
        )
        result = await self._session.execute(query)
        content = [to_rdq(model) for model in result.scalars().all()]

        return Page(content=content, total_elements=total, number=page.page, size=page.size)

    def _conditions(self, filters: RdqFilters) -> List:
        conditions = []
        if filters.owner_id is not None:
            conditions.append(RdqModel.user_id == filters.owner_id)
        if filters.manager_id is not None:
            conditions.append(
                RdqModel.user_id.in_(select(User.id).where(User.manager_id == filters.manager_id))
            )
        if filters.status is not None:
            conditions.append(RdqModel.status == filters.status.value)
        if filters.type is not None:
            conditions.append(RdqModel.type == filters.type.value)
        if filters.priority is not None:
            conditions.append(RdqModel.priority == filters.priority.value)
        if filters.date_from is not None:
            conditions.append(RdqModel.created_at >= _start_of_day(filters.date_from))
        if filters.date_to is not None:
            conditions.append(
                RdqModel.created_at < _start_of_day(filters.date_to) + timedelta(days=1)
            )
        if filters.text:
            pattern = f"%{filters.text.lower()}%"
            conditions.append(
                or_(
                    func.lower(RdqModel.title).like(pattern),
                    func.lower(RdqModel.description).like(pattern),
                )
            )
        return conditions

    async def commit(self) -> None:
        await self._session.commit()
