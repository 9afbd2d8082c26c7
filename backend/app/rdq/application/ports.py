from typing import Optional, Protocol

from app.common.pagination import Page, PageRequest
from app.rdq.domain.models import Rdq, RdqFilters, UserSummary


class RdqRepository(Protocol):
    async def get_user(self, user_id: int) -> Optional[UserSummary]:
        ...

    async def get_request(self, request_id: int) -> Optional[Rdq]:
        ...

    async def add_request(self, request: Rdq) -> Rdq:
        """Persist a new request and return it with its assigned id."""
        ...

    async def update_request(self, request: Rdq, expected_version: int) -> Rdq:
        """Write ``request`` if the stored version still equals ``expected_version``.

        Raises ``Conflict`` when another writer got there first.
        """
        ...

    async def delete_request(self, request_id: int, expected_version: int) -> None:
        ...

    async def search_requests(self, filters: RdqFilters, page: PageRequest) -> Page[Rdq]:
        ...

    async def commit(self) -> None:
        ...


class NotificationSink(Protocol):
    async def rdq_created(self, request: Rdq) -> None:
        ...

    async def rdq_submitted(self, request: Rdq) -> None:
        ...

    async def rdq_resubmitted(self, request: Rdq) -> None:
        ...

    async def rdq_approved(self, request: Rdq) -> None:
        ...

    async def rdq_rejected(self, request: Rdq) -> None:
        ...

    async def rdq_pending_info(self, request: Rdq) -> None:
        ...
