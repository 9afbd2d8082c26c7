import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from app.identity.domain.models import UserRole


class RdqStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PENDING_INFO = "PENDING_INFO"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class RdqType(str, enum.Enum):
    FORMATION = "FORMATION"
    MATERIEL = "MATERIEL"
    LOGICIEL = "LOGICIEL"
    AUTRE = "AUTRE"


class RdqPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


@dataclass(frozen=True)
class UserSummary:
    id: int
    email: str
    name: str
    role: UserRole
    manager_id: Optional[int] = None
    active: bool = True


@dataclass(frozen=True)
class Rdq:
    id: Optional[int]
    title: str
    description: str
    type: RdqType
    priority: RdqPriority
    status: RdqStatus
    owner: UserSummary
    created_at: datetime
    updated_at: datetime
    justification: Optional[str] = None
    manager_comment: Optional[str] = None
    requested_date: Optional[datetime] = None
    version: int = 0

    @property
    def can_be_modified(self) -> bool:
        return self.status in (RdqStatus.DRAFT, RdqStatus.PENDING_INFO)


@dataclass(frozen=True)
class RdqPatch:
    """Partial update; only fields that are not ``None`` are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[RdqType] = None
    priority: Optional[RdqPriority] = None
    justification: Optional[str] = None
    requested_date: Optional[datetime] = None

    def changes(self) -> dict:
        return {name: value for name, value in vars(self).items() if value is not None}


@dataclass(frozen=True)
class RdqFilters:
    owner_id: Optional[int] = None
    manager_id: Optional[int] = None
    status: Optional[RdqStatus] = None
    type: Optional[RdqType] = None
    priority: Optional[RdqPriority] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    text: Optional[str] = None
