import enum
from typing import Dict, Tuple

from app.common.errors import InvalidStatusTransition
from app.rdq.domain.models import RdqStatus


class RdqAction(str, enum.Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_MORE_INFO = "request_more_info"
    RESUBMIT = "resubmit"


TRANSITIONS: Dict[RdqAction, Tuple[RdqStatus, RdqStatus]] = {
    RdqAction.SUBMIT: (RdqStatus.DRAFT, RdqStatus.SUBMITTED),
    RdqAction.APPROVE: (RdqStatus.SUBMITTED, RdqStatus.APPROVED),
    RdqAction.REJECT: (RdqStatus.SUBMITTED, RdqStatus.REJECTED),
    RdqAction.REQUEST_MORE_INFO: (RdqStatus.SUBMITTED, RdqStatus.PENDING_INFO),
    RdqAction.RESUBMIT: (RdqStatus.PENDING_INFO, RdqStatus.SUBMITTED),
}

TERMINAL_STATUSES = frozenset({RdqStatus.APPROVED, RdqStatus.REJECTED})


def next_status(current: RdqStatus, action: RdqAction) -> RdqStatus:
    """Return the target status, or raise if ``action`` is not allowed from ``current``."""
    source, target = TRANSITIONS[action]
    if current != source:
        raise InvalidStatusTransition(
            f"Cannot {action.value.replace('_', ' ')} a request in status {current.value}; "
            f"it must be {source.value}"
        )
    return target
