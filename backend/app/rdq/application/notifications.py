import logging
from typing import Awaitable, Callable

from app.rdq.application.ports import NotificationSink
from app.rdq.domain.models import Rdq

logger = logging.getLogger(__name__)


async def dispatch_notification(
    send: Callable[[Rdq], Awaitable[None]],
    request: Rdq,
    attempts: int = 3,
) -> bool:
    """Deliver a notification without letting a failure reach the caller.

    Retries up to ``attempts`` times and returns whether delivery succeeded.
    """
    event = getattr(send, "__name__", "notification")
    for attempt in range(1, attempts + 1):
        try:
            await send(request)
            return True
        except Exception:
            logger.exception(
                f"Notification {event} failed for RDQ {request.id} (attempt {attempt}/{attempts})"
            )
    return False


class BackgroundNotificationSink:
    """Queues every event on ``schedule`` instead of delivering it inline.

    ``schedule`` takes the same arguments as ``BackgroundTasks.add_task``, so
    delivery and its retries run once the response has been sent.
    """

    def __init__(self, sink: NotificationSink, schedule: Callable[..., None]) -> None:
        self._sink = sink
        self._schedule = schedule

    def _queue(self, send: Callable[[Rdq], Awaitable[None]], request: Rdq) -> None:
        logger.debug(f"Queued {send.__name__} for RDQ {request.id}")
        self._schedule(dispatch_notification, send, request)

    async def rdq_created(self, request: Rdq) -> None:
        self._queue(self._sink.rdq_created, request)

    async def rdq_submitted(self, request: Rdq) -> None:
        self._queue(self._sink.rdq_submitted, request)

    async def rdq_resubmitted(self, request: Rdq) -> None:
        self._queue(self._sink.rdq_resubmitted, request)

    async def rdq_approved(self, request: Rdq) -> None:
        self._queue(self._sink.rdq_approved, request)

    async def rdq_rejected(self, request: Rdq) -> None:
        self._queue(self._sink.rdq_rejected, request)

    async def rdq_pending_info(self, request: Rdq) -> None:
        self._queue(self._sink.rdq_pending_info, request)
