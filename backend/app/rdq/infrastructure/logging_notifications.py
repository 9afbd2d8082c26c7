"""
Notification sink that records workflow events in the application log.
E-mail delivery can be plugged in behind the same interface.
"""
import logging

from app.rdq.domain.models import Rdq

logger = logging.getLogger(__name__)


class LoggingNotificationSink:
    async def rdq_created(self, request: Rdq) -> None:
        logger.info(f"Sending RDQ created notification: rdqId={request.id}, user={request.owner.email}")

    async def rdq_submitted(self, request: Rdq) -> None:
        if request.owner.manager_id is None:
            logger.info(f"RDQ {request.id} submitted by a user without manager, nobody to notify")
            return
        logger.info(
            f"Sending RDQ submitted notification: rdqId={request.id}, "
            f"managerId={request.owner.manager_id}"
        )

    async def rdq_resubmitted(self, request: Rdq) -> None:
        logger.info(
            f"Sending RDQ resubmitted notification: rdqId={request.id}, "
            f"managerId={request.owner.manager_id}"
        )

    async def rdq_approved(self, request: Rdq) -> None:
        logger.info(f"Sending RDQ approved notification: rdqId={request.id}, user={request.owner.email}")

    async def rdq_rejected(self, request: Rdq) -> None:
        logger.info(f"Sending RDQ rejected notification: rdqId={request.id}, user={request.owner.email}")

    async def rdq_pending_info(self, request: Rdq) -> None:
        logger.info(
            f"Sending RDQ pending info notification: rdqId={request.id}, user={request.owner.email}"
        )
