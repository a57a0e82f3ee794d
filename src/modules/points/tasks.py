"""Background retry of loyalty-point accruals.

Order creation never fails because of points: when the accrual step
breaks, the order service parks a ``PointsAccrualRequested`` outbox event
(topic ``points``).  This task applies those events.
"""

from __future__ import annotations

import structlog
from celery import shared_task
from django.db import transaction

from modules.core.models import EventStatus, OutboxEvent
from modules.points.repositories.django_repository import PointsDjangoRepository
from modules.points.services import PointsService

logger = structlog.get_logger(__name__)

POINTS_TOPIC = "points"
ACCRUAL_EVENT = "PointsAccrualRequested"
MAX_ATTEMPTS = 5


@shared_task(name="points.retry_pending_accruals")
def retry_pending_accruals(batch_size: int = 100) -> dict:
    """Apply parked accruals; each event is published or marked failed."""
    service = PointsService(PointsDjangoRepository())
    events = list(
        OutboxEvent.objects.filter(
            topic=POINTS_TOPIC,
            event_type=ACCRUAL_EVENT,
            status__in=[EventStatus.PENDING, EventStatus.FAILED],
            retry_count__lt=MAX_ATTEMPTS,
        ).order_by("created_at")[:batch_size]
    )

    applied = failed = 0
    for event in events:
        payload = event.payload
        log = logger.bind(event_id=str(event.id), order_id=payload.get("order_id"))
        try:
            with transaction.atomic():
                user_id = int(payload["user_id"])
                if not service.has_earned_for_order(user_id, payload["order_id"]):
                    service.earn(
                        user_id, int(payload["points"]), order_id=payload["order_id"]
                    )
                event.mark_as_published()
        except Exception as exc:
            log.exception("points.accrual_retry_failed")
            event.mark_as_failed(str(exc))
            failed += 1
        else:
            log.info("points.accrual_retried")
            applied += 1

    return {"applied": applied, "failed": failed}
