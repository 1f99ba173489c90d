"""
archalley/tasks.py
─────────────────────────────────────────────────────────────────────
Celery background tasks (schedule in archalley_config/celery.py)
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# 1. Expire stale carts - every 10 minutes
# ─────────────────────────────────────────────────────────────────────
@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def expire_stale_carts_task(self):
    from .services.cart_service import CartService
    try:
        expired = CartService.expire_stale_carts()
        return {"expired": expired}
    except Exception as exc:
        logger.exception("Cart expiry sweep failed: %s", exc)
        raise self.retry(exc=exc)


# ─────────────────────────────────────────────────────────────────────
# 2. Submission deadline reminders - daily
# ─────────────────────────────────────────────────────────────────────
def send_submission_reminders(today=None) -> int:
    """
    Remind confirmed registrants without a submitted entry when the
    deadline is exactly one of SUBMISSION_REMINDER_DAYS away.
    At most one reminder per registration per day.
    """
    from .models import Notification, Registration, Submission

    now   = timezone.now()
    today = today or timezone.localdate(now)
    days  = set(settings.SUBMISSION_REMINDER_DAYS)

    registrations = (
        Registration.objects
        .filter(status=Registration.Status.CONFIRMED, competition__end_date__gt=now)
        .exclude(submission__status__in=[
            Submission.Status.SUBMITTED, Submission.Status.VALIDATED,
            Submission.Status.PUBLISHED, Submission.Status.REJECTED,
            Submission.Status.WITHDRAWN,
        ])
        .select_related("user", "competition", "registration_type")
    )

    sent = 0
    for registration in registrations:
        deadline  = registration.competition.submission_deadline_for(registration.registration_type)
        days_left = (timezone.localdate(deadline) - today).days
        if days_left not in days:
            continue

        already = Notification.objects.filter(
            recipient=registration.user,
            type=Notification.NotificationType.SUBMISSION_REMINDER,
            message__contains=registration.registration_number,
            created_at__date=today,
        ).exists()
        if already:
            continue

        Notification.objects.create(
            recipient = registration.user,
            type      = Notification.NotificationType.SUBMISSION_REMINDER,
            title     = f"{days_left} day{'s' if days_left != 1 else ''} left to submit",
            message   = (
                f"The submission deadline for {registration.competition.title} is "
                f"{timezone.localtime(deadline):%d %B %Y %H:%M}. "
                f"Registration {registration.registration_number} has not submitted an entry yet."
            ),
            link      = f"/competitions/submit/{registration.registration_number}",
        )
        sent += 1

    logger.info("[reminders] %d submission reminder(s) sent", sent)
    return sent


@shared_task(bind=True, max_retries=2)
def send_submission_reminders_task(self):
    try:
        return {"sent": send_submission_reminders()}
    except Exception as exc:
        raise self.retry(exc=exc)


# ─────────────────────────────────────────────────────────────────────
# 3. Abandoned card payments - nightly
# ─────────────────────────────────────────────────────────────────────
@shared_task(bind=True, max_retries=2)
def cleanup_abandoned_payments_task(self, hours: int = 24):
    from .services.payment_service import PaymentService
    try:
        cancelled = PaymentService.cancel_abandoned_card_payments(timedelta(hours=hours))
        return {"cancelled": cancelled}
    except Exception as exc:
        raise self.retry(exc=exc)
