"""
signals.py
─────────────────────────────────────────────────────────────────────
Automatic owner notifications on registration and submission status
changes. Registered from ArchalleyConfig.ready().
"""
from __future__ import annotations

import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from .models import Notification, Registration, Submission

logger = logging.getLogger(__name__)


def _cache_old_status(model, instance):
    if instance.pk:
        instance._old_status = (
            model.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
        )
    else:
        instance._old_status = None


@receiver(pre_save, sender=Registration)
def _cache_registration_status(sender, instance, **kwargs):
    _cache_old_status(Registration, instance)


@receiver(pre_save, sender=Submission)
def _cache_submission_status(sender, instance, **kwargs):
    _cache_old_status(Submission, instance)


# ────────────────────────────────────────────────────────────────────
#  Signal 1: registration confirmed / bank transfer rejected
# ────────────────────────────────────────────────────────────────────

@receiver(post_save, sender=Registration)
def on_registration_status_change(sender, instance: Registration, created: bool, **kwargs):
    old = getattr(instance, "_old_status", None)
    new = instance.status
    if old == new:
        return

    if new == Registration.Status.CONFIRMED and old in (None, Registration.Status.PENDING):
        Notification.objects.create(
            recipient = instance.user,
            type      = Notification.NotificationType.REGISTRATION_CONFIRMED,
            title     = f"Registration confirmed: {instance.competition.title}",
            message   = (
                f"Your registration {instance.registration_number} is confirmed. "
                "You can now prepare and submit your entry."
            ),
            link      = f"/competitions/submit/{instance.registration_number}",
        )
    elif new == Registration.Status.CANCELLED and old == Registration.Status.PENDING:
        Notification.objects.create(
            recipient = instance.user,
            type      = Notification.NotificationType.PAYMENT_REJECTED,
            title     = "Payment could not be verified",
            message   = (
                f"We could not verify the bank transfer for registration "
                f"{instance.registration_number}. Please contact support."
            ),
        )


# ────────────────────────────────────────────────────────────────────
#  Signal 2: submission moved through the review pipeline
# ────────────────────────────────────────────────────────────────────

SUBMISSION_MESSAGES = {
    Submission.Status.SUBMITTED: (
        Notification.NotificationType.SUBMISSION_RECEIVED,
        "Entry received",
        "Your entry for {competition} has been submitted and is awaiting review.",
    ),
    Submission.Status.VALIDATED: (
        Notification.NotificationType.SUBMISSION_VALIDATED,
        "Entry validated",
        "Your entry for {competition} passed validation.",
    ),
    Submission.Status.PUBLISHED: (
        Notification.NotificationType.SUBMISSION_PUBLISHED,
        "Entry published",
        "Your entry for {competition} is now published.",
    ),
    Submission.Status.REJECTED: (
        Notification.NotificationType.SUBMISSION_REJECTED,
        "Entry rejected",
        "Your entry for {competition} was rejected: {reason}",
    ),
}


@receiver(post_save, sender=Submission)
def on_submission_status_change(sender, instance: Submission, created: bool, **kwargs):
    old = getattr(instance, "_old_status", None)
    new = instance.status
    if old == new or new not in SUBMISSION_MESSAGES:
        return

    ntype, title, template = SUBMISSION_MESSAGES[new]
    Notification.objects.create(
        recipient = instance.user,
        type      = ntype,
        title     = title,
        message   = template.format(
            competition=instance.competition.title,
            reason=instance.rejection_reason,
        ),
    )
    logger.debug("Submission %s: %s → %s notified", instance.pk, old, new)
