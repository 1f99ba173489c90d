"""
services/registration_service.py
Registrations created from paid (or pending bank transfer) cart items.
"""
from __future__ import annotations

import logging
from typing import Iterable, List

from django.utils import timezone

from ..models import CartItem, CompetitionPayment, Registration
from .numbering import generate_registration_number

logger = logging.getLogger(__name__)


class RegistrationService:

    @staticmethod
    def create_from_items(payment: CompetitionPayment, items: Iterable[CartItem], status: str) -> List[Registration]:
        confirmed = status == Registration.Status.CONFIRMED
        created = []
        for item in items:
            registration = Registration.objects.create(
                user                 = payment.user,
                competition          = item.competition,
                registration_type    = item.registration_type,
                payment              = payment,
                registration_number  = generate_registration_number(),
                status               = status,
                country              = item.country,
                participant_type     = item.participant_type,
                members              = item.members,
                amount_paid          = item.subtotal,
                currency             = payment.currency,
                confirmed_at         = timezone.now() if confirmed else None,
            )
            created.append(registration)
        logger.info(
            "Created %d registration(s) for %s with status %s",
            len(created), payment.order_id, status,
        )
        return created

    @staticmethod
    def set_status(payment: CompetitionPayment, status: str) -> int:
        """Move every registration of a payment to ``status``; saves one by one so signals fire."""
        count = 0
        for registration in payment.registrations.all():
            registration.status = status
            fields = ["status"]
            if status == Registration.Status.CONFIRMED and registration.confirmed_at is None:
                registration.confirmed_at = timezone.now()
                fields.append("confirmed_at")
            registration.save(update_fields=fields)
            count += 1
        return count

    @staticmethod
    def for_user(user):
        return (
            Registration.objects
            .filter(user=user)
            .select_related("competition", "registration_type", "payment")
            .order_by("-created_at")
        )

    @staticmethod
    def serialize(registration: Registration) -> dict:
        submission = getattr(registration, "submission", None)
        return {
            "registration_number":  registration.registration_number,
            "status":               registration.status,
            "competition":          {
                "id":    registration.competition_id,
                "title": registration.competition.title,
                "slug":  registration.competition.slug,
            },
            "registration_type":    registration.registration_type.name,
            "members":              registration.members,
            "amount_paid":          str(registration.amount_paid),
            "currency":             registration.currency,
            "order_id":             registration.payment.order_id if registration.payment else None,
            "confirmed_at":         registration.confirmed_at.isoformat() if registration.confirmed_at else None,
            "submission_status":    submission.status if submission else None,
        }
