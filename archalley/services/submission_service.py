"""
services/submission_service.py
─────────────────────────────────────────────────────────────────────
Competition entry lifecycle

    DRAFT ──submit──▶ SUBMITTED ──validate──▶ VALIDATED ──publish──▶ PUBLISHED
                         │                        │
                         └────────reject──────────┴──▶ REJECTED
    DRAFT / SUBMITTED ──withdraw (owner)──▶ WITHDRAWN

Only DRAFT is editable. PUBLISHED, REJECTED and WITHDRAWN are terminal.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction
from django.utils import timezone

from ..models import Competition, Registration, Submission

logger = logging.getLogger(__name__)

MIN_WORDS             = 50
MAX_WORDS             = 200
MIN_ADDITIONAL_PHOTOS = 2
MAX_ADDITIONAL_PHOTOS = 4

OPEN_COMPETITION_STATUSES = (
    Competition.Status.REGISTRATION_OPEN,
    Competition.Status.IN_PROGRESS,
)


def word_count(text: str) -> int:
    return len((text or "").split())


@dataclass
class Eligibility:
    can_submit: bool
    reason: str = ""


class SubmissionService:

    # ── Lookup & eligibility ─────────────────────────────────────────

    @staticmethod
    def _registration_for(user, registration_number: str, lock: bool = False) -> Registration:
        qs = Registration.objects.select_related("competition", "registration_type")
        if lock:
            qs = qs.select_for_update()
        registration = qs.get(registration_number=registration_number)
        if registration.user_id != user.pk and not user.is_admin:
            raise PermissionError("This registration belongs to another user")
        return registration

    @staticmethod
    def eligibility(user, registration: Registration) -> Eligibility:
        submission = Submission.objects.filter(registration=registration).first()
        if submission and not submission.is_editable:
            return Eligibility(False, f"Entry is already {submission.status.lower()}")

        if registration.status != Registration.Status.CONFIRMED:
            return Eligibility(False, "Registration is not confirmed")

        if user.is_admin:
            return Eligibility(True)

        competition = registration.competition
        if competition.status not in OPEN_COMPETITION_STATUSES:
            return Eligibility(False, "Submissions are not open for this competition")
        if timezone.now() > competition.submission_deadline_for(registration.registration_type):
            return Eligibility(False, "The submission deadline has passed")
        return Eligibility(True)

    @classmethod
    def _require_eligible(cls, user, registration: Registration) -> None:
        check = cls.eligibility(user, registration)
        if not check.can_submit:
            raise PermissionError(check.reason)

    @classmethod
    def get_for_owner(cls, user, registration_number: str) -> dict:
        registration = cls._registration_for(user, registration_number)
        submission   = Submission.objects.filter(registration=registration).first()
        check        = cls.eligibility(user, registration)
        return {
            "registration_number": registration.registration_number,
            "competition":         registration.competition.title,
            "can_submit":          check.can_submit,
            "reason":              check.reason,
            "submission":          serialize(submission) if submission else None,
        }

    # ── Owner actions ────────────────────────────────────────────────

    @classmethod
    @transaction.atomic
    def save_draft(cls, user, registration_number: str, changes: dict) -> Submission:
        registration = cls._registration_for(user, registration_number, lock=True)
        cls._require_eligible(user, registration)

        submission, created = Submission.objects.select_for_update().get_or_create(
            registration=registration,
            defaults={"user": registration.user, "competition": registration.competition},
        )
        cls._apply(submission, changes)
        submission.save()
        logger.debug("Draft %s for %s", "created" if created else "saved", registration_number)
        return submission

    @classmethod
    @transaction.atomic
    def submit(cls, user, registration_number: str, changes: Optional[dict] = None) -> Submission:
        registration = cls._registration_for(user, registration_number, lock=True)
        cls._require_eligible(user, registration)

        submission, _ = Submission.objects.select_for_update().get_or_create(
            registration=registration,
            defaults={"user": registration.user, "competition": registration.competition},
        )
        cls._apply(submission, changes or {})
        cls._check_complete(submission)

        submission.status       = Submission.Status.SUBMITTED
        submission.submitted_at = timezone.now()
        submission.save()

        registration.status = Registration.Status.SUBMITTED
        registration.save(update_fields=["status"])

        logger.info("Submission %s submitted (registration=%s)", submission.pk, registration_number)
        return submission

    @classmethod
    @transaction.atomic
    def withdraw(cls, user, registration_number: str) -> Submission:
        registration = cls._registration_for(user, registration_number, lock=True)
        submission   = Submission.objects.select_for_update().get(registration=registration)

        if submission.status not in (Submission.Status.DRAFT, Submission.Status.SUBMITTED):
            raise ValueError(f"A {submission.status.lower()} entry cannot be withdrawn")

        submission.status       = Submission.Status.WITHDRAWN
        submission.withdrawn_at = timezone.now()
        submission.save(update_fields=["status", "withdrawn_at", "updated_at"])

        if registration.status == Registration.Status.SUBMITTED:
            registration.status = Registration.Status.CONFIRMED
            registration.save(update_fields=["status"])

        logger.info("Submission %s withdrawn by %s", submission.pk, user.pk)
        return submission

    @staticmethod
    def _apply(submission: Submission, changes: dict) -> None:
        if not submission.is_editable:
            raise ValueError("Only draft entries can be edited")
        photos = changes.get("additional_photos", submission.additional_photos) or []
        if len(photos) > MAX_ADDITIONAL_PHOTOS:
            raise ValueError(f"At most {MAX_ADDITIONAL_PHOTOS} additional photos are allowed")
        for key, value in changes.items():
            setattr(submission, key, value)

    @staticmethod
    def _check_complete(submission: Submission) -> None:
        if submission.category not in Submission.Category.values:
            raise ValueError("Choose a category (DIGITAL or PHYSICAL)")
        words = word_count(submission.description)
        if not MIN_WORDS <= words <= MAX_WORDS:
            raise ValueError(
                f"Description must be between {MIN_WORDS} and {MAX_WORDS} words (currently {words})"
            )
        if not submission.key_photo_url:
            raise ValueError("A key photo is required")
        photos = len(submission.additional_photos or [])
        if not MIN_ADDITIONAL_PHOTOS <= photos <= MAX_ADDITIONAL_PHOTOS:
            raise ValueError(
                f"Provide {MIN_ADDITIONAL_PHOTOS} to {MAX_ADDITIONAL_PHOTOS} additional photos"
            )
        if not submission.agreed_to_terms:
            raise ValueError("You must agree to the submission terms")

    # ── Admin actions ────────────────────────────────────────────────

    @staticmethod
    def _locked(submission_id: int) -> Submission:
        return Submission.objects.select_for_update().select_related("registration").get(pk=submission_id)

    @classmethod
    @transaction.atomic
    def validate(cls, admin, submission_id: int) -> Submission:
        submission = cls._locked(submission_id)
        if submission.status != Submission.Status.SUBMITTED:
            raise ValueError("Only submitted entries can be validated")
        submission.status       = Submission.Status.VALIDATED
        submission.validated_at = timezone.now()
        submission.validated_by = admin
        submission.save(update_fields=["status", "validated_at", "validated_by", "updated_at"])
        logger.info("Submission %s validated by %s", submission.pk, admin.pk)
        return submission

    @classmethod
    @transaction.atomic
    def publish(cls, admin, submission_id: int) -> Submission:
        submission = cls._locked(submission_id)
        if submission.status != Submission.Status.VALIDATED:
            raise ValueError("Only validated entries can be published")
        submission.status       = Submission.Status.PUBLISHED
        submission.published_at = timezone.now()
        submission.save(update_fields=["status", "published_at", "updated_at"])
        logger.info("Submission %s published by %s", submission.pk, admin.pk)
        return submission

    @classmethod
    @transaction.atomic
    def reject(cls, admin, submission_id: int, reason: str) -> Submission:
        if not reason:
            raise ValueError("A rejection reason is required")
        submission = cls._locked(submission_id)
        if submission.status not in (Submission.Status.SUBMITTED, Submission.Status.VALIDATED):
            raise ValueError(f"A {submission.status.lower()} entry cannot be rejected")
        submission.status           = Submission.Status.REJECTED
        submission.rejected_at      = timezone.now()
        submission.rejection_reason = reason
        submission.validated_by     = admin
        submission.save(update_fields=["status", "rejected_at", "rejection_reason", "validated_by", "updated_at"])
        logger.info("Submission %s rejected by %s", submission.pk, admin.pk)
        return submission

    @staticmethod
    def admin_list(status: str = "", competition_id=None):
        qs = Submission.objects.select_related("registration", "competition", "user")
        if status:
            qs = qs.filter(status=status)
        else:
            qs = qs.exclude(status=Submission.Status.DRAFT)
        if competition_id:
            qs = qs.filter(competition_id=competition_id)
        return qs.order_by("submitted_at")


def serialize(submission: Submission) -> dict:
    return {
        "id":                   submission.pk,
        "registration_number":  submission.registration.registration_number,
        "competition":          submission.competition_id,
        "category":             submission.category,
        "description":          submission.description,
        "word_count":           word_count(submission.description),
        "key_photo_url":        submission.key_photo_url,
        "additional_photos":    submission.additional_photos,
        "document_url":         submission.document_url,
        "video_url":            submission.video_url,
        "agreed_to_terms":      submission.agreed_to_terms,
        "status":               submission.status,
        "submitted_at":         submission.submitted_at.isoformat() if submission.submitted_at else None,
        "validated_at":         submission.validated_at.isoformat() if submission.validated_at else None,
        "published_at":         submission.published_at.isoformat() if submission.published_at else None,
        "rejection_reason":     submission.rejection_reason,
    }
