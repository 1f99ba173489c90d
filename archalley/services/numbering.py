"""
services/numbering.py
─────────────────────────────────────────────────────────────────────
Human-facing identifiers: registration numbers and payment order ids.
"""
from __future__ import annotations

import logging
import secrets

from django.utils import timezone

from ..models import CompetitionPayment, Registration

logger = logging.getLogger(__name__)

# No 0/O/1/I, they are confused when read aloud or printed
REGISTRATION_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"
REGISTRATION_LENGTH   = 6
MAX_ATTEMPTS          = 10


def generate_registration_number() -> str:
    """Random unused registration number, e.g. ``K7Q2MX``."""
    for _attempt in range(MAX_ATTEMPTS):
        candidate = "".join(
            secrets.choice(REGISTRATION_ALPHABET) for _ in range(REGISTRATION_LENGTH)
        )
        if not Registration.objects.filter(registration_number=candidate).exists():
            return candidate
    logger.error("Registration number space exhausted after %d attempts", MAX_ATTEMPTS)
    raise RuntimeError("Could not generate a unique registration number")


def generate_order_id(year: int | None = None) -> str:
    """Next sequential order id for the year: ``ORDER-AC2025-00042``."""
    year   = year or timezone.now().year
    prefix = f"ORDER-AC{year}-"
    last = (
        CompetitionPayment.objects
        .filter(order_id__startswith=prefix)
        .order_by("-order_id")
        .values_list("order_id", flat=True)
        .first()
    )
    seq = int(last.rsplit("-", 1)[1]) + 1 if last else 1
    return f"{prefix}{seq:05d}"
