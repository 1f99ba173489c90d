"""
services/payment_service.py
─────────────────────────────────────────────────────────────────────
Payment confirmation: PayHere notify_url handling and manual bank
transfer verification by admins.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from ..exceptions import InvalidSignature
from ..models import CartItem, CompetitionPayment, Registration, RegistrationCart, cart_expiry_from
from . import payhere
from .registration_service import RegistrationService

logger = logging.getLogger(__name__)

ABANDONED_AFTER = timedelta(hours=24)

_FAILURE_STATUS = {
    payhere.STATUS_CANCELLED: CompetitionPayment.Status.CANCELLED,
    payhere.STATUS_FAILED:    CompetitionPayment.Status.FAILED,
}


class PaymentService:

    # ── PayHere notify_url ───────────────────────────────────────────

    @classmethod
    def handle_payhere_notification(cls, data) -> CompetitionPayment:
        """
        Apply a PayHere server-to-server notification.

        status_code  2 → registrations CONFIRMED, payment + cart COMPLETED
        status_code  0 → still pending, response stored
        status_code -1 → CANCELLED, cart reopened
        status_code -2 → FAILED, cart reopened
        status_code -3 → REFUNDED (chargeback), registrations REFUNDED

        Replayed notifications for a COMPLETED payment change nothing.
        """
        order_id = data.get("order_id", "")
        payment  = CompetitionPayment.objects.get(order_id=order_id)

        if not payhere.verify_notification(data):
            logger.warning("PayHere signature mismatch for %s", order_id)
            CompetitionPayment.objects.filter(
                pk=payment.pk, status=CompetitionPayment.Status.PENDING
            ).update(status=CompetitionPayment.Status.FAILED, updated_at=timezone.now())
            raise InvalidSignature("Invalid payment signature")

        try:
            status_code = int(data.get("status_code", ""))
        except (TypeError, ValueError):
            raise ValueError("Invalid status_code")

        response = {
            key: data.get(key)
            for key in ("payment_id", "payhere_amount", "payhere_currency", "status_code",
                        "status_message", "method", "card_no")
            if data.get(key) is not None
        }

        with transaction.atomic():
            payment = CompetitionPayment.objects.select_for_update().get(pk=payment.pk)

            if status_code == payhere.STATUS_SUCCESS:
                cls._complete_card_payment(payment, response)
            elif status_code in _FAILURE_STATUS:
                cls._fail_card_payment(payment, _FAILURE_STATUS[status_code], response)
            elif status_code == payhere.STATUS_CHARGEBACK:
                payment.status        = CompetitionPayment.Status.REFUNDED
                payment.response_data = response
                payment.save(update_fields=["status", "response_data", "updated_at"])
                RegistrationService.set_status(payment, Registration.Status.REFUNDED)
            else:
                payment.response_data = response
                payment.save(update_fields=["response_data", "updated_at"])

        logger.info("PayHere notify: order=%s status_code=%s → %s", order_id, status_code, payment.status)
        return payment

    @classmethod
    def _complete_card_payment(cls, payment: CompetitionPayment, response: dict) -> None:
        if payment.status == CompetitionPayment.Status.COMPLETED:
            logger.info("PayHere notify replay ignored for %s", payment.order_id)
            return

        if not payment.registrations.exists():
            RegistrationService.create_from_items(
                payment, cls._covered_items(payment), status=Registration.Status.CONFIRMED
            )
        else:
            RegistrationService.set_status(payment, Registration.Status.CONFIRMED)

        payment.status        = CompetitionPayment.Status.COMPLETED
        payment.completed_at  = timezone.now()
        payment.response_data = response
        payment.save(update_fields=["status", "completed_at", "response_data", "updated_at"])

        cart = payment.cart
        if cart is None:
            return
        covered = payment.metadata.get("item_ids", [])
        if cart.payments.filter(status=CompetitionPayment.Status.PENDING).exclude(pk=payment.pk).exists():
            # a newer checkout of the same cart settles the cart itself
            return
        if cart.items.exclude(pk__in=covered).exists():
            cart.items.filter(pk__in=covered).delete()
            return
        cart.status = RegistrationCart.Status.COMPLETED
        cart.save(update_fields=["status", "updated_at"])

    @staticmethod
    def _covered_items(payment: CompetitionPayment) -> list:
        """Cart items this payment was signed for, minus those another completed payment already registered."""
        covered = set(payment.metadata.get("item_ids", []))
        if payment.cart_id:
            settled = payment.cart.payments.filter(
                status=CompetitionPayment.Status.COMPLETED
            ).exclude(pk=payment.pk)
            for other in settled:
                overlap = covered.intersection(other.metadata.get("item_ids", []))
                if overlap:
                    logger.warning(
                        "Payment %s: %d item(s) already registered under %s",
                        payment.order_id, len(overlap), other.order_id,
                    )
                    covered -= overlap

        items = list(
            CartItem.objects
            .filter(pk__in=covered)
            .select_related("competition", "registration_type")
            .order_by("created_at", "pk")
        )
        if len(items) != len(covered):
            logger.warning(
                "Payment %s: %d of %d paid cart item(s) no longer exist",
                payment.order_id, len(covered) - len(items), len(covered),
            )
        return items

    @staticmethod
    def _fail_card_payment(payment: CompetitionPayment, status: str, response: dict) -> None:
        if payment.status == CompetitionPayment.Status.COMPLETED:
            logger.warning("Ignoring %s for completed payment %s", status, payment.order_id)
            return

        payment.status        = status
        payment.response_data = response
        payment.save(update_fields=["status", "response_data", "updated_at"])

        cart = payment.cart
        if cart and cart.status == RegistrationCart.Status.PROCESSING:
            cart.status     = RegistrationCart.Status.ACTIVE
            cart.expires_at = cart_expiry_from()
            cart.save(update_fields=["status", "expires_at", "updated_at"])

    # ── Bank transfer (admin) ────────────────────────────────────────

    @staticmethod
    @transaction.atomic
    def verify_bank_transfer(admin, order_id: str, approve: bool, reason: str = "") -> CompetitionPayment:
        payment = CompetitionPayment.objects.select_for_update().get(order_id=order_id)

        if payment.payment_method != CompetitionPayment.Method.BANK_TRANSFER:
            raise ValueError("Only bank transfer payments can be verified manually")
        if payment.status != CompetitionPayment.Status.PENDING:
            raise ValueError(f"Payment is already {payment.status.lower()}")

        metadata = dict(payment.metadata or {})
        metadata["verified_by"] = str(admin.pk)
        metadata["verified_at"] = timezone.now().isoformat()

        if approve:
            payment.status       = CompetitionPayment.Status.COMPLETED
            payment.completed_at = timezone.now()
            reg_status           = Registration.Status.CONFIRMED
        else:
            if not reason:
                raise ValueError("A reason is required when rejecting a payment")
            payment.status              = CompetitionPayment.Status.FAILED
            metadata["rejection_reason"] = reason
            reg_status                  = Registration.Status.CANCELLED

        payment.metadata = metadata
        payment.save(update_fields=["status", "completed_at", "metadata", "updated_at"])
        RegistrationService.set_status(payment, reg_status)

        logger.info(
            "Bank transfer %s %s by %s",
            payment.order_id, "approved" if approve else "rejected", admin.pk,
        )
        return payment

    # ── Maintenance ──────────────────────────────────────────────────

    @staticmethod
    def cancel_abandoned_card_payments(older_than: timedelta = ABANDONED_AFTER) -> int:
        """PENDING card payments with no notification for a day → CANCELLED, carts EXPIRED."""
        cutoff = timezone.now() - older_than
        stale = CompetitionPayment.objects.filter(
            payment_method=CompetitionPayment.Method.CARD,
            status=CompetitionPayment.Status.PENDING,
            created_at__lt=cutoff,
        )
        cart_ids = list(stale.exclude(cart__isnull=True).values_list("cart_id", flat=True))
        count = stale.update(status=CompetitionPayment.Status.CANCELLED, updated_at=timezone.now())
        RegistrationCart.objects.filter(
            pk__in=cart_ids, status=RegistrationCart.Status.PROCESSING
        ).update(status=RegistrationCart.Status.EXPIRED, updated_at=timezone.now())
        if count:
            logger.info("[payments] %d abandoned card payment(s) cancelled", count)
        return count
