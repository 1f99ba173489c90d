"""
tests/test_payments.py
─────────────────────────────────────────────────────────────────────
PayHere signing + notify_url, bank transfer verification, identifiers.
"""
from __future__ import annotations

import hashlib
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from archalley.models import (
    CompetitionPayment,
    Notification,
    Registration,
    RegistrationCart,
)
from archalley.services import numbering, payhere
from archalley.services.payment_service import PaymentService

from conftest import cart_payload, checkout_payload

NOTIFY_URL = "/api/competitions/payment/notify/"
VERIFY_URL = "/api/admin/competitions/verify-payment/"


def md5(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest().upper()


def notification(order_id, amount="5000.00", currency="LKR", status_code="2", merchant_id="1221149",
                 secret="test-secret", **extra) -> dict:
    sig = md5(f"{merchant_id}{order_id}{amount}{currency}{status_code}{md5(secret)}")
    data = {
        "merchant_id":       merchant_id,
        "order_id":          order_id,
        "payment_id":        "320025071278",
        "payhere_amount":    amount,
        "payhere_currency":  currency,
        "status_code":       status_code,
        "md5sig":            sig,
        "method":            "VISA",
        "status_message":    "Successfully completed the payment.",
    }
    data.update(extra)
    return data


@pytest.fixture
def card_order(member_client, competition, individual_type):
    member_client.post_json("/api/competitions/cart/add/", cart_payload(competition, individual_type))
    body = member_client.post_json("/api/competitions/checkout/", checkout_payload("CARD")).json()
    return CompetitionPayment.objects.get(order_id=body["order_id"])


@pytest.fixture
def bank_order(member_client, competition, individual_type, team_type):
    member_client.post_json("/api/competitions/cart/add/", cart_payload(competition, individual_type))
    member_client.post_json("/api/competitions/cart/add/", cart_payload(competition, team_type))
    body = member_client.post_json("/api/competitions/checkout/", checkout_payload("BANK_TRANSFER")).json()
    return CompetitionPayment.objects.get(order_id=body["order_id"])


# ════════════════════════════════════════════════════════════════════
#  Signing (no DB)
# ════════════════════════════════════════════════════════════════════

class TestPayHereSigning:

    def test_checkout_hash_matches_documented_formula(self, payhere_settings):
        expected = md5(f"1221149ORDER-AC2025-000071000.00LKR{md5('test-secret')}")
        assert payhere.generate_hash("ORDER-AC2025-00007", Decimal("1000"), "LKR") == expected

    @pytest.mark.parametrize("amount, formatted", [
        (Decimal("1000"), "1000.00"),
        (Decimal("2500.5"), "2500.50"),
        ("12.345", "12.35"),
        (7, "7.00"),
    ])
    def test_amount_format(self, amount, formatted):
        assert payhere.format_amount(amount) == formatted

    def test_verify_accepts_valid_signature(self, payhere_settings):
        assert payhere.verify_notification(notification("ORDER-AC2025-00001"))

    def test_verify_rejects_tampered_amount(self, payhere_settings):
        data = notification("ORDER-AC2025-00001")
        data["payhere_amount"] = "1.00"
        assert not payhere.verify_notification(data)

    def test_verify_rejects_other_merchant(self, payhere_settings):
        assert not payhere.verify_notification(notification("ORDER-AC2025-00001", merchant_id="999"))

    def test_verify_rejects_missing_signature(self, payhere_settings):
        data = notification("ORDER-AC2025-00001")
        del data["md5sig"]
        assert not payhere.verify_notification(data)

    def test_live_url_when_not_sandbox(self, payhere_settings):
        payhere_settings.PAYHERE_SANDBOX = False
        assert payhere.checkout_url() == payhere.PAYHERE_LIVE_URL


# ════════════════════════════════════════════════════════════════════
#  notify_url
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestPayHereNotify:

    def test_success_confirms_registrations(self, anon_client, card_order, member):
        resp = anon_client.post(NOTIFY_URL, notification(card_order.order_id))
        assert resp.status_code == 200
        assert resp.content == b"OK"

        card_order.refresh_from_db()
        assert card_order.status == CompetitionPayment.Status.COMPLETED
        assert card_order.completed_at is not None
        assert card_order.response_data["payment_id"] == "320025071278"
        assert card_order.cart.status == RegistrationCart.Status.COMPLETED

        registration = card_order.registrations.get()
        assert registration.status == Registration.Status.CONFIRMED
        assert registration.amount_paid == Decimal("5000.00")
        assert Notification.objects.filter(
            recipient=member, type=Notification.NotificationType.REGISTRATION_CONFIRMED
        ).count() == 1

    def test_replayed_success_changes_nothing(self, anon_client, card_order):
        anon_client.post(NOTIFY_URL, notification(card_order.order_id))
        anon_client.post(NOTIFY_URL, notification(card_order.order_id))
        assert card_order.registrations.count() == 1
        assert Notification.objects.count() == 1

    def test_late_success_registers_only_paid_items(self, anon_client, member_client, card_order,
                                                    competition, team_type):
        anon_client.post(NOTIFY_URL, notification(card_order.order_id, status_code="-2"))
        member_client.post_json("/api/competitions/cart/add/", cart_payload(competition, team_type))

        resp = anon_client.post(NOTIFY_URL, notification(card_order.order_id))
        assert resp.status_code == 200

        card_order.refresh_from_db()
        assert card_order.status == CompetitionPayment.Status.COMPLETED
        registration = card_order.registrations.get()
        assert registration.registration_type.name == "Individual"
        assert registration.amount_paid == Decimal("5000.00")

        cart = member_client.get("/api/competitions/cart/").json()["cart"]
        assert cart["status"] == RegistrationCart.Status.ACTIVE
        assert [item["registration_type"]["name"] for item in cart["items"]] == ["Team"]

    def test_cancel_then_success_confirms(self, anon_client, card_order):
        anon_client.post(NOTIFY_URL, notification(card_order.order_id, status_code="-1"))
        anon_client.post(NOTIFY_URL, notification(card_order.order_id))
        card_order.refresh_from_db()
        assert card_order.status == CompetitionPayment.Status.COMPLETED
        assert card_order.cart.status == RegistrationCart.Status.COMPLETED
        assert card_order.registrations.get().status == Registration.Status.CONFIRMED

    def test_late_success_with_newer_checkout_registers_once(self, anon_client, member_client, card_order):
        anon_client.post(NOTIFY_URL, notification(card_order.order_id, status_code="-2"))
        body = member_client.post_json("/api/competitions/checkout/", checkout_payload("CARD")).json()
        retry = CompetitionPayment.objects.get(order_id=body["order_id"])

        anon_client.post(NOTIFY_URL, notification(card_order.order_id))
        retry.cart.refresh_from_db()
        assert retry.cart.status == RegistrationCart.Status.PROCESSING

        anon_client.post(NOTIFY_URL, notification(retry.order_id))
        retry.refresh_from_db()
        assert retry.status == CompetitionPayment.Status.COMPLETED
        assert retry.cart.status == RegistrationCart.Status.COMPLETED
        assert Registration.objects.count() == 1
        assert Registration.objects.get().payment == card_order

    def test_bad_signature_fails_payment(self, anon_client, card_order):
        data = notification(card_order.order_id)
        data["md5sig"] = "0" * 32
        resp = anon_client.post(NOTIFY_URL, data)
        assert resp.status_code == 400
        card_order.refresh_from_db()
        assert card_order.status == CompetitionPayment.Status.FAILED
        assert not card_order.registrations.exists()

    def test_failed_signature_does_not_touch_completed_payment(self, anon_client, card_order):
        anon_client.post(NOTIFY_URL, notification(card_order.order_id))
        data = notification(card_order.order_id, secret="wrong")
        assert anon_client.post(NOTIFY_URL, data).status_code == 400
        card_order.refresh_from_db()
        assert card_order.status == CompetitionPayment.Status.COMPLETED

    @pytest.mark.parametrize("code, status", [
        ("-1", CompetitionPayment.Status.CANCELLED),
        ("-2", CompetitionPayment.Status.FAILED),
    ])
    def test_cancel_or_fail_reopens_cart(self, anon_client, member_client, card_order, code, status):
        resp = anon_client.post(NOTIFY_URL, notification(card_order.order_id, status_code=code))
        assert resp.status_code == 200
        card_order.refresh_from_db()
        assert card_order.status == status
        assert card_order.cart.status == RegistrationCart.Status.ACTIVE
        assert member_client.get("/api/competitions/cart/").json()["cart"]["item_count"] == 1

    def test_pending_code_only_records_response(self, anon_client, card_order):
        anon_client.post(NOTIFY_URL, notification(card_order.order_id, status_code="0"))
        card_order.refresh_from_db()
        assert card_order.status == CompetitionPayment.Status.PENDING
        assert card_order.response_data["status_code"] == "0"

    def test_chargeback_refunds(self, anon_client, card_order):
        anon_client.post(NOTIFY_URL, notification(card_order.order_id))
        anon_client.post(NOTIFY_URL, notification(card_order.order_id, status_code="-3"))
        card_order.refresh_from_db()
        assert card_order.status == CompetitionPayment.Status.REFUNDED
        assert card_order.registrations.get().status == Registration.Status.REFUNDED

    def test_unknown_order_is_404(self, anon_client, db):
        resp = anon_client.post(NOTIFY_URL, notification("ORDER-AC2025-99999"))
        assert resp.status_code == 404

    def test_missing_order_id(self, anon_client, db):
        assert anon_client.post(NOTIFY_URL, {"status_code": "2"}).status_code == 400


# ════════════════════════════════════════════════════════════════════
#  Bank transfer verification
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestBankTransferVerify:

    def test_members_cannot_verify(self, member_client, bank_order):
        resp = member_client.post_json(VERIFY_URL, {"order_id": bank_order.order_id, "action": "approve"})
        assert resp.status_code == 403

    def test_approve(self, admin_role_client, bank_order, member, site_admin):
        resp = admin_role_client.post_json(VERIFY_URL, {"order_id": bank_order.order_id, "action": "approve"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "COMPLETED"
        assert {r["status"] for r in body["registrations"]} == {"CONFIRMED"}

        bank_order.refresh_from_db()
        assert bank_order.metadata["verified_by"] == str(site_admin.pk)
        assert Notification.objects.filter(
            recipient=member, type=Notification.NotificationType.REGISTRATION_CONFIRMED
        ).count() == 2

    def test_reject_requires_reason(self, admin_role_client, bank_order):
        resp = admin_role_client.post_json(VERIFY_URL, {"order_id": bank_order.order_id, "action": "reject"})
        assert resp.status_code == 400
        assert "reason" in resp.json()["fields"]

    def test_reject_cancels_registrations(self, admin_role_client, bank_order, member):
        resp = admin_role_client.post_json(
            VERIFY_URL, {"order_id": bank_order.order_id, "action": "reject", "reason": "Slip unreadable"},
        )
        assert resp.status_code == 200
        bank_order.refresh_from_db()
        assert bank_order.status == CompetitionPayment.Status.FAILED
        assert bank_order.metadata["rejection_reason"] == "Slip unreadable"
        assert set(bank_order.registrations.values_list("status", flat=True)) == {Registration.Status.CANCELLED}
        assert Notification.objects.filter(
            recipient=member, type=Notification.NotificationType.PAYMENT_REJECTED
        ).count() == 2

    def test_cannot_verify_twice(self, admin_role_client, bank_order):
        payload = {"order_id": bank_order.order_id, "action": "approve"}
        admin_role_client.post_json(VERIFY_URL, payload)
        resp = admin_role_client.post_json(VERIFY_URL, payload)
        assert resp.status_code == 400
        assert "already" in resp.json()["error"]

    def test_card_payments_are_not_manual(self, admin_role_client, card_order):
        resp = admin_role_client.post_json(VERIFY_URL, {"order_id": card_order.order_id, "action": "approve"})
        assert resp.status_code == 400

    def test_unknown_order(self, admin_role_client):
        resp = admin_role_client.post_json(VERIFY_URL, {"order_id": "ORDER-AC2025-99999", "action": "approve"})
        assert resp.status_code == 404


# ════════════════════════════════════════════════════════════════════
#  Abandoned card payments
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestAbandonedPayments:

    def test_old_pending_card_payment_is_cancelled(self, card_order):
        CompetitionPayment.objects.filter(pk=card_order.pk).update(
            created_at=timezone.now() - timedelta(hours=25)
        )
        assert PaymentService.cancel_abandoned_card_payments() == 1
        card_order.refresh_from_db()
        assert card_order.status == CompetitionPayment.Status.CANCELLED
        assert card_order.cart.status == RegistrationCart.Status.EXPIRED

    def test_recent_payment_is_left_alone(self, card_order):
        assert PaymentService.cancel_abandoned_card_payments() == 0


# ════════════════════════════════════════════════════════════════════
#  Identifiers
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestNumbering:

    def test_registration_number_alphabet(self):
        for _ in range(20):
            number = numbering.generate_registration_number()
            assert len(number) == 6
            assert set(number) <= set(numbering.REGISTRATION_ALPHABET)
            assert not set(number) & set("01IO")

    def test_registration_number_gives_up_after_collisions(self, monkeypatch, member, competition, individual_type):
        Registration.objects.create(
            user=member, competition=competition, registration_type=individual_type,
            registration_number="AAAAAA",
        )
        monkeypatch.setattr(numbering.secrets, "choice", lambda seq: "A")
        with pytest.raises(RuntimeError):
            numbering.generate_registration_number()

    def test_order_id_continues_the_yearly_sequence(self, member):
        CompetitionPayment.objects.create(
            order_id="ORDER-AC2024-00041", user=member, amount=Decimal("1"), payment_method="CARD",
        )
        assert numbering.generate_order_id(2024) == "ORDER-AC2024-00042"
        assert numbering.generate_order_id(2025) == "ORDER-AC2025-00001"


@pytest.mark.django_db
def test_my_registrations_lists_own_entries(member_client, other_client, bank_order):
    body = member_client.get("/api/competitions/my-registrations/").json()
    assert len(body["registrations"]) == 2
    first = body["registrations"][0]
    assert first["order_id"] == bank_order.order_id
    assert first["status"] == "PENDING"
    assert first["submission_status"] is None

    assert other_client.get("/api/competitions/my-registrations/").json()["registrations"] == []
