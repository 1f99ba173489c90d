"""
services/payhere.py
─────────────────────────────────────────────────────────────────────
PayHere hosted checkout (Sri Lanka card gateway)

Flow:
  1. Checkout builds signed form data → the browser POSTs it to PayHere
  2. PayHere calls notify_url server-to-server with md5sig → we verify it
  3. The browser is redirected to return_url / cancel_url (display only)
"""
from __future__ import annotations

import hashlib
import hmac
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

# ── PayHere endpoints ─────────────────────────────────────────────
PAYHERE_SANDBOX_URL = "https://sandbox.payhere.lk/pay/checkout"
PAYHERE_LIVE_URL    = "https://www.payhere.lk/pay/checkout"

# ── status_code values sent to notify_url ─────────────────────────
STATUS_SUCCESS    = 2
STATUS_PENDING    = 0
STATUS_CANCELLED  = -1
STATUS_FAILED     = -2
STATUS_CHARGEBACK = -3


def md5_upper(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest().upper()


def format_amount(amount) -> str:
    """Two decimals, no thousands separator, as PayHere hashes it."""
    return str(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def checkout_url() -> str:
    return PAYHERE_SANDBOX_URL if settings.PAYHERE_SANDBOX else PAYHERE_LIVE_URL


def _secret_hash() -> str:
    return md5_upper(settings.PAYHERE_MERCHANT_SECRET)


def generate_hash(order_id: str, amount, currency: str) -> str:
    return md5_upper(
        f"{settings.PAYHERE_MERCHANT_ID}{order_id}{format_amount(amount)}{currency}{_secret_hash()}"
    )


def verify_notification(data) -> bool:
    """
    Check ``md5sig`` from a notify_url POST.
    md5sig = MD5(merchant_id + order_id + payhere_amount + payhere_currency
                 + status_code + MD5(secret).upper()).upper()
    """
    received = (data.get("md5sig") or "").upper()
    if not received:
        return False
    expected = md5_upper(
        f"{data.get('merchant_id', '')}{data.get('order_id', '')}"
        f"{data.get('payhere_amount', '')}{data.get('payhere_currency', '')}"
        f"{data.get('status_code', '')}{_secret_hash()}"
    )
    if data.get("merchant_id") != settings.PAYHERE_MERCHANT_ID:
        return False
    return hmac.compare_digest(received, expected)


def build_checkout_data(payment, customer: dict, notify_url: str, return_url: str, cancel_url: str) -> dict:
    """Form fields the client posts to :func:`checkout_url`."""
    first_item = (payment.items or [{}])[0]
    return {
        "merchant_id": settings.PAYHERE_MERCHANT_ID,
        "return_url":  return_url,
        "cancel_url":  cancel_url,
        "notify_url":  notify_url,
        "order_id":    payment.order_id,
        "items":       first_item.get("name", "Competition registration"),
        "currency":    payment.currency,
        "amount":      format_amount(payment.amount),
        "first_name":  customer.get("first_name", ""),
        "last_name":   customer.get("last_name", ""),
        "email":       customer.get("email", ""),
        "phone":       customer.get("phone", ""),
        "address":     customer.get("address", ""),
        "city":        customer.get("city", ""),
        "country":     customer.get("country", ""),
        "hash":        generate_hash(payment.order_id, payment.amount, payment.currency),
    }
