"""
services/cart_service.py
─────────────────────────────────────────────────────────────────────
Registration cart: add / remove / clear / summary / checkout.

A cart lives for CART_EXPIRY_MINUTES after its last change. Expiry is
checked against the stored timestamp on every read; an expired cart is
marked EXPIRED and its items never reach checkout.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from django.db import transaction
from django.utils import timezone

from ..exceptions import CheckoutInProgress
from ..models import (
    CartItem,
    CompetitionPayment,
    Registration,
    RegistrationCart,
    cart_expiry_from,
)
from . import payhere
from .numbering import generate_order_id
from .registration_service import RegistrationService

logger = logging.getLogger(__name__)

CART_EMPTY   = "Cart is empty"
CART_EXPIRED = "Cart has expired. Please add items again."


# ────────────────────────────────────────────────────────────────────
#  Data Transfer Objects
# ────────────────────────────────────────────────────────────────────

@dataclass
class CartSummary:
    cart: Optional[RegistrationCart]
    items: List[CartItem] = field(default_factory=list)
    discount: Decimal = Decimal("0")

    @property
    def subtotal(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal("0"))

    @property
    def total(self) -> Decimal:
        return max(Decimal("0"), self.subtotal - self.discount)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def as_dict(self) -> dict:
        return {
            "cart_id":     self.cart.pk if self.cart else None,
            "status":      self.cart.status if self.cart else None,
            "expires_at":  self.cart.expires_at.isoformat() if self.cart else None,
            "item_count":  self.item_count,
            "subtotal":    str(self.subtotal),
            "discount":    str(self.discount),
            "total":       str(self.total),
            "items":       [serialize_item(item) for item in self.items],
        }


@dataclass
class CheckoutResult:
    payment: CompetitionPayment
    registrations: List[Registration]
    payhere_form: Optional[dict] = None

    def as_dict(self) -> dict:
        data = {
            "order_id":        self.payment.order_id,
            "payment_method":  self.payment.payment_method,
            "status":          self.payment.status,
            "amount":          str(self.payment.amount),
            "currency":        self.payment.currency,
            "registrations":   [r.registration_number for r in self.registrations],
        }
        if self.payhere_form is not None:
            data["payhere"] = {"action": payhere.checkout_url(), "fields": self.payhere_form}
        return data


def serialize_item(item: CartItem) -> dict:
    return {
        "id":                 item.pk,
        "competition":        {"id": item.competition_id, "title": item.competition.title},
        "registration_type":  {
            "id":   item.registration_type_id,
            "name": item.registration_type.name,
            "type": item.registration_type.type,
        },
        "country":            item.country,
        "participant_type":   item.participant_type,
        "members":            item.members,
        "unit_price":         str(item.unit_price),
        "quantity":           item.quantity,
        "subtotal":           str(item.subtotal),
        "expires_at":         item.cart.expires_at.isoformat(),
    }


# ────────────────────────────────────────────────────────────────────
#  Cart Service
# ────────────────────────────────────────────────────────────────────

class CartService:

    # ── Read ─────────────────────────────────────────────────────────

    @staticmethod
    def _active_cart(user) -> Optional[RegistrationCart]:
        return (
            RegistrationCart.objects
            .filter(user=user, status=RegistrationCart.Status.ACTIVE)
            .order_by("-created_at")
            .first()
        )

    @staticmethod
    def _items(cart: RegistrationCart) -> List[CartItem]:
        return list(
            cart.items.select_related("competition", "registration_type", "cart")
        )

    @classmethod
    def get_summary(cls, user) -> CartSummary:
        """Current cart; an expired cart is marked EXPIRED and reads as empty."""
        cart = cls._active_cart(user)
        if cart is None:
            return CartSummary(cart=None)
        if cart.is_expired:
            cart.mark_expired()
            logger.info("Cart %s expired on read (user=%s)", cart.pk, user.pk)
            return CartSummary(cart=None)
        return CartSummary(cart=cart, items=cls._items(cart))

    # ── Write ────────────────────────────────────────────────────────

    @classmethod
    @transaction.atomic
    def add_item(cls, user, data: dict) -> CartItem:
        """
        ``data`` is AddToCartForm.cleaned_data. Business rules checked here:
        registration type active, deadline open, member count within limit.
        """
        competition = data["competition"]
        reg_type    = data["registration_type"]
        members     = data["members"]

        if not reg_type.is_active:
            raise ValueError("This registration type is not available")
        if competition.registration_deadline < timezone.now():
            raise ValueError("Registration deadline has passed for this competition")
        if len(members) > reg_type.max_members:
            raise ValueError(
                f"{reg_type.name} allows at most {reg_type.max_members} member(s)"
            )

        cart = cls._active_cart(user)
        if cart is not None and cart.is_expired:
            cart.mark_expired()
            cart = None
        if cart is None:
            cart = RegistrationCart.objects.create(user=user)
        else:
            cart.expires_at = cart_expiry_from()
            cart.save(update_fields=["expires_at", "updated_at"])

        item = CartItem.objects.create(
            cart                     = cart,
            competition              = competition,
            registration_type        = reg_type,
            country                  = data["country"],
            participant_type         = data.get("participant_type", ""),
            referral_source          = data.get("referral_source", ""),
            members                  = members,
            unit_price               = reg_type.fee,
            quantity                 = 1,
            agree_to_terms           = data["agree_to_terms"],
            agree_to_website_terms   = data["agree_to_website_terms"],
            agree_to_privacy_policy  = data["agree_to_privacy_policy"],
            agree_to_refund_policy   = data["agree_to_refund_policy"],
        )
        logger.info("Cart %s: added %s (user=%s)", cart.pk, reg_type, user.pk)
        return item

    @classmethod
    def remove_item(cls, user, item_id: int) -> None:
        cart = cls._active_cart(user)
        if cart is None:
            raise CartItem.DoesNotExist("Cart item not found")
        deleted, _ = CartItem.objects.filter(pk=item_id, cart=cart).delete()
        if not deleted:
            raise CartItem.DoesNotExist("Cart item not found")

    @classmethod
    def clear(cls, user) -> int:
        cart = cls._active_cart(user)
        if cart is None:
            return 0
        deleted, _ = cart.items.all().delete()
        return deleted

    # ── Checkout ─────────────────────────────────────────────────────

    @classmethod
    def checkout(cls, user, customer: dict, payment_method: str, bank_slip_url: str = "",
                 urls: Optional[dict] = None) -> CheckoutResult:
        """
        Turn the active cart into a payment.

        BANK_TRANSFER → PENDING payment + PENDING registrations, cart COMPLETED
        CARD          → PENDING payment + signed PayHere form, cart PROCESSING
                        (registrations are created when PayHere confirms)
        """
        expired_cart_id = None

        with transaction.atomic():
            cart = (
                RegistrationCart.objects
                .select_for_update()
                .filter(user=user, status=RegistrationCart.Status.ACTIVE)
                .order_by("-created_at")
                .first()
            )
            if cart is None:
                if RegistrationCart.objects.filter(
                    user=user, status=RegistrationCart.Status.PROCESSING
                ).exists():
                    raise CheckoutInProgress("A payment for this cart is already in progress")
                raise ValueError(CART_EMPTY)

            items = cls._items(cart)
            if not items:
                raise ValueError(CART_EMPTY)

            if cart.is_expired:
                cart.mark_expired()
                expired_cart_id = cart.pk
            else:
                result = cls._create_payment(user, cart, items, customer, payment_method, bank_slip_url, urls or {})

        if expired_cart_id is not None:
            logger.info("Checkout refused: cart %s expired (user=%s)", expired_cart_id, user.pk)
            raise ValueError(CART_EXPIRED)

        logger.info(
            "Checkout: order=%s method=%s amount=%s user=%s",
            result.payment.order_id, payment_method, result.payment.amount, user.pk,
        )
        return result

    @classmethod
    def _create_payment(cls, user, cart, items, customer, payment_method, bank_slip_url, urls) -> CheckoutResult:
        now = timezone.now()
        for item in items:
            if item.competition.registration_deadline < now:
                raise ValueError(f"Registration for {item.competition.title} has closed")

        summary  = CartSummary(cart=cart, items=items)
        currency = items[0].competition.currency

        payment = CompetitionPayment.objects.create(
            order_id          = generate_order_id(),
            user              = user,
            cart              = cart,
            amount            = summary.total,
            currency          = currency,
            payment_method    = payment_method,
            status            = CompetitionPayment.Status.PENDING,
            items             = [
                {
                    "cart_item_id":  item.pk,
                    "name":          f"{item.competition.title} - {item.registration_type.name}",
                    "unit_price":    str(item.unit_price),
                    "quantity":      item.quantity,
                    "subtotal":      str(item.subtotal),
                }
                for item in items
            ],
            customer_details  = customer,
            metadata          = {"cart_id": cart.pk, "item_ids": [item.pk for item in items]},
            bank_slip_url     = bank_slip_url or "",
        )

        if payment_method == CompetitionPayment.Method.BANK_TRANSFER:
            registrations = RegistrationService.create_from_items(
                payment, items, status=Registration.Status.PENDING
            )
            cart.status = RegistrationCart.Status.COMPLETED
            cart.save(update_fields=["status", "updated_at"])
            return CheckoutResult(payment=payment, registrations=registrations)

        cart.status = RegistrationCart.Status.PROCESSING
        cart.save(update_fields=["status", "updated_at"])
        form = payhere.build_checkout_data(
            payment, customer,
            notify_url = urls.get("notify_url", ""),
            return_url = urls.get("return_url", ""),
            cancel_url = urls.get("cancel_url", ""),
        )
        return CheckoutResult(payment=payment, registrations=[], payhere_form=form)

    # ── Maintenance ──────────────────────────────────────────────────

    @staticmethod
    def expire_stale_carts() -> int:
        """ACTIVE carts past their expiry → EXPIRED. Returns the count."""
        updated = RegistrationCart.objects.filter(
            status=RegistrationCart.Status.ACTIVE,
            expires_at__lt=timezone.now(),
        ).update(status=RegistrationCart.Status.EXPIRED, updated_at=timezone.now())
        if updated:
            logger.info("[carts] %d stale cart(s) expired", updated)
        return updated
