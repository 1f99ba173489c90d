"""
views/cart_views.py
─────────────────────────────────────────────────────────────────────
Registration cart + checkout API - Class-Based Views
"""

from __future__ import annotations

from django.conf import settings
from django.http import JsonResponse
from django.urls import reverse
from django.views import View

from ..forms import cleaned_or_raise
from ..forms.cart_forms import AddToCartForm, CheckoutForm
from ..mixins import RoleRequiredMixin
from ..services.cart_service import CartService, serialize_item
from ..services.registration_service import RegistrationService


class CartView(RoleRequiredMixin, View):
    """
    GET     /api/competitions/cart/   → summary (expired cart reads as empty)
    DELETE  /api/competitions/cart/   → remove every item
    """
    http_method_names = ["get", "delete"]

    def get(self, request):
        summary = CartService.get_summary(request.user)
        return JsonResponse({"success": True, "cart": summary.as_dict()})

    def delete(self, request):
        removed = CartService.clear(request.user)
        return JsonResponse({"success": True, "removed": removed})


class CartAddView(RoleRequiredMixin, View):
    """
    POST  /api/competitions/cart/add/

    body (JSON):
    {
        "competition": 1, "registration_type": 3, "country": "Sri Lanka",
        "members": [{"name": "Nimal Perera", "email": "nimal@example.com", "phone": "+94771234567"}],
        "agree_to_terms": true, "agree_to_website_terms": true,
        "agree_to_privacy_policy": true, "agree_to_refund_policy": true
    }
    """
    http_method_names = ["post"]

    def post(self, request):
        form = AddToCartForm(data=self.parse_json(request))
        item = CartService.add_item(request.user, cleaned_or_raise(form))
        summary = CartService.get_summary(request.user)
        return JsonResponse(
            {"success": True, "item": serialize_item(item), "cart": summary.as_dict()},
            status=201,
        )


class CartItemView(RoleRequiredMixin, View):
    """DELETE  /api/competitions/cart/items/<item_id>/"""
    http_method_names = ["delete"]

    def delete(self, request, item_id: int):
        CartService.remove_item(request.user, item_id)
        summary = CartService.get_summary(request.user)
        return JsonResponse({"success": True, "cart": summary.as_dict()})


class CheckoutView(RoleRequiredMixin, View):
    """
    POST  /api/competitions/checkout/

    body: customer fields + "payment_method" (CARD | BANK_TRANSFER)
          + "bank_slip_url" for bank transfers.
    CARD answers with the PayHere form to post; BANK_TRANSFER answers
    with the pending registration numbers.
    """
    http_method_names = ["post"]

    def post(self, request):
        form = CheckoutForm(data=self.parse_json(request))
        data = cleaned_or_raise(form)

        urls = {
            "notify_url": request.build_absolute_uri(reverse("competitions:payhere-notify")),
            "return_url": f"{settings.SITE_URL}/competitions/payment/success",
            "cancel_url": f"{settings.SITE_URL}/competitions/payment/cancelled",
        }
        result = CartService.checkout(
            request.user,
            customer       = form.customer_details(),
            payment_method = data["payment_method"],
            bank_slip_url  = data.get("bank_slip_url", ""),
            urls           = urls,
        )
        return JsonResponse({"success": True, **result.as_dict()}, status=201)


class MyRegistrationsView(RoleRequiredMixin, View):
    """GET  /api/competitions/my-registrations/"""
    http_method_names = ["get"]

    def get(self, request):
        registrations = RegistrationService.for_user(request.user).select_related("submission")
        return JsonResponse({
            "success": True,
            "registrations": [RegistrationService.serialize(r) for r in registrations],
        })
