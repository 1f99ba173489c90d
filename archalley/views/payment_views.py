"""
views/payment_views.py
─────────────────────────────────────────────────────────────────────
Payment confirmation endpoints

  1. PayHere → PayHereNotifyView (server-to-server, form-encoded, no session)
  2. Admin    → BankTransferVerifyView (approve / reject an uploaded slip)
"""

from __future__ import annotations

import logging

from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from ..forms import cleaned_or_raise
from ..forms.cart_forms import BankTransferVerifyForm
from ..mixins import JsonApiMixin, RoleRequiredMixin
from ..models import ADMIN_ROLES, CompetitionPayment
from ..services.payment_service import PaymentService

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class PayHereNotifyView(JsonApiMixin, View):
    """
    POST  /api/competitions/payment/notify/

    Called by PayHere, not the browser. The user may have no session,
    so authenticity rests on md5sig alone.
    """
    http_method_names = ["post"]

    def post(self, request):
        order_id = request.POST.get("order_id", "")
        if not order_id:
            return JsonResponse({"success": False, "error": "order_id is required"}, status=400)

        try:
            PaymentService.handle_payhere_notification(request.POST)
        except CompetitionPayment.DoesNotExist:
            logger.warning("PayHere notify for unknown order %s from %s", order_id, self.client_ip(request))
            return JsonResponse({"success": False, "error": "Payment not found"}, status=404)

        # PayHere only checks for a 200
        return HttpResponse("OK")


class BankTransferVerifyView(RoleRequiredMixin, View):
    """
    POST  /api/admin/competitions/verify-payment/
    body: {"order_id": "ORDER-AC2025-00012", "action": "approve" | "reject", "reason": "..."}
    """
    allowed_roles     = list(ADMIN_ROLES)
    http_method_names = ["post"]

    def post(self, request):
        data = cleaned_or_raise(BankTransferVerifyForm(data=self.parse_json(request)))
        payment = PaymentService.verify_bank_transfer(
            request.user,
            order_id = data["order_id"],
            approve  = data["action"] == "approve",
            reason   = data["reason"],
        )
        return JsonResponse({
            "success":        True,
            "order_id":       payment.order_id,
            "status":         payment.status,
            "registrations":  list(payment.registrations.values("registration_number", "status")),
        })
