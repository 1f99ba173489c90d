"""
views/moderation_views.py
─────────────────────────────────────────────────────────────────────
Reported-post queue - report creation for members, review for moderators
"""

from __future__ import annotations

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views import View

from ..forms import cleaned_or_raise
from ..forms.moderation_forms import FlagCreateForm, FlagReviewForm
from ..mixins import RoleRequiredMixin, error_response
from ..models import MODERATION_ROLES, PostFlag
from ..services.moderation_service import DEFAULT_PAGE_SIZE, ModerationService, serialize_flag


def _int_param(request, name: str, default: int) -> int:
    try:
        return int(request.GET.get(name, default))
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number")


class FlagCollectionView(RoleRequiredMixin, View):
    """
    GET   /api/flags/?status=PENDING&severity=HIGH&page=1&limit=20   (moderators)
    POST  /api/flags/   body: {"post_id", "reason", "custom_reason", "description", "severity"}
    """
    http_method_names = ["get", "post"]

    def get(self, request):
        if not request.user.is_moderator:
            return error_response("You do not have permission to view reports", 403)

        status   = request.GET.get("status", PostFlag.Status.PENDING).upper()
        severity = request.GET.get("severity", "").upper()
        if status != "ALL" and status not in PostFlag.Status.values:
            raise ValueError(f"Unknown status: {status}")
        if severity and severity not in PostFlag.Severity.values:
            raise ValueError(f"Unknown severity: {severity}")

        result = ModerationService.list_reports(
            status   = "" if status == "ALL" else status,
            severity = severity,
            page     = _int_param(request, "page", 1),
            limit    = _int_param(request, "limit", DEFAULT_PAGE_SIZE),
        )
        return JsonResponse({
            "success":     True,
            "reports":     [serialize_flag(f) for f in result.reports],
            "pagination":  result.pagination(),
        })

    def post(self, request):
        data = cleaned_or_raise(FlagCreateForm(data=self.parse_json(request)))
        flag = ModerationService.create_report(
            request.user,
            post_id        = data["post_id"],
            reason         = data["reason"],
            custom_reason  = data["custom_reason"],
            description    = data["description"],
            severity       = data["severity"],
            ip_address     = self.client_ip(request),
        )
        return JsonResponse(
            {"success": True, "message": "Thank you, the post has been reported.", "flag_id": flag.pk},
            status=201,
        )


class FlagDetailView(RoleRequiredMixin, View):
    """
    GET    /api/flags/<flag_id>/
    PATCH  /api/flags/<flag_id>/   body: {"status", "review_notes", "action"}
    """
    allowed_roles     = list(MODERATION_ROLES)
    http_method_names = ["get", "patch"]

    def get(self, request, flag_id: int):
        flag = get_object_or_404(
            PostFlag.objects.select_related("post", "post__author", "reporter", "reviewed_by"),
            pk=flag_id,
        )
        return JsonResponse({"success": True, "report": serialize_flag(flag)})

    def patch(self, request, flag_id: int):
        data = cleaned_or_raise(FlagReviewForm(data=self.parse_json(request)))
        flag = ModerationService.review_report(
            request.user,
            flag_id,
            status        = data["status"],
            review_notes  = data["review_notes"],
            action        = data.get("action") or "",
        )
        return JsonResponse({"success": True, "report": serialize_flag(flag)})


class FlagStatsView(RoleRequiredMixin, View):
    """GET  /api/flags/stats/"""
    allowed_roles     = list(MODERATION_ROLES)
    http_method_names = ["get"]

    def get(self, request):
        return JsonResponse({"success": True, "stats": ModerationService.stats()})
