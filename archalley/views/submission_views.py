"""
views/submission_views.py
─────────────────────────────────────────────────────────────────────
Competition entry API: owner draft/submit/withdraw, admin review.
"""

from __future__ import annotations

from django.http import JsonResponse
from django.views import View

from ..forms import cleaned_or_raise
from ..forms.submission_forms import SubmissionContentForm, SubmissionTransitionForm
from ..mixins import RoleRequiredMixin
from ..models import ADMIN_ROLES, Submission
from ..services.submission_service import SubmissionService, serialize


# ────────────────────────────────────────────────────────────────────
#  Owner
# ────────────────────────────────────────────────────────────────────

class SubmissionDetailView(RoleRequiredMixin, View):
    """GET  /api/submissions/<registration_number>/"""
    http_method_names = ["get"]

    def get(self, request, registration_number: str):
        data = SubmissionService.get_for_owner(request.user, registration_number.upper())
        return JsonResponse({"success": True, **data})


class SaveDraftView(RoleRequiredMixin, View):
    """
    POST  /api/submissions/save-draft/
    Autosave; only the keys present in the body are changed.
    """
    http_method_names = ["post"]

    def post(self, request):
        form = SubmissionContentForm(data=self.parse_json(request))
        data = cleaned_or_raise(form)
        submission = SubmissionService.save_draft(
            request.user, data["registration_number"], form.content_changes()
        )
        return JsonResponse({"success": True, "submission": serialize(submission)})


class SubmitView(RoleRequiredMixin, View):
    """
    POST  /api/submissions/submit/
    Final, irrevocable submit. Body may carry last-moment content changes.
    """
    http_method_names = ["post"]

    def post(self, request):
        form = SubmissionContentForm(data=self.parse_json(request))
        data = cleaned_or_raise(form)
        submission = SubmissionService.submit(
            request.user, data["registration_number"], form.content_changes()
        )
        return JsonResponse({
            "success":    True,
            "message":    "Your entry has been submitted.",
            "submission": serialize(submission),
        })


class WithdrawView(RoleRequiredMixin, View):
    """POST  /api/submissions/withdraw/   body: {"registration_number": "..."}"""
    http_method_names = ["post"]

    def post(self, request):
        payload = self.parse_json(request)
        number  = str(payload.get("registration_number", "")).strip().upper()
        if not number:
            raise ValueError("registration_number is required")
        submission = SubmissionService.withdraw(request.user, number)
        return JsonResponse({"success": True, "submission": serialize(submission)})


# ────────────────────────────────────────────────────────────────────
#  Admin
# ────────────────────────────────────────────────────────────────────

class AdminSubmissionListView(RoleRequiredMixin, View):
    """GET  /api/admin/submissions/?status=SUBMITTED&competition=<id>"""
    allowed_roles     = list(ADMIN_ROLES)
    http_method_names = ["get"]

    def get(self, request):
        status = request.GET.get("status", "").upper()
        if status and status not in Submission.Status.values:
            raise ValueError(f"Unknown status: {status}")
        submissions = SubmissionService.admin_list(status, request.GET.get("competition"))
        return JsonResponse({"success": True, "submissions": [serialize(s) for s in submissions]})


class AdminSubmissionTransitionView(RoleRequiredMixin, View):
    """
    POST  /api/admin/submissions/validate/
    POST  /api/admin/submissions/publish/
    POST  /api/admin/submissions/reject/     (reason required)
    """
    allowed_roles     = list(ADMIN_ROLES)
    http_method_names = ["post"]
    transition        = ""

    def post(self, request):
        data = cleaned_or_raise(SubmissionTransitionForm(data=self.parse_json(request)))
        if self.transition == "reject":
            submission = SubmissionService.reject(request.user, data["submission_id"], data["reason"])
        else:
            submission = getattr(SubmissionService, self.transition)(request.user, data["submission_id"])
        return JsonResponse({"success": True, "submission": serialize(submission)})
