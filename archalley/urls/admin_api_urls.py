"""
archalley/urls/admin_api_urls.py
namespace = "admin_api"  (ADMIN / SUPER_ADMIN only)
"""
from django.urls import path
from ..views.ad_views import AdCollectionView, AdDetailView, AdToggleView
from ..views.payment_views import BankTransferVerifyView
from ..views.submission_views import AdminSubmissionListView, AdminSubmissionTransitionView

app_name = "admin_api"

urlpatterns = [
    # ── Payments ──────────────────────────────────────────────────────
    path("competitions/verify-payment/", BankTransferVerifyView.as_view(), name="verify-payment"),

    # ── Submissions ───────────────────────────────────────────────────
    path("submissions/", AdminSubmissionListView.as_view(), name="submissions"),
    path(
        "submissions/validate/",
        AdminSubmissionTransitionView.as_view(transition="validate"),
        name="submission-validate",
    ),
    path(
        "submissions/publish/",
        AdminSubmissionTransitionView.as_view(transition="publish"),
        name="submission-publish",
    ),
    path(
        "submissions/reject/",
        AdminSubmissionTransitionView.as_view(transition="reject"),
        name="submission-reject",
    ),

    # ── Advertisements ────────────────────────────────────────────────
    path("ads/",                       AdCollectionView.as_view(), name="ads"),
    path("ads/<int:ad_id>/",           AdDetailView.as_view(),     name="ad-detail"),
    path("ads/<int:ad_id>/toggle/",    AdToggleView.as_view(),     name="ad-toggle"),
]
