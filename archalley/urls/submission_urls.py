"""
archalley/urls/submission_urls.py
namespace = "submissions"
"""
from django.urls import path
from ..views.submission_views import (
    SaveDraftView,
    SubmissionDetailView,
    SubmitView,
    WithdrawView,
)

app_name = "submissions"

urlpatterns = [
    path("save-draft/",                  SaveDraftView.as_view(),        name="save-draft"),
    path("submit/",                      SubmitView.as_view(),           name="submit"),
    path("withdraw/",                    WithdrawView.as_view(),         name="withdraw"),
    path("<str:registration_number>/",   SubmissionDetailView.as_view(), name="detail"),
]
