"""
archalley_config/urls.py
─────────────────────────────────────────────────────────────────────
Master URL Router - every namespace is included here
"""
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path


def health_check(request):
    """Docker health-check endpoint."""
    return JsonResponse({"status": "ok"})


urlpatterns = [
    # ── Admin ─────────────────────────────────────────────────────────
    path("admin/", admin.site.urls),

    # ── Health Check ──────────────────────────────────────────────────
    path("health/", health_check, name="health"),

    # ── Competitions: cart, checkout, payments ────────────────────────
    path("api/competitions/", include("archalley.urls.competition_urls", namespace="competitions")),

    # ── Competition entries ───────────────────────────────────────────
    path("api/submissions/", include("archalley.urls.submission_urls", namespace="submissions")),

    # ── Forum moderation queue ────────────────────────────────────────
    path("api/flags/", include("archalley.urls.moderation_urls", namespace="moderation")),

    # ── Public banners ────────────────────────────────────────────────
    path("api/ads/", include("archalley.urls.ad_urls", namespace="ads")),

    # ── WordPress content proxy ───────────────────────────────────────
    path("api/wordpress/", include("archalley.urls.wordpress_urls", namespace="wordpress")),

    # ── Admin API ─────────────────────────────────────────────────────
    path("api/admin/", include("archalley.urls.admin_api_urls", namespace="admin_api")),
]
