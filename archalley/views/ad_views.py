"""
views/ad_views.py
─────────────────────────────────────────────────────────────────────
Advertisement banners - admin panel API + public serving/tracking
"""

from __future__ import annotations

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from ..mixins import JsonApiMixin, RoleRequiredMixin
from ..models import ADMIN_ROLES
from ..services.ad_service import AdvertisementService, serialize_ad


class AdPermissionMixin(RoleRequiredMixin):
    """Banner management: ADMIN or SUPER_ADMIN."""
    allowed_roles = list(ADMIN_ROLES)


def _ads(queryset) -> list:
    return [serialize_ad(ad) for ad in queryset]


# ────────────────────────────────────────────────────────────────────
#  Admin
# ────────────────────────────────────────────────────────────────────

class AdCollectionView(AdPermissionMixin, View):
    """
    GET   /api/admin/ads/                       → every banner
    GET   /api/admin/ads/?action=stats|sizes|active
    GET   /api/admin/ads/?action=by_size&size=350x350
    POST  /api/admin/ads/                       → create
    """
    http_method_names = ["get", "post"]

    def get(self, request):
        action = request.GET.get("action", "")

        if action == "stats":
            return JsonResponse({"success": True, "stats": AdvertisementService.stats()})
        if action == "sizes":
            return JsonResponse({"success": True, "sizes": AdvertisementService.sizes()})
        if action == "active":
            return JsonResponse({"success": True, "banners": _ads(AdvertisementService.active())})
        if action == "by_size":
            size = request.GET.get("size", "")
            if not size:
                raise ValueError("size is required")
            return JsonResponse({"success": True, "banners": _ads(AdvertisementService.by_size(size))})
        if action:
            raise ValueError(f"Unknown action: {action}")

        return JsonResponse({
            "success":          True,
            "banners":          _ads(AdvertisementService.list_all()),
            "stats":            AdvertisementService.stats(),
        })

    def post(self, request):
        ad = AdvertisementService.create(request.user, self.parse_json(request))
        return JsonResponse({"success": True, "banner": serialize_ad(ad)}, status=201)


class AdDetailView(AdPermissionMixin, View):
    """
    PATCH   /api/admin/ads/<ad_id>/
    DELETE  /api/admin/ads/<ad_id>/            → deactivate
    DELETE  /api/admin/ads/<ad_id>/?hard=true  → remove the row
    """
    http_method_names = ["patch", "delete"]

    def patch(self, request, ad_id: int):
        ad = AdvertisementService.update(request.user, ad_id, self.parse_json(request))
        return JsonResponse({"success": True, "banner": serialize_ad(ad)})

    def delete(self, request, ad_id: int):
        hard = request.GET.get("hard", "").lower() in ("1", "true", "yes")
        AdvertisementService.delete(request.user, ad_id, hard=hard)
        return JsonResponse({"success": True, "deleted": ad_id, "hard": hard})


class AdToggleView(AdPermissionMixin, View):
    """POST  /api/admin/ads/<ad_id>/toggle/   body: {"active": true|false}"""
    http_method_names = ["post"]

    def post(self, request, ad_id: int):
        payload = self.parse_json(request)
        active  = payload.get("active")
        if not isinstance(active, bool):
            raise ValueError("active must be true or false")
        ad = AdvertisementService.set_active(request.user, ad_id, active)
        return JsonResponse({"success": True, "banner": serialize_ad(ad)})


# ────────────────────────────────────────────────────────────────────
#  Public
# ────────────────────────────────────────────────────────────────────

class PublicAdListView(JsonApiMixin, View):
    """GET  /api/ads/?size=350x350  → active banners for a slot"""
    http_method_names = ["get"]

    def get(self, request):
        size = request.GET.get("size", "")
        qs = AdvertisementService.by_size(size) if size else AdvertisementService.active()
        return JsonResponse({"success": True, "banners": _ads(qs)})


@method_decorator(csrf_exempt, name="dispatch")
class AdClickView(JsonApiMixin, View):
    """POST  /api/ads/<ad_id>/click/"""
    http_method_names = ["post"]

    def post(self, request, ad_id: int):
        redirect_url = AdvertisementService.track_click(ad_id)
        return JsonResponse({"success": True, "redirect_url": redirect_url})


@method_decorator(csrf_exempt, name="dispatch")
class AdImpressionView(JsonApiMixin, View):
    """POST  /api/ads/<ad_id>/impression/"""
    http_method_names = ["post"]

    def post(self, request, ad_id: int):
        AdvertisementService.track_impression(ad_id)
        return JsonResponse({"success": True})
